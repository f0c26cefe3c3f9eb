from passlib.context import CryptContext
from ..config import settings


def build_context(rounds: int) -> CryptContext:
    return CryptContext(
        schemes=["bcrypt_sha256"],
        deprecated="auto",
        bcrypt_sha256__rounds=rounds,
    )


pwd = build_context(settings.BCRYPT_ROUNDS)


class PasswordHasher:
    """bcrypt с фиксированным work factor; хеш сам хранит алгоритм, раунды и соль."""

    def __init__(self, context: CryptContext = pwd):
        self.context = context

    def hash(self, plain: str) -> str:
        return self.context.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool:
        try:
            return self.context.verify(plain, hashed)
        except (ValueError, TypeError):
            # битый или чужой формат хеша
            return False
