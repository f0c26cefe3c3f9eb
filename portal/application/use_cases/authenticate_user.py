import structlog

from ...domain.entities import User
from ...domain.errors import Unauthenticated
from .register_user import IUserRepository, IPasswordHasher

logger = structlog.get_logger()


class AuthenticateUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, email: str, password: str) -> User:
        found = self.repo.get_with_password_hash(email)
        if found is None:
            logger.warning("login_unknown_email", category="security", email=email)
            raise Unauthenticated("Invalid credentials")

        user, password_hash = found
        if not self.hasher.verify(password, password_hash):
            logger.warning("login_failed", category="security", user_id=user.id, email=user.email)
            raise Unauthenticated("Invalid credentials")
        return user
