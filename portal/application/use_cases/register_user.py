from ...domain.entities import User, Role
from ...domain.errors import Conflict
from ..dto import RegisterUserInput


class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_id(self, user_id: str) -> User | None: ...
    def get_with_password_hash(self, email: str) -> tuple[User, str] | None: ...
    def create(self, name: str, email: str, password_hash: str, role: Role = Role.STUDENT) -> User: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, data: RegisterUserInput) -> User:
        if self.repo.get_by_email(data.email):
            raise Conflict("Email already registered")
        pwd_hash = self.hasher.hash(data.password)
        return self.repo.create(data.name, data.email, pwd_hash, data.role)
