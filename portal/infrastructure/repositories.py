from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import UserORM
from ..domain.entities import User, Role
from ..domain.errors import Conflict
from ..application.use_cases.register_user import IUserRepository


def to_domain(u: UserORM) -> User:
    return User(
        id=u.id,
        name=u.name,
        email=u.email,
        role=Role(u.role),
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return to_domain(row) if row else None

    def get_by_id(self, user_id: str) -> User | None:
        row = self.db.get(UserORM, user_id)
        return to_domain(row) if row else None

    def get_with_password_hash(self, email: str) -> tuple[User, str] | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return (to_domain(row), row.password_hash) if row else None

    def create(self, name: str, email: str, password_hash: str, role: Role = Role.STUDENT) -> User:
        row = UserORM(name=name, email=email, password_hash=password_hash, role=role.value)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Email already registered")
        self.db.refresh(row)
        return to_domain(row)
