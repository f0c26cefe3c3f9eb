from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"


@dataclass(frozen=True)
class User:
    id: str | None
    name: str
    email: str
    role: Role = Role.STUDENT
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class SessionRecord:
    """Расшифрованное содержимое сессионной cookie."""
    user_id: str | None = None
    email: str | None = None
    role: Role | None = None
    is_logged_in: bool = False

    @classmethod
    def anonymous(cls) -> "SessionRecord":
        return cls()

    @classmethod
    def for_user(cls, user: User) -> "SessionRecord":
        return cls(user_id=user.id, email=user.email, role=user.role, is_logged_in=True)
