from sqlalchemy.orm import Session

from ..domain.entities import Role, SessionRecord
from ..domain.errors import Forbidden
from ..infrastructure.models import Enrollment


def is_enrolled(db: Session, user_id: str, course_id: str) -> bool:
    return db.query(Enrollment.id).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id,
    ).first() is not None


def ensure_course_access(db: Session, record: SessionRecord, course_id: str) -> None:
    """Админ видит всё, студент видит только курсы, на которые записан."""
    if record.role == Role.ADMIN:
        return
    if not is_enrolled(db, record.user_id, course_id):
        raise Forbidden("Not enrolled in this course")
