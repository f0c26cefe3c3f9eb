import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ....domain.entities import Role, SessionRecord
from ....domain.errors import NotFound, Conflict
from ....infrastructure.db import get_db
from ....infrastructure.models import Enrollment, User, Course
from ..authz import require_auth, require_admin
from ..schemas import EnrollmentCreate, EnrollmentOut, EnrollmentEnvelope, EnrollmentsEnvelope, MessageResp

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])
logger = structlog.get_logger()

DUPLICATE_MESSAGE = "Student is already enrolled in this course"


@router.get("", response_model=EnrollmentsEnvelope)
def list_enrollments(
    user_id: str | None = Query(None, alias="userId"),
    record: SessionRecord = Depends(require_auth),
    db: Session = Depends(get_db),
):
    q = db.query(Enrollment)
    if record.role == Role.STUDENT:
        # студент видит только свои записи, фильтр userId игнорируется
        q = q.filter(Enrollment.user_id == record.user_id)
    elif user_id:
        q = q.filter(Enrollment.user_id == user_id)
    rows = q.order_by(Enrollment.created_at.desc()).all()
    return EnrollmentsEnvelope(enrollments=[EnrollmentOut.model_validate(r) for r in rows])


@router.post("", response_model=EnrollmentEnvelope, status_code=status.HTTP_201_CREATED)
def create_enrollment(payload: EnrollmentCreate, admin: SessionRecord = Depends(require_admin),
                      db: Session = Depends(get_db)):
    user_id, course_id = str(payload.user_id), str(payload.course_id)

    user = db.get(User, user_id)
    if not user: raise NotFound("User not found")
    if user.role != Role.STUDENT.value:
        raise Conflict("Only students can be enrolled in courses")
    if not db.get(Course, course_id): raise NotFound("Course not found")

    exists = db.query(Enrollment.id).filter(
        Enrollment.user_id == user_id, Enrollment.course_id == course_id
    ).first()
    if exists: raise Conflict(DUPLICATE_MESSAGE)

    row = Enrollment(user_id=user_id, course_id=course_id)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_MESSAGE)
    db.refresh(row)
    logger.info("enrollment_created", category="security",
                enrollment_id=row.id, user_id=user_id, course_id=course_id, admin_id=admin.user_id)
    return EnrollmentEnvelope(enrollment=EnrollmentOut.model_validate(row))


@router.delete("/{enrollment_id}", response_model=MessageResp, dependencies=[Depends(require_admin)])
def delete_enrollment(enrollment_id: str, db: Session = Depends(get_db)):
    row = db.get(Enrollment, enrollment_id)
    if not row: raise NotFound("Enrollment not found")
    db.delete(row); db.commit()
    logger.info("enrollment_deleted", category="security", enrollment_id=enrollment_id)
    return MessageResp(message="Enrollment deleted successfully")
