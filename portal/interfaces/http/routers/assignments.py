import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....domain.entities import Role, SessionRecord
from ....domain.errors import NotFound, ValidationFailed
from ....infrastructure.db import get_db
from ....infrastructure.models import Assignment, Course, Submission
from ....application.policies import ensure_course_access
from ..authz import require_auth, require_admin
from ..schemas import (
    AssignmentCreate, AssignmentUpdate, AssignmentOut, AssignmentDetail, CourseOut, SubmissionWithStudent,
    AssignmentEnvelope, AssignmentDetailEnvelope, AssignmentsEnvelope, MessageResp,
)

router = APIRouter(prefix="/api/assignments", tags=["assignments"])
logger = structlog.get_logger()


def _get_assignment_or_404(db: Session, assignment_id: str) -> Assignment:
    row = db.get(Assignment, assignment_id)
    if not row: raise NotFound("Assignment not found")
    return row


@router.get("", response_model=AssignmentsEnvelope)
def list_assignments(
    course_id: str | None = Query(None, alias="courseId"),
    record: SessionRecord = Depends(require_auth),
    db: Session = Depends(get_db),
):
    if not course_id:
        if record.role != Role.ADMIN:
            raise ValidationFailed(
                [{"field": "courseId", "message": "courseId is required"}],
                "courseId is required",
            )
        rows = db.query(Assignment).order_by(Assignment.created_at.desc()).all()
        return AssignmentsEnvelope(assignments=[AssignmentOut.model_validate(r) for r in rows])

    ensure_course_access(db, record, course_id)
    rows = db.query(Assignment).filter(Assignment.course_id == course_id) \
        .order_by(Assignment.due_date.asc().nulls_last()).all()
    return AssignmentsEnvelope(assignments=[AssignmentOut.model_validate(r) for r in rows])


@router.get("/{assignment_id}", response_model=AssignmentDetailEnvelope)
def get_assignment(assignment_id: str, record: SessionRecord = Depends(require_auth), db: Session = Depends(get_db)):
    row = _get_assignment_or_404(db, assignment_id)
    ensure_course_access(db, record, row.course_id)

    q = db.query(Submission).filter(Submission.assignment_id == assignment_id)
    if record.role == Role.STUDENT:
        q = q.filter(Submission.student_id == record.user_id)
    submissions = q.order_by(Submission.updated_at.desc()).all()

    base = AssignmentOut.model_validate(row).model_dump(exclude={"course"})
    detail = AssignmentDetail(
        **base,
        course=CourseOut.model_validate(row.course),
        submissions=[SubmissionWithStudent.model_validate(s) for s in submissions],
    )
    return AssignmentDetailEnvelope(assignment=detail)


# --- Admin-only CRUD:

@router.post("", response_model=AssignmentEnvelope, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_assignment(payload: AssignmentCreate, db: Session = Depends(get_db)):
    course_id = str(payload.course_id)
    if not db.get(Course, course_id): raise NotFound("Course not found")
    row = Assignment(
        course_id=course_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        file_url=payload.file_url,
        file_name=payload.file_name,
    )
    db.add(row); db.commit(); db.refresh(row)
    logger.info("assignment_created", category="security", assignment_id=row.id, course_id=course_id)
    return AssignmentEnvelope(assignment=AssignmentOut.model_validate(row))


@router.put("/{assignment_id}", response_model=AssignmentEnvelope, dependencies=[Depends(require_admin)])
def update_assignment(assignment_id: str, payload: AssignmentUpdate, db: Session = Depends(get_db)):
    row = _get_assignment_or_404(db, assignment_id)
    changes = payload.model_dump(exclude_unset=True)
    # пустой title не затирает существующий
    if changes.get("title") is None:
        changes.pop("title", None)
    for field, value in changes.items():
        setattr(row, field, value)
    db.commit(); db.refresh(row)
    logger.info("assignment_updated", category="security", assignment_id=row.id)
    return AssignmentEnvelope(assignment=AssignmentOut.model_validate(row))


@router.delete("/{assignment_id}", response_model=MessageResp, dependencies=[Depends(require_admin)])
def delete_assignment(assignment_id: str, db: Session = Depends(get_db)):
    row = _get_assignment_or_404(db, assignment_id)
    db.delete(row); db.commit()
    logger.info("assignment_deleted", category="security", assignment_id=assignment_id)
    return MessageResp(message="Assignment deleted successfully")
