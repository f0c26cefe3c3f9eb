import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ....domain.errors import NotFound, Conflict
from ....infrastructure.db import get_db
from ....infrastructure.models import Course, Assignment
from ..authz import require_auth, require_admin
from ..schemas import (
    CourseCreate, CourseUpdate, CourseOut, CourseListItem, CourseDetail, AssignmentOut, EnrollmentOut,
    CourseEnvelope, CourseDetailEnvelope, CoursesEnvelope, MessageResp,
)

router = APIRouter(prefix="/api/courses", tags=["courses"])
logger = structlog.get_logger()


def _get_course_or_404(db: Session, course_id: str) -> Course:
    row = db.get(Course, course_id)
    if not row: raise NotFound("Course not found")
    return row


def _commit_or_conflict(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Course code already exists")


@router.get("", response_model=CoursesEnvelope, dependencies=[Depends(require_auth)])
def list_courses(db: Session = Depends(get_db)):
    rows = db.query(Course).order_by(Course.created_at.desc()).all()
    courses = [
        CourseListItem(
            **CourseOut.model_validate(row).model_dump(),
            enrollment_count=len(row.enrollments),
            assignment_count=len(row.assignments),
        )
        for row in rows
    ]
    return CoursesEnvelope(courses=courses)


@router.get("/{course_id}", response_model=CourseDetailEnvelope, dependencies=[Depends(require_auth)])
def get_course(course_id: str, db: Session = Depends(get_db)):
    row = _get_course_or_404(db, course_id)
    assignments = db.query(Assignment).filter(Assignment.course_id == course_id) \
        .order_by(Assignment.due_date.asc().nulls_last()).all()
    course = CourseDetail(
        **CourseOut.model_validate(row).model_dump(),
        assignments=[AssignmentOut.model_validate(a) for a in assignments],
        enrollments=[EnrollmentOut.model_validate(e) for e in row.enrollments],
    )
    return CourseDetailEnvelope(course=course)


# --- Admin-only CRUD:

@router.post("", response_model=CourseEnvelope, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_course(payload: CourseCreate, db: Session = Depends(get_db)):
    exists = db.query(Course.id).filter(Course.code == payload.code).first()
    if exists: raise Conflict("Course code already exists")
    row = Course(code=payload.code, name=payload.name, description=payload.description)
    db.add(row); _commit_or_conflict(db); db.refresh(row)
    logger.info("course_created", category="security", course_id=row.id, code=row.code)
    return CourseEnvelope(course=CourseOut.model_validate(row))


@router.put("/{course_id}", response_model=CourseEnvelope, dependencies=[Depends(require_admin)])
def update_course(course_id: str, payload: CourseUpdate, db: Session = Depends(get_db)):
    row = _get_course_or_404(db, course_id)
    if payload.code is not None and payload.code != row.code:
        taken = db.query(Course.id).filter(Course.code == payload.code).first()
        if taken: raise Conflict("Course code already exists")
        row.code = payload.code
    if payload.name is not None: row.name = payload.name
    if "description" in payload.model_fields_set: row.description = payload.description
    _commit_or_conflict(db); db.refresh(row)
    logger.info("course_updated", category="security", course_id=row.id)
    return CourseEnvelope(course=CourseOut.model_validate(row))


@router.delete("/{course_id}", response_model=MessageResp, dependencies=[Depends(require_admin)])
def delete_course(course_id: str, db: Session = Depends(get_db)):
    row = _get_course_or_404(db, course_id)
    db.delete(row); db.commit()
    logger.info("course_deleted", category="security", course_id=course_id)
    return MessageResp(message="Course deleted successfully")
