from datetime import datetime, timezone
from typing import Union

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ....domain.entities import Role, SessionRecord, SubmissionStatus
from ....infrastructure.db import get_db
from ....infrastructure.models import User, Course, Assignment, Enrollment, Submission
from ..authz import require_auth
from ..schemas import (
    StudentDashboard, AdminDashboard, DashboardStats, DashboardEnrollment, UpcomingAssignment,
    AssignmentOut, CourseOut, SubmissionOut, SubmissionDetail,
)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

UPCOMING_LIMIT = 10
STUDENT_RECENT_LIMIT = 5
ADMIN_RECENT_LIMIT = 10


def _as_utc(value: datetime) -> datetime:
    # SQLite отдаёт naive datetime, храним всегда в UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _student_dashboard(db: Session, record: SessionRecord) -> StudentDashboard:
    now = datetime.now(timezone.utc)
    enrollments = db.query(Enrollment).filter(Enrollment.user_id == record.user_id) \
        .order_by(Enrollment.created_at.asc()).all()

    own = {
        s.assignment_id: s
        for s in db.query(Submission).filter(Submission.student_id == record.user_id).all()
    }

    upcoming = [
        a
        for e in enrollments
        for a in e.course.assignments
        if a.due_date is None or _as_utc(a.due_date) >= now
    ]
    # без срока сдачи идут в конец списка
    upcoming.sort(key=lambda a: (a.due_date is None, _as_utc(a.due_date) if a.due_date else now))

    upcoming_out = [
        UpcomingAssignment(
            **AssignmentOut.model_validate(a).model_dump(),
            submission=SubmissionOut.model_validate(own[a.id]) if a.id in own else None,
        )
        for a in upcoming[:UPCOMING_LIMIT]
    ]

    recent = db.query(Submission).filter(Submission.student_id == record.user_id) \
        .order_by(Submission.updated_at.desc()).limit(STUDENT_RECENT_LIMIT).all()

    return StudentDashboard(
        enrollments=[DashboardEnrollment(id=e.id, course=CourseOut.model_validate(e.course)) for e in enrollments],
        upcoming_assignments=upcoming_out,
        recent_submissions=[SubmissionDetail.model_validate(s) for s in recent],
    )


def _admin_dashboard(db: Session) -> AdminDashboard:
    stats = DashboardStats(
        total_students=db.query(func.count(User.id)).filter(User.role == Role.STUDENT.value).scalar(),
        total_courses=db.query(func.count(Course.id)).scalar(),
        total_assignments=db.query(func.count(Assignment.id)).scalar(),
        pending_submissions=db.query(func.count(Submission.id))
            .filter(Submission.status == SubmissionStatus.SUBMITTED.value).scalar(),
    )
    recent = db.query(Submission).filter(Submission.status == SubmissionStatus.SUBMITTED.value) \
        .order_by(Submission.created_at.desc()).limit(ADMIN_RECENT_LIMIT).all()
    return AdminDashboard(stats=stats, recent_submissions=[SubmissionDetail.model_validate(s) for s in recent])


@router.get("", response_model=Union[StudentDashboard, AdminDashboard])
def dashboard(record: SessionRecord = Depends(require_auth), db: Session = Depends(get_db)):
    if record.role == Role.STUDENT:
        return _student_dashboard(db, record)
    return _admin_dashboard(db)
