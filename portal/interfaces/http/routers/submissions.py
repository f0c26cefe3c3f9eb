from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ....domain.entities import Role, SessionRecord
from ....infrastructure.db import get_db
from ....infrastructure.metrics import submissions_total
from ....infrastructure.models import Submission
from ....application.dto import SubmissionInput, GradeInput
from ....application.use_cases.submit_assignment import SubmitAssignment
from ....application.use_cases.grade_submission import GradeSubmission
from ..authz import require_auth, require_admin, require_student
from ..schemas import SubmissionCreate, GradeReq, SubmissionDetail, SubmissionEnvelope, SubmissionsEnvelope

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.get("", response_model=SubmissionsEnvelope)
def list_submissions(
    assignment_id: str | None = Query(None, alias="assignmentId"),
    record: SessionRecord = Depends(require_auth),
    db: Session = Depends(get_db),
):
    q = db.query(Submission)
    if record.role == Role.STUDENT:
        q = q.filter(Submission.student_id == record.user_id)
    if assignment_id:
        q = q.filter(Submission.assignment_id == assignment_id)
    rows = q.order_by(Submission.updated_at.desc()).all()
    return SubmissionsEnvelope(submissions=[SubmissionDetail.model_validate(r) for r in rows])


@router.post("", response_model=SubmissionEnvelope, status_code=status.HTTP_201_CREATED)
def submit(
    payload: SubmissionCreate,
    response: Response,
    record: SessionRecord = Depends(require_student),
    db: Session = Depends(get_db),
):
    uc = SubmitAssignment(db)
    row, created = uc.execute(record, SubmissionInput(
        assignment_id=str(payload.assignment_id),
        content=payload.content,
        file_url=payload.file_url,
        file_name=payload.file_name,
    ))
    # повторная сдача обновляет существующую запись
    if not created:
        response.status_code = status.HTTP_200_OK
    submissions_total.labels(action="created" if created else "updated").inc()
    return SubmissionEnvelope(submission=SubmissionDetail.model_validate(row))


@router.put("/{submission_id}/grade", response_model=SubmissionEnvelope, dependencies=[Depends(require_admin)])
def grade(submission_id: str, payload: GradeReq, db: Session = Depends(get_db)):
    row = GradeSubmission(db).execute(submission_id, GradeInput(grade=payload.grade, feedback=payload.feedback))
    submissions_total.labels(action="graded").inc()
    return SubmissionEnvelope(submission=SubmissionDetail.model_validate(row))
