import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...domain.entities import SessionRecord, SubmissionStatus
from ...domain.errors import NotFound, Conflict
from ...infrastructure.models import Assignment, Submission
from ..dto import SubmissionInput
from ..policies import ensure_course_access

logger = structlog.get_logger()


class SubmitAssignment:
    """Создать или обновить работу студента: одна запись на пару (задание, студент)."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, record: SessionRecord, data: SubmissionInput) -> tuple[Submission, bool]:
        assignment = self.db.get(Assignment, data.assignment_id)
        if assignment is None:
            raise NotFound("Assignment not found")
        ensure_course_access(self.db, record, assignment.course_id)

        existing = self.db.query(Submission).filter(
            Submission.assignment_id == data.assignment_id,
            Submission.student_id == record.user_id,
        ).first()

        if existing is not None:
            if existing.status == SubmissionStatus.GRADED.value:
                raise Conflict("Submission has already been graded")
            existing.content = data.content
            existing.file_url = data.file_url
            existing.file_name = data.file_name
            existing.status = SubmissionStatus.SUBMITTED.value
            self.db.commit(); self.db.refresh(existing)
            logger.info("submission_updated", category="security",
                        submission_id=existing.id, student_id=record.user_id)
            return existing, False

        row = Submission(
            assignment_id=data.assignment_id,
            student_id=record.user_id,
            content=data.content,
            file_url=data.file_url,
            file_name=data.file_name,
            status=SubmissionStatus.SUBMITTED.value,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # параллельная сдача той же работы: выигрывает первая запись
            self.db.rollback()
            raise Conflict("Submission already exists for this assignment")
        self.db.refresh(row)
        logger.info("submission_created", category="security",
                    submission_id=row.id, student_id=record.user_id)
        return row, True
