import structlog
from sqlalchemy.orm import Session

from ...domain.entities import SubmissionStatus
from ...domain.errors import NotFound
from ...infrastructure.models import Submission
from ..dto import GradeInput

logger = structlog.get_logger()


class GradeSubmission:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, submission_id: str, data: GradeInput) -> Submission:
        # повторная оценка перезаписывает предыдущую
        row = self.db.get(Submission, submission_id)
        if row is None:
            raise NotFound("Submission not found")
        row.grade = data.grade
        row.feedback = data.feedback
        row.status = SubmissionStatus.GRADED.value
        self.db.commit(); self.db.refresh(row)
        logger.info("submission_graded", category="security",
                    submission_id=row.id, student_id=row.student_id, grade=data.grade)
        return row
