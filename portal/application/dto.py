from dataclasses import dataclass

from ..domain.entities import Role


@dataclass
class RegisterUserInput:
    name: str
    email: str
    password: str
    role: Role = Role.STUDENT


@dataclass
class SubmissionInput:
    assignment_id: str
    content: str | None = None
    file_url: str | None = None
    file_name: str | None = None


@dataclass
class GradeInput:
    grade: float
    feedback: str | None = None
