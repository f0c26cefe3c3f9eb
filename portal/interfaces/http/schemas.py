import re
from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ...domain.entities import Role, SubmissionStatus


class CamelModel(BaseModel):
    # JSON наружу и внутрь в camelCase, как ждёт фронтенд
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]


def _to_utc(v: datetime | None) -> datetime | None:
    # SQLite не хранит смещение, поэтому приводим к UTC до записи
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc)
    return v


OptionalDate = Annotated[datetime | None, BeforeValidator(_blank_to_none), AfterValidator(_to_utc)]


def check_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one number")
    return v


# --- Auth / users

class RegisterReq(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginReq(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class CreateUserReq(RegisterReq):
    role: Role | None = None


class UpdateUserReq(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    role: Role | None = None


class UserSummary(CamelModel):
    id: str
    name: str
    email: str


class UserResp(CamelModel):
    id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime


class UserListItem(UserResp):
    enrollment_count: int = 0
    submission_count: int = 0


class LoginUser(CamelModel):
    id: str
    name: str
    email: str
    role: Role


class UserEnvelope(CamelModel):
    user: UserResp


class UsersEnvelope(CamelModel):
    users: list[UserListItem]


class RegisterResp(CamelModel):
    message: str
    user: UserResp


class LoginResp(CamelModel):
    message: str
    user: LoginUser


class MessageResp(CamelModel):
    message: str


# --- Courses

class CourseCreate(CamelModel):
    code: str = Field(min_length=2, max_length=20)
    name: str = Field(min_length=3, max_length=200)
    description: str | None = None


class CourseUpdate(CamelModel):
    code: str | None = Field(default=None, min_length=2, max_length=20)
    name: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = None


class CourseSummary(CamelModel):
    id: str
    code: str
    name: str


class CourseOut(CamelModel):
    id: str
    code: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class CourseListItem(CourseOut):
    enrollment_count: int = 0
    assignment_count: int = 0


# --- Assignments

class AssignmentCreate(CamelModel):
    course_id: UUID
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    due_date: OptionalDate = None
    file_url: OptionalText = None
    file_name: OptionalText = None


class AssignmentUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    due_date: OptionalDate = None
    file_url: OptionalText = None
    file_name: OptionalText = None


class AssignmentOut(CamelModel):
    id: str
    course_id: str
    title: str
    description: str | None = None
    due_date: datetime | None = None
    file_url: str | None = None
    file_name: str | None = None
    created_at: datetime
    updated_at: datetime
    course: CourseSummary | None = None


# --- Submissions

class SubmissionCreate(CamelModel):
    assignment_id: UUID
    content: OptionalText = None
    file_url: OptionalText = None
    file_name: OptionalText = None

    @model_validator(mode="after")
    def content_or_file(self):
        if self.content is None and self.file_url is None:
            raise ValueError("Submission must include content or a file")
        return self


class GradeReq(CamelModel):
    grade: float = Field(ge=0, le=100)
    feedback: str | None = None


class SubmissionOut(CamelModel):
    id: str
    assignment_id: str
    student_id: str
    content: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    status: SubmissionStatus
    grade: float | None = None
    feedback: str | None = None
    created_at: datetime
    updated_at: datetime


class SubmissionWithStudent(SubmissionOut):
    student: UserSummary | None = None


class SubmissionDetail(SubmissionWithStudent):
    assignment: AssignmentOut | None = None


class SubmissionEnvelope(CamelModel):
    submission: SubmissionDetail


class SubmissionsEnvelope(CamelModel):
    submissions: list[SubmissionDetail]


# --- Enrollments

class EnrollmentCreate(CamelModel):
    user_id: UUID
    course_id: UUID


class EnrollmentOut(CamelModel):
    id: str
    user_id: str
    course_id: str
    created_at: datetime
    course: CourseOut | None = None
    user: UserSummary | None = None


class EnrollmentEnvelope(CamelModel):
    enrollment: EnrollmentOut


class EnrollmentsEnvelope(CamelModel):
    enrollments: list[EnrollmentOut]


# --- Composite course / assignment views

class CourseDetail(CourseOut):
    assignments: list[AssignmentOut] = []
    enrollments: list[EnrollmentOut] = []


class CourseEnvelope(CamelModel):
    course: CourseOut


class CourseDetailEnvelope(CamelModel):
    course: CourseDetail


class CoursesEnvelope(CamelModel):
    courses: list[CourseListItem]


class AssignmentDetail(AssignmentOut):
    course: CourseOut | None = None
    submissions: list[SubmissionWithStudent] = []


class AssignmentEnvelope(CamelModel):
    assignment: AssignmentOut


class AssignmentDetailEnvelope(CamelModel):
    assignment: AssignmentDetail


class AssignmentsEnvelope(CamelModel):
    assignments: list[AssignmentOut]


# --- Dashboard

class DashboardEnrollment(CamelModel):
    id: str
    course: CourseOut


class UpcomingAssignment(AssignmentOut):
    submission: SubmissionOut | None = None


class StudentDashboard(CamelModel):
    enrollments: list[DashboardEnrollment]
    upcoming_assignments: list[UpcomingAssignment]
    recent_submissions: list[SubmissionDetail]


class DashboardStats(CamelModel):
    total_students: int
    total_courses: int
    total_assignments: int
    pending_submissions: int


class AdminDashboard(CamelModel):
    stats: DashboardStats
    recent_submissions: list[SubmissionDetail]


# --- Upload

class UploadResp(CamelModel):
    success: bool = True
    file_url: str
    file_name: str
    file_size: int
    file_type: str
