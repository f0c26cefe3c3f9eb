import os
import sys
import pytest
import structlog

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Окружение задаётся до импорта portal: settings читаются один раз при импорте
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-session-secret-0123456789-abcdef"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.domain.entities import Role
from portal.infrastructure.db import Base, get_db
from portal.infrastructure.models import User, Course, Enrollment, Assignment
from portal.infrastructure.security import PasswordHasher
from portal.main import app

# capture_logs не видит закешированные логгеры
structlog.configure(cache_logger_on_first_use=False)

# Одно соединение на всё время теста, иначе у :memory: у каждого соединения своя БД
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

DEFAULT_PASSWORD = "Passw0rd!"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def fresh_schema():
    """Чистая схема на каждый тест"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def make_user(db, email, role=Role.STUDENT, name="Test User", password=DEFAULT_PASSWORD):
    user = User(name=name, email=email, password_hash=PasswordHasher().hash(password), role=role.value)
    db.add(user); db.commit(); db.refresh(user)
    return user


def make_course(db, code="CS101", name="Intro to Computing"):
    course = Course(code=code, name=name, description="Basics")
    db.add(course); db.commit(); db.refresh(course)
    return course


def make_assignment(db, course, title="Homework 1", due_date=None):
    assignment = Assignment(course_id=course.id, title=title, due_date=due_date)
    db.add(assignment); db.commit(); db.refresh(assignment)
    return assignment


def enroll(db, user, course):
    row = Enrollment(user_id=user.id, course_id=course.id)
    db.add(row); db.commit(); db.refresh(row)
    return row


def login(email, password=DEFAULT_PASSWORD):
    """Отдельный клиент со своей cookie-сессией"""
    c = TestClient(app)
    r = c.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return c


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=Role.ADMIN, name="Admin User")


@pytest.fixture
def student(db):
    return make_user(db, "student@example.com", name="Student One")


@pytest.fixture
def admin_client(admin):
    return login(admin.email)


@pytest.fixture
def student_client(student):
    return login(student.email)
