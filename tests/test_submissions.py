from sqlalchemy import func

from conftest import make_user, make_course, make_assignment, enroll, login
from portal.domain.entities import Role
from portal.infrastructure.models import Submission


def _setup(db, student):
    course = make_course(db)
    assignment = make_assignment(db, course)
    enroll(db, student, course)
    return assignment


def test_submit_then_resubmit_keeps_one_row(student_client, db, student):
    """Повторная сдача обновляет запись, а не создаёт новую"""
    assignment = _setup(db, student)
    first = student_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "draft"})
    assert first.status_code == 201
    assert first.json()["submission"]["status"] == "SUBMITTED"

    second = student_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "final"})
    assert second.status_code == 200
    assert second.json()["submission"]["id"] == first.json()["submission"]["id"]
    assert second.json()["submission"]["content"] == "final"
    assert db.query(func.count(Submission.id)).scalar() == 1


def test_submission_requires_content_or_file(student_client, db, student):
    assignment = _setup(db, student)
    r = student_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == "Validation failed"


def test_submission_with_file_only(student_client, db, student):
    assignment = _setup(db, student)
    r = student_client.post("/api/submissions", json={
        "assignmentId": assignment.id,
        "fileUrl": "/uploads/submissions/1-essay.pdf",
        "fileName": "essay.pdf",
    })
    assert r.status_code == 201
    assert r.json()["submission"]["content"] is None


def test_admin_cannot_submit(admin_client, db, student):
    assignment = _setup(db, student)
    r = admin_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "x"})
    assert r.status_code == 403
    assert r.json() == {"error": "Only students can submit assignments"}


def test_non_enrolled_student_cannot_submit(student_client, db):
    assignment = make_assignment(db, make_course(db))
    r = student_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "x"})
    assert r.status_code == 403


def test_submit_to_missing_assignment(student_client):
    r = student_client.post("/api/submissions", json={
        "assignmentId": "00000000-0000-0000-0000-000000000000", "content": "x",
    })
    assert r.status_code == 404


def test_grade_submission(admin_client, student_client, db, student):
    assignment = _setup(db, student)
    sub = student_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "answer"})
    sub_id = sub.json()["submission"]["id"]

    r = admin_client.put(f"/api/submissions/{sub_id}/grade", json={"grade": 92.5, "feedback": "Good work"})
    assert r.status_code == 200
    graded = r.json()["submission"]
    assert graded["status"] == "GRADED"
    assert graded["grade"] == 92.5
    assert graded["feedback"] == "Good work"


def test_grade_out_of_range(admin_client, student_client, db, student):
    assignment = _setup(db, student)
    sub_id = student_client.post(
        "/api/submissions", json={"assignmentId": assignment.id, "content": "answer"},
    ).json()["submission"]["id"]
    for grade in (101, -1):
        r = admin_client.put(f"/api/submissions/{sub_id}/grade", json={"grade": grade})
        assert r.status_code == 400
        assert r.json()["details"][0]["field"] == "grade"


def test_student_cannot_grade(student_client, db, student):
    assignment = _setup(db, student)
    sub_id = student_client.post(
        "/api/submissions", json={"assignmentId": assignment.id, "content": "answer"},
    ).json()["submission"]["id"]
    r = student_client.put(f"/api/submissions/{sub_id}/grade", json={"grade": 100})
    assert r.status_code == 403


def test_grade_missing_submission(admin_client):
    r = admin_client.put("/api/submissions/00000000-0000-0000-0000-000000000000/grade", json={"grade": 50})
    assert r.status_code == 404
    assert r.json() == {"error": "Submission not found"}


def test_graded_submission_cannot_be_overwritten(admin_client, student_client, db, student):
    assignment = _setup(db, student)
    sub_id = student_client.post(
        "/api/submissions", json={"assignmentId": assignment.id, "content": "answer"},
    ).json()["submission"]["id"]
    admin_client.put(f"/api/submissions/{sub_id}/grade", json={"grade": 80})

    r = student_client.post("/api/submissions", json={"assignmentId": assignment.id, "content": "late fix"})
    assert r.status_code == 400
    assert r.json() == {"error": "Submission has already been graded"}


def test_list_submissions_scoped_to_student(db, student):
    other = make_user(db, "other@example.com", role=Role.STUDENT)
    assignment = _setup(db, student)
    enroll(db, other, assignment.course)
    for email in (student.email, other.email):
        login(email).post("/api/submissions", json={"assignmentId": assignment.id, "content": email})

    mine = login(student.email).get("/api/submissions").json()["submissions"]
    assert [s["student"]["email"] for s in mine] == [student.email]

    admin = make_user(db, "admin@example.com", role=Role.ADMIN)
    everything = login(admin.email).get("/api/submissions", params={"assignmentId": assignment.id})
    assert len(everything.json()["submissions"]) == 2
