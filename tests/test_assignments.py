from datetime import datetime, timezone

from conftest import make_user, make_course, make_assignment, enroll, login
from portal.domain.entities import Role


def test_create_assignment(admin_client, db):
    course = make_course(db)
    r = admin_client.post("/api/assignments", json={
        "courseId": course.id,
        "title": "Essay",
        "dueDate": "2030-01-15T12:00:00Z",
        "fileUrl": "",
    })
    assert r.status_code == 201
    assignment = r.json()["assignment"]
    assert assignment["courseId"] == course.id
    assert assignment["dueDate"].startswith("2030-01-15T12:00:00")
    # пустая строка сохраняется как null
    assert assignment["fileUrl"] is None


def test_create_assignment_for_missing_course(admin_client):
    r = admin_client.post("/api/assignments", json={
        "courseId": "00000000-0000-0000-0000-000000000000", "title": "Essay",
    })
    assert r.status_code == 404


def test_student_cannot_create_assignment(student_client, db):
    course = make_course(db)
    r = student_client.post("/api/assignments", json={"courseId": course.id, "title": "Essay"})
    assert r.status_code == 403


def test_non_enrolled_student_forbidden(student_client, db):
    """Студент без записи на курс не видит его задания"""
    course = make_course(db)
    assignment = make_assignment(db, course)
    r = student_client.get(f"/api/assignments/{assignment.id}")
    assert r.status_code == 403
    assert r.json() == {"error": "Not enrolled in this course"}
    r = student_client.get("/api/assignments", params={"courseId": course.id})
    assert r.status_code == 403


def test_enrolled_student_lists_assignments(student_client, db, student):
    course = make_course(db)
    make_assignment(db, course, title="Homework 1")
    enroll(db, student, course)
    r = student_client.get("/api/assignments", params={"courseId": course.id})
    assert r.status_code == 200
    assert [a["title"] for a in r.json()["assignments"]] == ["Homework 1"]


def test_student_must_pass_course_id(student_client):
    r = student_client.get("/api/assignments")
    assert r.status_code == 400
    assert r.json()["error"] == "courseId is required"


def test_admin_lists_all_assignments(admin_client, db):
    make_assignment(db, make_course(db, code="CS101"))
    make_assignment(db, make_course(db, code="CS102", name="Data Structures"))
    r = admin_client.get("/api/assignments")
    assert len(r.json()["assignments"]) == 2


def test_assignment_detail_shows_only_own_submission(db, student):
    other = make_user(db, "other@example.com", role=Role.STUDENT)
    course = make_course(db)
    assignment = make_assignment(db, course)
    enroll(db, student, course)
    enroll(db, other, course)
    for email in (student.email, other.email):
        r = login(email).post("/api/submissions", json={"assignmentId": assignment.id, "content": email})
        assert r.status_code == 201

    detail = login(student.email).get(f"/api/assignments/{assignment.id}").json()["assignment"]
    assert detail["course"]["code"] == "CS101"
    assert [s["content"] for s in detail["submissions"]] == [student.email]

    admin = make_user(db, "admin@example.com", role=Role.ADMIN)
    detail = login(admin.email).get(f"/api/assignments/{assignment.id}").json()["assignment"]
    assert len(detail["submissions"]) == 2


def test_assignment_not_found(admin_client):
    r = admin_client.get("/api/assignments/00000000-0000-0000-0000-000000000000")
    assert r.status_code == 404
    assert r.json() == {"error": "Assignment not found"}


def test_update_and_delete_assignment(admin_client, db):
    assignment = make_assignment(db, make_course(db))
    r = admin_client.put(f"/api/assignments/{assignment.id}", json={"title": "Homework 1 (revised)"})
    assert r.status_code == 200
    assert r.json()["assignment"]["title"] == "Homework 1 (revised)"
    r = admin_client.delete(f"/api/assignments/{assignment.id}")
    assert r.json() == {"message": "Assignment deleted successfully"}
    assert admin_client.get(f"/api/assignments/{assignment.id}").status_code == 404


def test_due_date_with_offset_stored_as_utc(admin_client, db):
    """Смещение часового пояса не теряется при записи"""
    course = make_course(db)
    r = admin_client.post("/api/assignments", json={
        "courseId": course.id, "title": "Essay", "dueDate": "2030-01-01T10:00:00+05:00",
    })
    assert r.status_code == 201
    assert r.json()["assignment"]["dueDate"].startswith("2030-01-01T05:00:00")

    stored = admin_client.get(f"/api/assignments/{r.json()['assignment']['id']}").json()["assignment"]
    assert stored["dueDate"].startswith("2030-01-01T05:00:00")


def test_undated_assignments_listed_last(student_client, db, student):
    course = make_course(db)
    enroll(db, student, course)
    make_assignment(db, course, title="No deadline")
    make_assignment(db, course, title="Late", due_date=datetime(2030, 6, 1, tzinfo=timezone.utc))
    make_assignment(db, course, title="Early", due_date=datetime(2030, 1, 1, tzinfo=timezone.utc))

    listed = student_client.get("/api/assignments", params={"courseId": course.id}).json()["assignments"]
    assert [a["title"] for a in listed] == ["Early", "Late", "No deadline"]

    detail = student_client.get(f"/api/courses/{course.id}").json()["course"]
    assert [a["title"] for a in detail["assignments"]] == ["Early", "Late", "No deadline"]
