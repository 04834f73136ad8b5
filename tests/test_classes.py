"""
Tests for classes, enrollment and attendance.

Tests:
- Class creation and visibility
- Enrollment
- Attendance sheets and summaries
- Student and parent attendance views
"""

from datetime import date

from app.crud import school_class as class_crud
from app.models.attendance import AttendanceRecord
from app.models.user import UserRole


def create_class(client, user, auth_headers, **overrides):
    body = {"name": "Physics 10A", "subject": "Physics", "grade_level": "10"}
    body.update(overrides)
    return client.post("/api/v1/classes/", json=body, headers=auth_headers(user))


def enrolled_class(db_session, teacher, *students):
    school_class = class_crud.create(db_session, "Physics 10A", "Physics", "10", teacher.id)
    class_crud.enroll(db_session, school_class, [s.id for s in students])
    return school_class


class TestClasses:
    """Test class management"""

    def test_teacher_creates_class(self, client, teacher, auth_headers):
        response = create_class(client, teacher, auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["teacher_id"] == str(teacher.id)
        assert len(data["class_code"]) == class_crud.CLASS_CODE_LENGTH

    def test_admin_assigns_teacher(self, client, admin, teacher, auth_headers):
        response = create_class(client, admin, auth_headers, teacher_id=str(teacher.id))

        assert response.status_code == 201
        assert response.json()["teacher_id"] == str(teacher.id)

    def test_admin_must_assign_a_teacher_account(self, client, admin, student, auth_headers):
        response = create_class(client, admin, auth_headers, teacher_id=str(student.id))

        assert response.status_code == 400

    def test_student_cannot_create_class(self, client, student, auth_headers):
        response = create_class(client, student, auth_headers)

        assert response.status_code == 403

    def test_class_lists_by_role(self, client, db_session, teacher, student, make_user, auth_headers):
        other_teacher = make_user(UserRole.TEACHER)
        enrolled_class(db_session, teacher, student)
        class_crud.create(db_session, "Chemistry 11B", "Chemistry", "11", other_teacher.id)

        teacher_view = client.get("/api/v1/classes/", headers=auth_headers(teacher)).json()
        student_view = client.get("/api/v1/classes/", headers=auth_headers(student)).json()

        assert [c["name"] for c in teacher_view] == ["Physics 10A"]
        assert [c["name"] for c in student_view] == ["Physics 10A"]

    def test_outsider_cannot_view_class(self, client, db_session, teacher, make_user, auth_headers):
        school_class = enrolled_class(db_session, teacher)
        outsider = make_user(UserRole.STUDENT)

        response = client.get(f"/api/v1/classes/{school_class.id}", headers=auth_headers(outsider))

        assert response.status_code == 403


class TestEnrollment:
    """Test roster management"""

    def test_enroll_and_unenroll(self, client, db_session, teacher, student, auth_headers):
        school_class = class_crud.create(db_session, "Physics 10A", "Physics", "10", teacher.id)

        response = client.post(
            f"/api/v1/classes/{school_class.id}/students",
            json={"student_ids": [str(student.id)]},
            headers=auth_headers(teacher)
        )
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [str(student.id)]

        response = client.delete(
            f"/api/v1/classes/{school_class.id}/students/{student.id}",
            headers=auth_headers(teacher)
        )
        assert response.status_code == 200
        assert class_crud.get_roster(db_session, school_class.id) == []

    def test_reenrolling_reactivates(self, db_session, teacher, student):
        school_class = enrolled_class(db_session, teacher, student)
        class_crud.unenroll(db_session, school_class, student.id)

        class_crud.enroll(db_session, school_class, [student.id])

        assert [s.id for s in class_crud.get_roster(db_session, school_class.id)] == [student.id]

    def test_only_students_can_be_enrolled(self, client, db_session, teacher, parent, auth_headers):
        school_class = class_crud.create(db_session, "Physics 10A", "Physics", "10", teacher.id)

        response = client.post(
            f"/api/v1/classes/{school_class.id}/students",
            json={"student_ids": [str(parent.id)]},
            headers=auth_headers(teacher)
        )

        assert response.status_code == 400

    def test_other_teacher_cannot_manage(self, client, db_session, teacher, student, make_user, auth_headers):
        school_class = enrolled_class(db_session, teacher)
        other_teacher = make_user(UserRole.TEACHER)

        response = client.post(
            f"/api/v1/classes/{school_class.id}/students",
            json={"student_ids": [str(student.id)]},
            headers=auth_headers(other_teacher)
        )

        assert response.status_code == 403


class TestClassAttendance:
    """Test attendance sheets"""

    def test_mark_attendance(self, client, db_session, teacher, student, make_user, auth_headers):
        classmate = make_user(UserRole.STUDENT)
        school_class = enrolled_class(db_session, teacher, student, classmate)

        response = client.post(
            f"/api/v1/classes/{school_class.id}/attendance",
            json={
                "attendance_date": "2026-03-02",
                "records": [
                    {"student_id": str(student.id), "status": "present"},
                    {"student_id": str(classmate.id), "status": "absent", "notes": "Sick"},
                ],
            },
            headers=auth_headers(teacher)
        )

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary == {"present": 1, "absent": 1, "late": 0, "excused": 0, "total": 2, "percentage": 50}

    def test_resubmitting_replaces_sheet(self, client, db_session, teacher, student, auth_headers):
        school_class = enrolled_class(db_session, teacher, student)
        url = f"/api/v1/classes/{school_class.id}/attendance"

        for status in ("absent", "late"):
            response = client.post(
                url,
                json={"attendance_date": "2026-03-02", "records": [{"student_id": str(student.id), "status": status}]},
                headers=auth_headers(teacher)
            )
            assert response.status_code == 200

        records = db_session.query(AttendanceRecord).all()
        assert len(records) == 1
        assert records[0].status.value == "late"

    def test_unmarked_students_count_as_present(self, client, db_session, teacher, student, make_user, auth_headers):
        classmate = make_user(UserRole.STUDENT)
        school_class = enrolled_class(db_session, teacher, student, classmate)
        client.post(
            f"/api/v1/classes/{school_class.id}/attendance",
            json={"attendance_date": "2026-03-02", "records": [{"student_id": str(student.id), "status": "absent"}]},
            headers=auth_headers(teacher)
        )

        response = client.get(
            f"/api/v1/classes/{school_class.id}/attendance",
            params={"attendance_date": "2026-03-02"},
            headers=auth_headers(teacher)
        )

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["present"] == 1
        assert summary["absent"] == 1
        assert summary["percentage"] == 50

    def test_student_not_enrolled(self, client, db_session, teacher, student, make_user, auth_headers):
        school_class = enrolled_class(db_session, teacher, student)
        outsider = make_user(UserRole.STUDENT)

        response = client.post(
            f"/api/v1/classes/{school_class.id}/attendance",
            json={"attendance_date": "2026-03-02", "records": [{"student_id": str(outsider.id), "status": "present"}]},
            headers=auth_headers(teacher)
        )

        assert response.status_code == 400
        assert response.json()["error"] == f"Students not enrolled in this class: {outsider.id}"

    def test_duplicate_student_on_sheet(self, client, db_session, teacher, student, auth_headers):
        school_class = enrolled_class(db_session, teacher, student)
        entry = {"student_id": str(student.id), "status": "present"}

        response = client.post(
            f"/api/v1/classes/{school_class.id}/attendance",
            json={"attendance_date": "2026-03-02", "records": [entry, entry]},
            headers=auth_headers(teacher)
        )

        assert response.status_code == 400


class TestAttendanceViews:
    """Test student and parent views"""

    def mark(self, client, school_class, teacher, student, day, status, auth_headers):
        client.post(
            f"/api/v1/classes/{school_class.id}/attendance",
            json={"attendance_date": day, "records": [{"student_id": str(student.id), "status": status}]},
            headers=auth_headers(teacher)
        )

    def test_student_sees_own_history(self, client, db_session, teacher, student, auth_headers):
        school_class = enrolled_class(db_session, teacher, student)
        for day, status in [("2026-03-02", "present"), ("2026-03-03", "late"), ("2026-03-04", "absent")]:
            self.mark(client, school_class, teacher, student, day, status, auth_headers)

        response = client.get("/api/v1/attendance/me", headers=auth_headers(student))

        assert response.status_code == 200
        data = response.json()
        assert [r["attendance_date"] for r in data["records"]] == ["2026-03-04", "2026-03-03", "2026-03-02"]
        assert data["summary"]["percentage"] == 67

    def test_parent_sees_linked_child_month(self, client, db_session, teacher, student, parent, auth_headers):
        school_class = enrolled_class(db_session, teacher, student)
        class_crud.link_parent(db_session, parent.id, student.id)
        self.mark(client, school_class, teacher, student, "2026-03-02", "present", auth_headers)
        self.mark(client, school_class, teacher, student, "2026-04-01", "absent", auth_headers)

        response = client.get(
            f"/api/v1/attendance/students/{student.id}",
            params={"year": 2026, "month": 3},
            headers=auth_headers(parent)
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["records"]) == 1
        assert data["summary"]["percentage"] == 100

    def test_parent_cannot_see_other_children(self, client, student, parent, auth_headers):
        response = client.get(f"/api/v1/attendance/students/{student.id}", headers=auth_headers(parent))

        assert response.status_code == 403

    def test_parent_lists_children(self, client, db_session, student, parent, auth_headers):
        class_crud.link_parent(db_session, parent.id, student.id, "father")

        response = client.get("/api/v1/attendance/children", headers=auth_headers(parent))

        assert response.status_code == 200
        assert response.json() == [{
            "id": str(student.id),
            "first_name": "Sam",
            "last_name": "Student",
            "student_number": "S-1001",
            "grade": "10",
            "relationship_type": "father",
        }]

    def test_month_view_requires_student(self, client, teacher, auth_headers):
        response = client.get(f"/api/v1/attendance/students/{teacher.id}", headers=auth_headers(teacher))

        assert response.status_code == 404


def test_month_range_handles_leap_years():
    from app.crud.attendance import month_range

    assert month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(2026, 12) == (date(2026, 12, 1), date(2026, 12, 31))
