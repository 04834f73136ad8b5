"""
Unit tests for authentication endpoints.

Tests:
- User registration and password policy
- Login, approval gate and inactive accounts
- Token refresh
- Current user profile
- Password change and forced resets
"""

from app.core.security import create_refresh_token, decode_token
from app.models.user import User, UserRole

from conftest import DEFAULT_PASSWORD


def register(client, **overrides):
    body = {
        "email": "new.student@school.edu",
        "password": "SecurePass123!",
        "first_name": "Nia",
        "last_name": "Newcomer",
        "role": "student",
    }
    body.update(overrides)
    return client.post("/api/v1/auth/register", json=body)


class TestUserRegistration:
    """Test user registration endpoint"""

    def test_register_creates_pending_account(self, client, db_session):
        response = register(client)

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "new.student@school.edu"
        assert data["user"]["approved"] is False
        assert data["user"]["role"] == "student"
        assert "pending approval" in data["message"]

        user = db_session.query(User).filter(User.email == "new.student@school.edu").first()
        assert user is not None
        assert user.hashed_password != "SecurePass123!"

    def test_register_duplicate_email(self, client, student):
        response = register(client, email="STUDENT@school.edu")

        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "Email already registered"}

    def test_register_weak_password(self, client):
        response = register(client, password="weakpass")

        assert response.status_code == 400
        assert response.json()["error"] == "Password must contain at least one uppercase letter"

    def test_register_short_password(self, client):
        response = register(client, password="Ab1")

        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at least 8 characters long"

    def test_register_cannot_pick_admin_role(self, client):
        response = register(client, role="admin")

        assert response.status_code == 422

    def test_register_invalid_email(self, client):
        response = register(client, email="not-an-email")

        assert response.status_code == 422


class TestLogin:
    """Test login endpoint"""

    def test_login_success(self, client, db_session, teacher):
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "teacher@school.edu", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "teacher"

        payload = decode_token(data["access_token"])
        assert payload["sub"] == str(teacher.id)
        assert payload["role"] == "teacher"
        assert payload["type"] == "access"

        db_session.refresh(teacher)
        assert teacher.last_login_at is not None

    def test_login_wrong_password(self, client, teacher):
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "teacher@school.edu", "password": "WrongPass123!"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Incorrect email or password"

    def test_login_unknown_email(self, client):
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "ghost@school.edu", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 401

    def test_unapproved_user_cannot_login(self, client, make_user):
        make_user(UserRole.STUDENT, email="pending@school.edu", approved=False)

        response = client.post(
            "/api/v1/auth/login",
            json={"username": "pending@school.edu", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Account pending approval"

    def test_unapproved_admin_can_login(self, client, make_user):
        make_user(UserRole.ADMIN, email="fresh.admin@school.edu", approved=False)

        response = client.post(
            "/api/v1/auth/login",
            json={"username": "fresh.admin@school.edu", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200

    def test_inactive_user_cannot_login(self, client, make_user):
        make_user(UserRole.TEACHER, email="gone@school.edu", is_active=False)

        response = client.post(
            "/api/v1/auth/login",
            json={"username": "gone@school.edu", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 403


class TestTokens:
    """Test token refresh and profile"""

    def test_refresh_returns_new_pair(self, client, student):
        refresh = create_refresh_token(data={"sub": str(student.id)})

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 200
        data = response.json()
        assert decode_token(data["access_token"])["type"] == "access"
        assert decode_token(data["refresh_token"])["type"] == "refresh"
        assert data["user"] is None

    def test_access_token_is_not_a_refresh_token(self, client, student, auth_headers):
        access = auth_headers(student)["Authorization"].split()[1]

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": access})

        assert response.status_code == 401

    def test_refresh_token_cannot_call_api(self, client, student):
        refresh = create_refresh_token(data={"sub": str(student.id)})

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {refresh}"})

        assert response.status_code == 401

    def test_me_works_for_pending_users(self, client, make_user, auth_headers):
        pending = make_user(UserRole.PARENT, approved=False)

        response = client.get("/api/v1/auth/me", headers=auth_headers(pending))

        assert response.status_code == 200
        assert response.json()["approved"] is False

    def test_pending_users_cannot_use_portal(self, client, make_user, auth_headers):
        pending = make_user(UserRole.STUDENT, approved=False)

        response = client.get("/api/v1/classes/", headers=auth_headers(pending))

        assert response.status_code == 403
        assert response.json()["error"] == "Account pending approval"

    def test_missing_token_has_www_authenticate(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


class TestPasswordChange:
    """Test POST /auth/change-password and the forced-reset gate"""

    def change(self, client, user, auth_headers, current=DEFAULT_PASSWORD, new="FreshStart456!"):
        return client.post(
            "/api/v1/auth/change-password",
            json={"current_password": current, "new_password": new},
            headers=auth_headers(user)
        )

    def test_flagged_user_is_locked_out_until_change(self, client, db_session, make_user, auth_headers):
        flagged = make_user(UserRole.STUDENT, password_reset_required=True)

        response = client.get("/api/v1/classes/", headers=auth_headers(flagged))
        assert response.status_code == 403
        assert response.json()["error"] == "Password change required"

        me = client.get("/api/v1/auth/me", headers=auth_headers(flagged)).json()
        assert me["password_reset_required"] is True

        response = self.change(client, flagged, auth_headers)
        assert response.status_code == 200
        assert response.json()["password_reset_required"] is False

        assert client.get("/api/v1/classes/", headers=auth_headers(flagged)).status_code == 200

        response = client.post(
            "/api/v1/auth/login",
            json={"username": flagged.email, "password": "FreshStart456!"}
        )
        assert response.status_code == 200

    def test_flagged_admin_locked_out(self, client, make_user, auth_headers):
        flagged = make_user(UserRole.ADMIN, password_reset_required=True)

        response = client.get("/api/v1/admin/users", headers=auth_headers(flagged))

        assert response.status_code == 403
        assert response.json()["error"] == "Password change required"

    def test_wrong_current_password(self, client, student, auth_headers):
        response = self.change(client, student, auth_headers, current="NotMyPassword1!")

        assert response.status_code == 400
        assert response.json()["error"] == "Current password is incorrect"

    def test_new_password_must_differ(self, client, student, auth_headers):
        response = self.change(client, student, auth_headers, new=DEFAULT_PASSWORD)

        assert response.status_code == 400

    def test_new_password_follows_policy(self, client, student, auth_headers):
        response = self.change(client, student, auth_headers, new="short")

        assert response.status_code == 400
