"""
Tests for the admin verification gate.

Tests:
- POST /admin/verify-code outcomes and error envelope
- Attempt audit trail
- Code issuing, listing and deactivation
- Attempt log purge
"""

import pytest
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

from app.core import admin_verification
from app.core.database import as_utc
from app.core.exceptions import ValidationError
from app.models.admin_verification import AdminVerificationAttempt, AdminVerificationCode
from app.models.user import UserRole

VERIFY_URL = "/api/v1/admin/verify-code"


def issue(db_session, admin, code, **kwargs):
    return admin_verification.issue_admin_code(db_session, admin_id=admin.id, issued_by=admin, code=code, **kwargs)


def attempts_for(db_session, admin):
    return db_session.query(AdminVerificationAttempt).filter(
        AdminVerificationAttempt.admin_id == admin.id
    ).all()


class TestVerifyCode:
    """Test POST /admin/verify-code"""

    def test_valid_code_unlocks_admin(self, client, db_session, admin, auth_headers):
        code = issue(db_session, admin, "KARAGAS2024")

        response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {"success": True, "admin": {"name": "Gagana Manjula", "role": "admin"}}

        db_session.refresh(code)
        assert code.last_used_at is not None
        assert code.is_active is True

        attempts = attempts_for(db_session, admin)
        assert len(attempts) == 1
        assert attempts[0].success is True
        assert attempts[0].verification_code == "KARAGAS2024"

    def test_code_is_reusable(self, client, db_session, admin, auth_headers):
        code = issue(db_session, admin, "KARAGAS2024")
        stamps = []

        for _ in range(2):
            response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(admin))
            assert response.status_code == 200
            db_session.refresh(code)
            stamps.append(as_utc(code.last_used_at))

        assert stamps[1] >= stamps[0]
        assert len(attempts_for(db_session, admin)) == 2

    def test_wrong_code(self, client, db_session, admin, auth_headers):
        issue(db_session, admin, "KARAGAS2024")

        response = client.post(VERIFY_URL, json={"verificationCode": "WRONGCODE"}, headers=auth_headers(admin))

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid verification code"}

        attempts = attempts_for(db_session, admin)
        assert len(attempts) == 1
        assert attempts[0].success is False
        assert attempts[0].failure_reason == admin_verification.FAILURE_INVALID_CODE

    def test_malformed_code_is_logged(self, client, db_session, admin, auth_headers):
        response = client.post(VERIFY_URL, json={"verificationCode": "ab"}, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid code format"}

        attempts = attempts_for(db_session, admin)
        assert len(attempts) == 1
        assert attempts[0].failure_reason == admin_verification.FAILURE_INVALID_FORMAT

    def test_lowercase_code_is_not_normalized_by_server(self, client, db_session, admin, auth_headers):
        issue(db_session, admin, "KARAGAS2024")

        response = client.post(VERIFY_URL, json={"verificationCode": "karagas2024"}, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid code format"

    @pytest.mark.parametrize("body", [None, {}, {"verificationCode": ""}, {"verificationCode": 123456}])
    def test_missing_or_non_string_code(self, client, db_session, admin, auth_headers, body):
        if body is None:
            response = client.post(VERIFY_URL, headers=auth_headers(admin))
        else:
            response = client.post(VERIFY_URL, json=body, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid verification code format"}
        assert attempts_for(db_session, admin) == []

    def test_expired_code(self, client, db_session, admin, auth_headers):
        db_session.add(AdminVerificationCode(
            admin_id=admin.id,
            verification_code="OLDCODE2023",
            is_active=True,
            expires_at=datetime.now(timezone.utc) - timedelta(days=1),
        ))
        db_session.commit()

        response = client.post(VERIFY_URL, json={"verificationCode": "OLDCODE2023"}, headers=auth_headers(admin))

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Verification code has expired"}

        attempts = attempts_for(db_session, admin)
        assert len(attempts) == 1
        assert attempts[0].success is False
        assert attempts[0].failure_reason == admin_verification.FAILURE_EXPIRED_CODE

    def test_inactive_code_is_rejected(self, client, db_session, admin, auth_headers):
        code = issue(db_session, admin, "KARAGAS2024")
        code.is_active = False
        db_session.commit()

        response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(admin))

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid verification code"

    def test_other_admins_code_is_rejected(self, client, db_session, admin, owner, auth_headers):
        issue(db_session, owner, "OWNERCODE1")

        response = client.post(VERIFY_URL, json={"verificationCode": "OWNERCODE1"}, headers=auth_headers(admin))

        assert response.status_code == 401

    def test_missing_credentials(self, client):
        response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Missing authorization header"}

    def test_invalid_token(self, client):
        response = client.post(
            VERIFY_URL,
            json={"verificationCode": "KARAGAS2024"},
            headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_non_admin_is_forbidden_without_attempt(self, client, db_session, teacher, auth_headers):
        response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(teacher))

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Access denied. Admin privileges required."}
        assert attempts_for(db_session, teacher) == []

    @pytest.mark.parametrize("headers,status", [
        ({}, 401),
        ({"Authorization": "Bearer not-a-token"}, 401),
    ])
    def test_unparseable_body_still_checks_credentials_first(self, client, headers, status):
        response = client.post(
            VERIFY_URL,
            content=b"{not json",
            headers={"Content-Type": "application/json", **headers}
        )

        assert response.status_code == status
        assert response.json()["success"] is False

    def test_unparseable_body_from_non_admin(self, client, teacher, auth_headers):
        response = client.post(
            VERIFY_URL,
            content=b"{not json",
            headers={"Content-Type": "application/json", **auth_headers(teacher)}
        )

        assert response.status_code == 403

    def test_unparseable_body_counts_as_missing_code(self, client, db_session, admin, auth_headers):
        response = client.post(
            VERIFY_URL,
            content=b"{not json",
            headers={"Content-Type": "application/json", **auth_headers(admin)}
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid verification code format"}
        assert attempts_for(db_session, admin) == []

    def test_storage_failure_returns_generic_error(self, client, db_session, admin, auth_headers, monkeypatch):
        code = issue(db_session, admin, "KARAGAS2024")

        def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", broken_commit)

        response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(admin))

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}

        db_session.refresh(code)
        assert code.last_used_at is None
        assert attempts_for(db_session, admin) == []


class TestIssueCodes:
    """Test verification code management"""

    def test_owner_issues_generated_code(self, client, db_session, owner, admin, auth_headers):
        response = client.post(
            "/api/v1/admin/verification-codes",
            json={"admin_id": str(admin.id)},
            headers=auth_headers(owner)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["admin_id"] == str(admin.id)
        assert data["is_active"] is True
        assert admin_verification.is_valid_code_format(data["verification_code"])
        assert len(data["verification_code"]) == 12

    def test_issuing_deactivates_previous_codes(self, client, db_session, owner, admin, auth_headers):
        old = issue(db_session, admin, "FIRSTCODE1")

        response = client.post(
            "/api/v1/admin/verification-codes",
            json={"admin_id": str(admin.id), "verification_code": "SECONDCODE2"},
            headers=auth_headers(owner)
        )

        assert response.status_code == 201
        db_session.refresh(old)
        assert old.is_active is False

    def test_plain_admin_cannot_issue(self, client, admin, auth_headers):
        response = client.post(
            "/api/v1/admin/verification-codes",
            json={"admin_id": str(admin.id)},
            headers=auth_headers(admin)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied. System owner privileges required."

    def test_codes_only_for_admins(self, client, owner, teacher, auth_headers):
        response = client.post(
            "/api/v1/admin/verification-codes",
            json={"admin_id": str(teacher.id)},
            headers=auth_headers(owner)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Verification codes can only be issued to admins"

    def test_past_expiry_rejected(self, db_session, admin):
        with pytest.raises(ValidationError):
            issue(db_session, admin, "KARAGAS2024", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))

    def test_overview_lists_codes_and_attempts(self, client, db_session, admin, auth_headers):
        issue(db_session, admin, "KARAGAS2024")
        client.post(VERIFY_URL, json={"verificationCode": "WRONGCODE"}, headers=auth_headers(admin))
        client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(admin))

        response = client.get("/api/v1/admin/verification-codes", headers=auth_headers(admin))

        assert response.status_code == 200
        data = response.json()
        assert [c["verification_code"] for c in data["codes"]] == ["KARAGAS2024"]
        assert len(data["recent_attempts"]) == 2
        assert {a["success"] for a in data["recent_attempts"]} == {True, False}

    def test_deactivate_code(self, client, db_session, admin, auth_headers):
        code = issue(db_session, admin, "KARAGAS2024")

        response = client.post(
            f"/api/v1/admin/verification-codes/{code.id}/deactivate",
            headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False

        response = client.post(VERIFY_URL, json={"verificationCode": "KARAGAS2024"}, headers=auth_headers(admin))
        assert response.status_code == 401


class TestAttemptLog:
    """Test attempt retention"""

    def test_purge_removes_only_old_attempts(self, db_session, admin):
        now = datetime.now(timezone.utc)
        db_session.add_all([
            AdminVerificationAttempt(admin_id=admin.id, verification_code="OLDCODE1", success=False, attempted_at=now - timedelta(days=45)),
            AdminVerificationAttempt(admin_id=admin.id, verification_code="NEWCODE1", success=True, attempted_at=now - timedelta(days=1)),
        ])
        db_session.commit()

        deleted = admin_verification.purge_attempts(db_session, older_than_days=30)

        assert deleted == 1
        remaining = attempts_for(db_session, admin)
        assert [a.verification_code for a in remaining] == ["NEWCODE1"]

    def test_generated_codes_match_format(self):
        for _ in range(20):
            assert admin_verification.is_valid_code_format(admin_verification.generate_admin_code())

    def test_role_check_runs_before_code_check(self, db_session, make_user):
        moderator = make_user(UserRole.MODERATOR)
        from app.core.exceptions import AuthorizationError

        with pytest.raises(AuthorizationError):
            admin_verification.verify_admin_code(db_session, moderator, "ab")
        assert attempts_for(db_session, moderator) == []
