"""
Tests for the dashboard verification client.
"""

import json

import httpx
import pytest

from app.core import admin_verification
from app.services.admin_verification_client import (
    EMPTY_CODE_MESSAGE,
    IN_FLIGHT_MESSAGE,
    INVALID_CODE_MESSAGE,
    TRANSPORT_ERROR_MESSAGE,
    AdminVerificationClient,
)


def failing_transport(request):
    raise AssertionError("No request should have been sent")


def make_client(handler, **kwargs):
    http_client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://portal")
    return AdminVerificationClient("token", http_client=http_client, sleep=lambda _: None, **kwargs)


class TestAgainstApi:
    """Client talking to the real app through TestClient"""

    def test_success_welcomes_admin(self, client, db_session, admin, auth_headers):
        admin_verification.issue_admin_code(db_session, admin_id=admin.id, issued_by=admin, code="KARAGAS2024")
        token = auth_headers(admin)["Authorization"].split()[1]
        verifier = AdminVerificationClient(token, http_client=client, sleep=lambda _: None)

        opened = []
        outcome = verifier.submit("  karagas2024 ", on_verified=opened.append)

        assert outcome.success is True
        assert outcome.admin_name == "Gagana Manjula"
        assert outcome.admin_role == "admin"
        assert outcome.notification.description == "Welcome, Gagana Manjula"
        assert outcome.transition_delay == 0.5
        assert opened == [outcome]

    def test_wrong_code_shows_server_error(self, client, db_session, admin, auth_headers):
        admin_verification.issue_admin_code(db_session, admin_id=admin.id, issued_by=admin, code="KARAGAS2024")
        token = auth_headers(admin)["Authorization"].split()[1]
        verifier = AdminVerificationClient(token, http_client=client, sleep=lambda _: None)

        opened = []
        outcome = verifier.submit("wrongcode", on_verified=opened.append)

        assert outcome.success is False
        assert outcome.error == "Invalid verification code"
        assert outcome.notification.title == "Verification Failed"
        assert outcome.notification.variant == "destructive"
        assert opened == []

    def test_short_code_reports_format_error(self, client, admin, auth_headers):
        token = auth_headers(admin)["Authorization"].split()[1]
        verifier = AdminVerificationClient(token, http_client=client)

        outcome = verifier.submit("ab")

        assert outcome.success is False
        assert outcome.error == "Invalid code format"


class TestClientBehaviour:
    """Client logic against a mocked transport"""

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input_sends_nothing(self, raw):
        verifier = make_client(failing_transport)

        outcome = verifier.submit(raw)

        assert outcome.success is False
        assert outcome.error == EMPTY_CODE_MESSAGE
        assert outcome.request_sent is False

    def test_code_is_trimmed_and_upper_cased(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "admin": {"name": "Ada Admin", "role": "admin"}})

        make_client(handler).submit("  abc123xyz  ")

        assert len(seen) == 1
        assert seen[0].url.path == "/api/v1/admin/verify-code"
        assert seen[0].headers["Authorization"] == "Bearer token"
        assert json.loads(seen[0].content) == {"verificationCode": "ABC123XYZ"}

    def test_one_request_in_flight(self):
        verifier = make_client(failing_transport)
        verifier._lock.acquire()
        try:
            assert verifier.is_verifying is True
            outcome = verifier.submit("KARAGAS2024")
        finally:
            verifier._lock.release()

        assert outcome.error == IN_FLIGHT_MESSAGE
        assert outcome.request_sent is False
        assert verifier.is_verifying is False

    def test_failure_without_error_uses_fallback(self):
        verifier = make_client(lambda request: httpx.Response(401, json={"success": False}))

        outcome = verifier.submit("KARAGAS2024")

        assert outcome.error == INVALID_CODE_MESSAGE
        assert outcome.request_sent is True

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        outcome = make_client(handler).submit("KARAGAS2024")

        assert outcome.success is False
        assert outcome.error == TRANSPORT_ERROR_MESSAGE
        assert outcome.notification.variant == "destructive"

    def test_non_json_response(self):
        outcome = make_client(lambda request: httpx.Response(502, text="Bad gateway")).submit("KARAGAS2024")

        assert outcome.error == TRANSPORT_ERROR_MESSAGE

    def test_transition_delay_before_opening(self):
        waits = []
        http_client = httpx.Client(
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"success": True, "admin": {"name": "Ada Admin", "role": "admin"}})
            ),
            base_url="http://portal",
        )
        verifier = AdminVerificationClient("token", http_client=http_client, sleep=waits.append, transition_delay=0.25)

        verifier.submit("KARAGAS2024", on_verified=lambda outcome: waits.append("opened"))

        assert waits == [0.25, "opened"]
