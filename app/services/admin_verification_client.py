"""
Dashboard-side client for the admin verification gate.

Wraps POST /api/v1/admin/verify-code the way the admin dashboard uses it:
normalizes the typed code, keeps at most one request in flight, and turns
the server's answer into an inline error plus a toast notification.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

VERIFY_PATH = f"{settings.API_V1_STR}/admin/verify-code"

EMPTY_CODE_MESSAGE = "Please enter verification code"
INVALID_CODE_MESSAGE = "Invalid verification code"
TRANSPORT_ERROR_MESSAGE = "An error occurred during verification"
IN_FLIGHT_MESSAGE = "Verification already in progress"


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"


@dataclass
class VerificationOutcome:
    """Result of one submit() call."""
    success: bool
    error: Optional[str] = None
    notification: Optional[Notification] = None
    admin_name: Optional[str] = None
    admin_role: Optional[str] = None
    transition_delay: float = 0.0
    request_sent: bool = False


class AdminVerificationClient:
    """
    Submits admin verification codes for one signed-in dashboard session.

    Args:
        access_token: Bearer token of the signed-in admin
        base_url: API origin, ignored when http_client is given
        http_client: Pre-built httpx.Client (a FastAPI TestClient works too)
        transition_delay: Pause before the authorized view is shown
        sleep: Used to wait out transition_delay before on_verified runs
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "http://localhost:8000",
        http_client: Optional[httpx.Client] = None,
        transition_delay: Optional[float] = None,
        timeout: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.access_token = access_token
        self._owns_client = http_client is None
        self.client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self.transition_delay = (
            settings.VERIFICATION_TRANSITION_DELAY_SECONDS if transition_delay is None else transition_delay
        )
        self._sleep = sleep
        self._lock = threading.Lock()

    @property
    def is_verifying(self) -> bool:
        return self._lock.locked()

    @staticmethod
    def normalize(raw_code: Optional[str]) -> str:
        return (raw_code or "").strip().upper()

    def submit(
        self,
        raw_code: Optional[str],
        on_verified: Optional[Callable[[VerificationOutcome], None]] = None,
    ) -> VerificationOutcome:
        """
        Verify a typed code.

        On success, waits transition_delay and then calls on_verified with the
        outcome. Nothing is sent for an empty code or while another submit is
        still outstanding.
        """
        code = self.normalize(raw_code)
        if not code:
            return VerificationOutcome(success=False, error=EMPTY_CODE_MESSAGE)

        if not self._lock.acquire(blocking=False):
            return VerificationOutcome(success=False, error=IN_FLIGHT_MESSAGE)

        try:
            outcome = self._post(code)
        finally:
            self._lock.release()

        if outcome.success and on_verified is not None:
            self._sleep(outcome.transition_delay)
            on_verified(outcome)
        return outcome

    def _post(self, code: str) -> VerificationOutcome:
        try:
            response = self.client.post(
                VERIFY_PATH,
                json={"verificationCode": code},
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Admin verification request failed: {e}")
            return VerificationOutcome(
                success=False,
                error=TRANSPORT_ERROR_MESSAGE,
                notification=Notification(
                    title="Error",
                    description="Failed to verify code. Please try again.",
                    variant="destructive",
                ),
                request_sent=True,
            )

        if response.is_success and isinstance(data, dict) and data.get("success"):
            admin = data.get("admin") or {}
            name = admin.get("name", "")
            return VerificationOutcome(
                success=True,
                notification=Notification(
                    title="Verification Successful",
                    description=f"Welcome, {name}",
                ),
                admin_name=name,
                admin_role=admin.get("role"),
                transition_delay=self.transition_delay,
                request_sent=True,
            )

        error = data.get("error") if isinstance(data, dict) else None
        return VerificationOutcome(
            success=False,
            error=error or INVALID_CODE_MESSAGE,
            notification=Notification(
                title="Verification Failed",
                description="The verification code is incorrect",
                variant="destructive",
            ),
            request_sent=True,
        )

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
