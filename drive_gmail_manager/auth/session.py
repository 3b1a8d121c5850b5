"""In-memory sign-in session and bootstrap status.

Tokens obtained from the OAuth flow are held on the ``Session`` object for
the life of the process and are never persisted. The session also tracks
the bootstrap readiness state, which is bounded by a deadline so callers
never wait forever on a step that hangs.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from drive_gmail_manager.auth.oauth import OAuthManager
from drive_gmail_manager.config import BOOTSTRAP_TIMEOUT_SECONDS
from drive_gmail_manager.utils.errors import AuthenticationError
from drive_gmail_manager.utils.user_messages import report_error

logger = logging.getLogger(__name__)

InitStep = Callable[[], Awaitable[object]]


class InitStatus(str, Enum):
    """Readiness of the session bootstrap."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_settled(self) -> bool:
        return self is not InitStatus.PENDING


class Session:
    """Signed-in state for one user, held in process memory.

    Attributes:
        _oauth: OAuth manager used for sign-in and revocation.
        _credentials: Current credentials, or None when signed out.
        _status: Bootstrap readiness.
    """

    def __init__(
        self,
        oauth: OAuthManager,
        init_timeout: float = BOOTSTRAP_TIMEOUT_SECONDS,
    ) -> None:
        self._oauth = oauth
        self._init_timeout = init_timeout
        self._credentials: Credentials | None = None
        self._signed_in_at: datetime | None = None
        self._status = InitStatus.PENDING
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    @property
    def oauth(self) -> OAuthManager:
        return self._oauth

    @property
    def status(self) -> InitStatus:
        return self._status

    @property
    def is_settled(self) -> bool:
        return self._status.is_settled

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._credentials is not None

    # =========================================================================
    # Bootstrap
    # =========================================================================

    async def _run_steps(self, steps: Sequence[InitStep]) -> None:
        for step in steps:
            await step()

    async def initialize(
        self,
        steps: Sequence[InitStep] = (),
        timeout: float | None = None,
    ) -> InitStatus:
        """Run bootstrap steps in order under a single deadline.

        Args:
            steps: Zero-argument coroutine functions run sequentially.
            timeout: Deadline in seconds; defaults to the session's
                configured bootstrap timeout.

        Returns:
            InitStatus.READY once every step has completed.

        Raises:
            AuthenticationError: If the deadline expires first
                ("Initialization timed out").
            Exception: Whatever a failing step raised; status becomes FAILED.
        """
        deadline = self._init_timeout if timeout is None else timeout
        self._status = InitStatus.PENDING

        try:
            await asyncio.wait_for(self._run_steps(steps), timeout=deadline)
        except TimeoutError:
            self._status = InitStatus.TIMED_OUT
            logger.error(
                "Session initialization timed out after %.1f seconds", deadline
            )
            raise AuthenticationError(
                "Initialization timed out",
                details={"timeout_seconds": deadline},
            ) from None
        except Exception as e:
            self._status = InitStatus.FAILED
            report_error("Session initialization failed", e)
            raise

        self._status = InitStatus.READY
        logger.info("Session initialized")
        return self._status

    # =========================================================================
    # Sign-in state
    # =========================================================================

    def sign_in(self, token_data: Mapping[str, Any]) -> None:
        """Adopt tokens from a completed OAuth exchange."""
        credentials = self._oauth.get_credentials(token_data)
        expiry = token_data.get("expiry")
        if isinstance(expiry, str):
            try:
                # google-auth compares expiry against a naive UTC datetime
                credentials.expiry = (
                    datetime.fromisoformat(expiry).astimezone(UTC).replace(tzinfo=None)
                )
            except ValueError:
                logger.warning("Ignoring unparseable token expiry")

        with self._lock:
            self._credentials = credentials
            self._signed_in_at = datetime.now(UTC)

        logger.info("Signed in")

    async def login(self, timeout: int = 120) -> None:
        """Run the browser consent flow and sign in with the result.

        Raises:
            SecurityError: If the OAuth state does not verify.
            AuthenticationError: If sign-in fails or times out.
        """
        token_data = await asyncio.to_thread(self._oauth.run_local_server, timeout)
        self.sign_in(token_data)

    async def logout(self) -> bool:
        """Revoke the access token (best effort) and forget credentials.

        Returns:
            True if Google confirmed the revocation.
        """
        with self._lock:
            credentials = self._credentials
            self._credentials = None
            self._signed_in_at = None

        if credentials is None or not credentials.token:
            return False

        revoked = await asyncio.to_thread(self._oauth.revoke_token, credentials.token)
        logger.info("Signed out (token revoked: %s)", revoked)
        return revoked

    def get_credentials(self) -> Credentials:
        """Get valid credentials, refreshing an expired token if possible.

        Raises:
            AuthenticationError: If not signed in or refresh fails.
        """
        with self._lock:
            credentials = self._credentials

        if credentials is None:
            raise AuthenticationError(
                "Not signed in",
                details={"hint": "Use auth_login to sign in with Google"},
            )

        if credentials.valid:
            return credentials

        with self._refresh_lock:
            # Another thread may have refreshed while we waited
            if credentials.valid:
                return credentials

            if not credentials.refresh_token:
                raise AuthenticationError(
                    "Your session has expired. Please sign in again."
                )

            try:
                credentials.refresh(Request())
            except RefreshError as e:
                logger.warning("Token refresh failed: %s", type(e).__name__)
                with self._lock:
                    self._credentials = None
                raise AuthenticationError(
                    "Your session has expired. Please sign in again."
                ) from e

        logger.debug("Refreshed access token")
        return credentials

    def describe(self) -> dict[str, object]:
        """Summarize session state for status reporting."""
        with self._lock:
            credentials = self._credentials
            signed_in_at = self._signed_in_at

        info: dict[str, object] = {
            "authenticated": credentials is not None,
            "init_status": self._status.value,
            "oauth_configured": self._oauth.is_configured,
            "sign_in_pending": self._oauth.guard.has_pending(),
        }
        if credentials is not None:
            info["scopes"] = list(credentials.scopes or [])
            info["token_valid"] = credentials.valid
        if signed_in_at is not None:
            info["signed_in_at"] = signed_in_at.isoformat()
        return info


__all__ = ["InitStatus", "InitStep", "Session"]
