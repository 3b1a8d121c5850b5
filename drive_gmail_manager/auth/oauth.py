"""Google OAuth 2.0 authorization for Drive and Gmail access.

Runs the desktop (loopback) flow: a browser is opened on Google's consent
page and a one-shot local HTTP server receives the callback. Every
authorization request carries a fresh single-use ``state`` token from
``OAuthStateGuard``; a callback whose state does not verify aborts the
sign-in with a generic security error.

Security considerations:
- Client credentials come from environment variables only
- The state token is verified before the authorization code is used
- Tokens are kept in memory for the session and never written to disk
"""

from __future__ import annotations

import errno
import logging
import os
import time
import webbrowser
from collections.abc import Mapping
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse

import requests
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from drive_gmail_manager.auth.state import InMemoryStateStore, OAuthStateGuard
from drive_gmail_manager.config import GOOGLE_SCOPES, get_oauth_port
from drive_gmail_manager.utils.errors import AuthenticationError, SecurityError
from drive_gmail_manager.utils.user_messages import SECURITY_MESSAGE

logger = logging.getLogger(__name__)

# Google OAuth endpoints
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URI = "https://oauth2.googleapis.com/revoke"

CALLBACK_PATH = "/oauth/callback"

_PAGE_SUCCESS = (
    b"<html><body><h1>Authentication Successful!</h1>"
    b"<p>You can close this window and return to the application.</p>"
    b"</body></html>"
)
_PAGE_FAILED = (
    b"<html><body><h1>Authentication Failed</h1>"
    b"<p>You can close this window.</p></body></html>"
)
_PAGE_SECURITY = (
    b"<html><body><h1>Security Error</h1>"
    b"<p>Security verification failed. You can close this window.</p>"
    b"</body></html>"
)


def _first(params: Mapping[str, Any], name: str) -> str | None:
    """Get a single query value from parse_qs-style or flat params."""
    value = params.get(name)
    if isinstance(value, list):
        return value[0] if value else None
    return value


class OAuthManager:
    """Manages the Google OAuth 2.0 authorization round trip.

    Attributes:
        _client_id: Google OAuth client ID from environment.
        _client_secret: Google OAuth client secret from environment.
        _redirect_uri: OAuth callback URI for the loopback flow.
        _guard: State guard binding callbacks to requests we made.

    Example:
        >>> manager = OAuthManager()
        >>> if manager.is_configured:
        ...     token_data = manager.run_local_server()
    """

    def __init__(self, guard: OAuthStateGuard | None = None) -> None:
        """Initialize OAuth manager with credentials from environment.

        Args:
            guard: State guard to use; a process-scoped one is created if
                not given.
        """
        self._client_id = os.getenv("GOOGLE_CLIENT_ID")
        self._client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
        self._oauth_port = get_oauth_port()
        self._redirect_uri = os.getenv(
            "GOOGLE_REDIRECT_URI",
            f"http://localhost:{self._oauth_port}{CALLBACK_PATH}",
        )
        self._guard = guard or OAuthStateGuard(InMemoryStateStore())

        if not self._client_id or not self._client_secret:
            logger.warning(
                "OAuth credentials not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET environment variables."
            )

    @property
    def is_configured(self) -> bool:
        """Check if both client ID and secret are set."""
        return bool(self._client_id and self._client_secret)

    @property
    def oauth_port(self) -> int:
        return self._oauth_port

    @property
    def guard(self) -> OAuthStateGuard:
        return self._guard

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise AuthenticationError(
                "OAuth not configured",
                details={
                    "hint": "Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET "
                    "environment variables"
                },
            )

    def _get_client_config(self) -> dict[str, Any]:
        """Build OAuth client configuration for google-auth-oauthlib."""
        # "installed" = Desktop app client type, required for loopback flows
        return {
            "installed": {
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [self._redirect_uri],
            }
        }

    def create_auth_url(self) -> tuple[str, str]:
        """Create the consent URL with a freshly issued state token.

        Returns:
            Tuple of (auth_url, state).

        Raises:
            AuthenticationError: If OAuth is not configured.
        """
        self._require_configured()

        state = self._guard.issue()

        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
            "access_type": "online",
            "prompt": "consent",
        }

        auth_url = f"{GOOGLE_AUTH_URI}?{urlencode(params)}"
        logger.debug("Created auth URL with state: %s", state[:8] + "...")
        return auth_url, state

    def complete_authorization(self, params: Mapping[str, Any]) -> str:
        """Validate callback parameters and return the authorization code.

        The state is verified first, so a forged callback never has its
        error or code acted upon.

        Args:
            params: Callback query parameters (``parse_qs`` output or a
                flat mapping).

        Returns:
            The authorization code.

        Raises:
            SecurityError: If the state is missing, expired or mismatched.
            AuthenticationError: If the user denied access or no code came
                back.
        """
        if not self._guard.verify_state(_first(params, "state")):
            logger.error("OAuth state verification failed - possible CSRF attack")
            raise SecurityError(SECURITY_MESSAGE)

        oauth_error = _first(params, "error")
        if oauth_error:
            logger.error("OAuth error: %s", oauth_error)
            raise AuthenticationError(
                "Sign-in was not completed",
                details={"oauth_error": oauth_error},
            )

        code = _first(params, "code")
        if not code:
            raise AuthenticationError(
                "No authorization code received",
                details={"params": list(params.keys())},
            )

        logger.debug("OAuth callback accepted")
        return code

    def exchange_code(self, code: str) -> dict[str, object]:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the verified callback.

        Returns:
            Token data with access_token, refresh_token, token_uri,
            client_id, scopes and (when known) expiry.

        Raises:
            AuthenticationError: If OAuth is not configured or the
                exchange fails.
        """
        self._require_configured()

        flow = Flow.from_client_config(
            self._get_client_config(),
            scopes=GOOGLE_SCOPES,
            redirect_uri=self._redirect_uri,
        )

        try:
            flow.fetch_token(code=code)
            credentials = flow.credentials

            token_data: dict[str, object] = {
                "access_token": credentials.token,
                "refresh_token": credentials.refresh_token,
                "token_uri": credentials.token_uri,
                "client_id": credentials.client_id,
                "scopes": (
                    list(credentials.scopes) if credentials.scopes else GOOGLE_SCOPES
                ),
            }

            if credentials.expiry:
                token_data["expiry"] = credentials.expiry.isoformat()

            logger.info("Successfully exchanged authorization code for tokens")
            return token_data

        except Exception as e:
            logger.error("Failed to exchange authorization code: %s", type(e).__name__)
            raise AuthenticationError(
                "Failed to exchange authorization code",
                details={"error_type": type(e).__name__},
            ) from e

    def get_credentials(self, token_data: Mapping[str, Any]) -> Credentials:
        """Build a Credentials object from in-memory token data."""
        return Credentials(  # type: ignore[no-untyped-call]
            token=token_data.get("access_token"),
            refresh_token=token_data.get("refresh_token"),
            token_uri=token_data.get("token_uri", GOOGLE_TOKEN_URI),
            client_id=token_data.get("client_id", self._client_id),
            client_secret=self._client_secret,
            scopes=token_data.get("scopes", GOOGLE_SCOPES),
        )

    def revoke_token(self, access_token: str) -> bool:
        """Revoke an access token with Google.

        Returns:
            True if Google accepted the revocation, False otherwise.
        """
        try:
            response = requests.post(
                GOOGLE_REVOKE_URI,
                params={"token": access_token},
                headers={"content-type": "application/x-www-form-urlencoded"},
                timeout=10,
            )
        except requests.RequestException as e:
            logger.warning("Network error revoking token: %s", type(e).__name__)
            return False

        if response.status_code == 200:
            logger.debug("Access token revoked")
            return True

        logger.warning("Token revocation returned HTTP %d", response.status_code)
        return False

    # =========================================================================
    # Local Server Flow
    # =========================================================================

    def _create_server(
        self,
        handler_class: type[BaseHTTPRequestHandler],
        port: int,
        max_attempts: int = 3,
    ) -> tuple[HTTPServer, int]:
        """Create the callback HTTP server, falling back to later ports.

        Raises:
            AuthenticationError: If all port attempts fail.
        """
        for attempt in range(max_attempts):
            try_port = port + attempt
            try:
                server = HTTPServer(("localhost", try_port), handler_class)
                if attempt > 0:
                    logger.info(
                        "Using fallback port %d (port %d was in use)",
                        try_port,
                        port,
                    )
                return server, try_port
            except OSError as e:
                if e.errno == errno.EADDRINUSE or "Address already in use" in str(e):
                    logger.warning(
                        "Port %d in use, trying %d...", try_port, try_port + 1
                    )
                    continue
                raise

        raise AuthenticationError(
            f"Could not bind to ports {port}-{port + max_attempts - 1}. "
            "All ports are in use.",
            details={"attempted_ports": list(range(port, port + max_attempts))},
        )

    def run_local_server(self, timeout: int = 120) -> dict[str, object]:
        """Run the browser consent flow and return token data.

        Args:
            timeout: Seconds to wait for the user to finish. Default 120.

        Returns:
            Token data dictionary.

        Raises:
            SecurityError: If the callback's state does not verify.
            AuthenticationError: If sign-in fails, is denied or times out.
        """
        self._require_configured()

        result: dict[str, str] = {}
        error: Exception | None = None
        callback_seen = False
        manager = self

        class CallbackHandler(BaseHTTPRequestHandler):
            """HTTP request handler for the OAuth callback."""

            def do_GET(handler_self) -> None:  # noqa: N802, N805
                nonlocal error, callback_seen
                parsed = urlparse(handler_self.path)

                if parsed.path != CALLBACK_PATH:
                    handler_self.send_response(404)
                    handler_self.end_headers()
                    return

                callback_seen = True
                try:
                    result["code"] = manager.complete_authorization(
                        parse_qs(parsed.query)
                    )
                    status, page = 200, _PAGE_SUCCESS
                except SecurityError as e:
                    error = e
                    status, page = 400, _PAGE_SECURITY
                except AuthenticationError as e:
                    error = e
                    status, page = 400, _PAGE_FAILED

                handler_self.send_response(status)
                handler_self.send_header("Content-type", "text/html")
                handler_self.end_headers()
                handler_self.wfile.write(page)

            def log_message(  # noqa: N805
                handler_self, format: str, *args: object
            ) -> None:
                logger.debug("OAuth callback server: %s", format % args)

        server, actual_port = self._create_server(CallbackHandler, self._oauth_port)

        original_redirect = self._redirect_uri
        if actual_port != self._oauth_port:
            self._redirect_uri = f"http://localhost:{actual_port}{CALLBACK_PATH}"

        try:
            auth_url, _ = self.create_auth_url()

            logger.info("Opening browser for authentication on port %d...", actual_port)
            webbrowser.open(auth_url)

            # Requests for other paths, such as /favicon.ico, keep the wait going
            deadline = time.monotonic() + timeout
            while not callback_seen:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                server.timeout = remaining
                server.handle_request()

            if error:
                raise error

            if "code" not in result:
                raise AuthenticationError(
                    "Authentication timed out or was cancelled",
                    details={"timeout_seconds": timeout},
                )

            return self.exchange_code(result["code"])
        finally:
            server.server_close()
            self._redirect_uri = original_redirect


__all__ = [
    "OAuthManager",
    "GOOGLE_AUTH_URI",
    "GOOGLE_TOKEN_URI",
    "GOOGLE_REVOKE_URI",
    "CALLBACK_PATH",
]
