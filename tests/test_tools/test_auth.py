"""Tests for authentication tools."""

from __future__ import annotations

import pytest

from drive_gmail_manager.tools.auth import auth_login, auth_logout, auth_status
from drive_gmail_manager.utils.errors import AuthenticationError, SecurityError
from drive_gmail_manager.utils.user_messages import SECURITY_MESSAGE


class TestAuthLogin:
    """Tests for auth_login tool."""

    @pytest.mark.asyncio
    async def test_not_configured(self, app):
        """Test a configuration error is returned without starting a flow."""
        app.oauth.is_configured = False

        result = await auth_login(app)

        assert result["status"] == "error"
        assert result["error_code"] == "ConfigurationError"
        app.session.login.assert_not_called()

    @pytest.mark.asyncio
    async def test_successful_login(self, app):
        """Test sign-in drops cached services and reports scopes."""
        app.session.describe.return_value = {
            "authenticated": True,
            "scopes": ["https://www.googleapis.com/auth/drive"],
        }

        result = await auth_login(app, timeout=60)

        assert result["status"] == "success"
        assert result["data"]["scopes"] == ["https://www.googleapis.com/auth/drive"]
        app.session.login.assert_awaited_once_with(timeout=60)
        app.client.invalidate.assert_called_once()
        app.audit.log_auth_event.assert_called_once_with("login")

    @pytest.mark.asyncio
    async def test_state_mismatch(self, app):
        """Test a CSRF rejection surfaces only the generic security message."""
        app.session.login.side_effect = SecurityError(SECURITY_MESSAGE)

        result = await auth_login(app)

        assert result["status"] == "error"
        assert result["error"] == SECURITY_MESSAGE
        assert result["error_code"] == "SecurityError"
        app.audit.log_auth_event.assert_called_once_with(
            "login", success=False, details={"reason": "state"}
        )

    @pytest.mark.asyncio
    async def test_denied_consent(self, app):
        """Test other sign-in failures are audited and reported."""
        app.session.login.side_effect = AuthenticationError("Sign-in was not completed")

        result = await auth_login(app)

        assert result["error"] == "Sign-in was not completed"
        assert result["error_code"] == "AuthenticationError"
        app.audit.log_auth_event.assert_called_once_with("login", success=False)


class TestAuthLogout:
    """Tests for auth_logout tool."""

    @pytest.mark.asyncio
    async def test_logout_when_signed_in(self, app):
        """Test sign-out revokes, drops services and clears limiter windows."""
        app.session.is_authenticated = True

        result = await auth_logout(app)

        assert result["status"] == "success"
        assert result["data"] == {"logged_out": True, "token_revoked": True}
        app.session.logout.assert_awaited_once()
        app.client.invalidate.assert_called_once()
        app.limiters.reset_all.assert_called_once()

    @pytest.mark.asyncio
    async def test_logout_when_signed_out(self, app):
        """Test sign-out while signed out is a successful no-op."""
        app.session.is_authenticated = False
        app.session.logout.return_value = False

        result = await auth_logout(app)

        assert result["status"] == "success"
        assert result["data"]["logged_out"] is False


class TestAuthStatus:
    """Tests for auth_status tool."""

    @pytest.mark.asyncio
    async def test_reports_session_state(self, app):
        """Test the session description is returned as-is."""
        app.session.describe.return_value = {
            "authenticated": False,
            "init_status": "timed_out",
            "oauth_configured": True,
        }

        result = await auth_status(app)

        assert result["data"]["init_status"] == "timed_out"
        assert "Not signed in" in result["message"]
