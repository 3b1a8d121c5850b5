"""Sign-in tool: browser OAuth flow with CSRF state verification.

Flow:
1. A fresh state token is issued and sent with the consent URL
2. The browser is opened on Google's consent page
3. The loopback callback is accepted only if its state verifies
4. The authorization code is exchanged and tokens are kept in memory
"""

from __future__ import annotations

import logging
from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.tools.base import (
    build_error_response,
    build_success_response,
    execute_tool,
)
from drive_gmail_manager.utils.errors import AuthenticationError, SecurityError

logger = logging.getLogger(__name__)


async def auth_login(app: AppContext, timeout: int = 120) -> dict[str, Any]:
    """Sign in with Google for Drive and Gmail access.

    Args:
        app: Application context.
        timeout: Seconds to wait for the user to finish in the browser.

    Returns:
        Success: {status, data: {authenticated, scopes}, message}
        Error: {status, error, error_code}
    """
    if not app.oauth.is_configured:
        return build_error_response(
            error="OAuth not configured",
            error_code="ConfigurationError",
            details={
                "hint": "Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET "
                "environment variables"
            },
        )

    async def _execute() -> dict[str, Any]:
        try:
            await app.session.login(timeout=timeout)
        except SecurityError:
            app.audit.log_auth_event(
                "login", success=False, details={"reason": "state"}
            )
            raise
        except AuthenticationError:
            app.audit.log_auth_event("login", success=False)
            raise

        app.client.invalidate()
        app.audit.log_auth_event("login")
        info = app.session.describe()
        logger.info("User signed in")
        return build_success_response(
            data={"authenticated": True, "scopes": info.get("scopes", [])},
            message="Successfully signed in with Google.",
        )

    return await execute_tool(app.audit, "auth_login", {"timeout": timeout}, _execute)
