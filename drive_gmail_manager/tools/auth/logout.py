"""Sign-out tool: revoke the token and forget in-memory credentials."""

from __future__ import annotations

import logging
from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.tools.base import build_success_response, execute_tool

logger = logging.getLogger(__name__)


async def auth_logout(app: AppContext) -> dict[str, Any]:
    """Sign out of Google.

    Revokes the access token with Google (best effort), drops cached API
    services and clears rate limiter windows.

    Returns:
        Success response with logout confirmation.
    """

    async def _execute() -> dict[str, Any]:
        was_signed_in = app.session.is_authenticated
        revoked = await app.sign_out()
        app.audit.log_auth_event("logout", details={"revoked": revoked})

        if was_signed_in:
            logger.info("User logged out")
            return build_success_response(
                data={"logged_out": True, "token_revoked": revoked},
                message="Successfully signed out.",
            )

        logger.debug("Logout called while not signed in")
        return build_success_response(
            data={"logged_out": False, "token_revoked": False},
            message="Not signed in. Already logged out.",
        )

    return await execute_tool(app.audit, "auth_logout", {}, _execute)
