"""Auth status tool - report sign-in and bootstrap state."""

from __future__ import annotations

from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.tools.base import build_success_response


async def auth_status(app: AppContext) -> dict[str, Any]:
    """Report whether the user is signed in and the session is ready.

    Returns:
        Success response with:
        - authenticated: True/False
        - init_status: pending, ready, failed or timed_out
        - oauth_configured: whether client credentials are set
        - sign_in_pending: whether a browser sign-in is awaiting its callback
        - scopes / token_valid / signed_in_at when signed in
    """
    info = app.session.describe()
    if info["authenticated"]:
        message = "Signed in with Google."
    else:
        message = "Not signed in. Use auth_login to sign in."
    return build_success_response(data=info, message=message)
