"""FastMCP server for Drive & Gmail Manager.

This module builds the FastMCP server and registers 17 tools:

- Auth Tools (3): sign-in, sign-out and status
- Drive Tools (6): search, share, download, and three bulk operations
- Gmail Tools (8): search, four label operations, and three bulk operations

Tools marked destructive permanently delete or trash user data. The server
uses a lifespan context manager to run the session bootstrap at startup
and to sweep idle rate limiter windows while it runs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from typing import Any, TypeVar

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import BaseModel

from drive_gmail_manager.app import AppContext, build_app
from drive_gmail_manager.middleware.validator import clamp_numeric_input
from drive_gmail_manager.schemas.tools import (
    AddLabelParams,
    CreateLabelParams,
    DeleteFilesParams,
    DeleteLabelParams,
    DeleteOldFilesParams,
    DownloadFileParams,
    DriveSearchParams,
    GmailSearchParams,
    ShareFileParams,
    TrashEmailsParams,
    TrashOldEmailsParams,
)
from drive_gmail_manager.tools import (
    auth_login,
    auth_logout,
    auth_status,
    drive_delete_files,
    drive_delete_old_files,
    drive_download_file,
    drive_organize_by_type,
    drive_search,
    drive_share_file,
    gmail_add_label,
    gmail_create_label,
    gmail_delete_label,
    gmail_delete_spam,
    gmail_list_labels,
    gmail_search,
    gmail_trash_emails,
    gmail_trash_old_emails,
)
from drive_gmail_manager.tools.base import error_response_from, parse_params
from drive_gmail_manager.utils.errors import ManagerError, ValidationError

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(
    readOnlyHint=True, destructiveHint=False, idempotentHint=True
)
WRITE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=False, idempotentHint=False
)
DESTRUCTIVE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=True, idempotentHint=False
)

# Rate limiter keys idle for an hour are dropped on this cadence
STALE_SWEEP_SECONDS = 600

ParamsT = TypeVar("ParamsT", bound=BaseModel)


# =============================================================================
# Lifecycle Helpers
# =============================================================================


async def cleanup_resources(app: AppContext) -> None:
    """Drop rate limiter windows that have not seen a call in an hour."""
    try:
        stale_count = app.limiters.cleanup_stale()
        if stale_count > 0:
            logger.info("Cleaned up %d stale rate limiter keys", stale_count)
    except Exception as e:
        logger.warning("Error cleaning up stale rate limiter keys: %s", e)


async def sweep_stale_windows(
    app: AppContext, interval_seconds: float = STALE_SWEEP_SECONDS
) -> None:
    """Run cleanup_resources every interval until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        await cleanup_resources(app)


async def bootstrap(app: AppContext) -> None:
    """Run the session bootstrap, logging rather than raising on failure.

    The server keeps serving if bootstrap fails; auth_status reports the
    failed or timed-out state and the auth tools explain what is missing.
    """
    try:
        await app.session.initialize([app.check_oauth_configured])
    except ManagerError as e:
        logger.error("Session bootstrap did not complete: %s", e.message)


# =============================================================================
# Tool Registration
# =============================================================================


async def _invoke(
    app: AppContext,
    tool_name: str,
    model: type[ParamsT],
    tool: Callable[[AppContext, ParamsT], Awaitable[dict[str, Any]]],
    **arguments: Any,
) -> dict[str, Any]:
    """Parse tool arguments into their model, then run the tool.

    Arguments that fail the model come back as an error response with a
    canned message and are audited like any other failed call.
    """
    try:
        params = parse_params(model, **arguments)
    except ValidationError as e:
        app.audit.log_tool_call(
            tool_name, arguments, result_status="error", error_message=e.message
        )
        return error_response_from(e)
    return await tool(app, params)


def _register_auth_tools(mcp: FastMCP, app: AppContext) -> None:
    """Register authentication tools."""

    @mcp.tool(name="auth_login", annotations=WRITE)
    async def auth_login_tool(timeout: int = 120) -> dict[str, Any]:
        """Sign in with Google for Drive and Gmail access.

        Opens a browser on Google's consent page. The callback is accepted
        on localhost only if its CSRF state token verifies.

        Args:
            timeout: Seconds to wait for the browser flow (default 120).

        Returns:
            Success: {status, data: {authenticated, scopes}, message}
            Error: {status, error, error_code}
        """
        return await auth_login(app, timeout=timeout)

    @mcp.tool(
        name="auth_logout",
        annotations=ToolAnnotations(
            readOnlyHint=False, destructiveHint=True, idempotentHint=True
        ),
    )
    async def auth_logout_tool() -> dict[str, Any]:
        """Sign out: revoke the token and forget in-memory credentials."""
        return await auth_logout(app)

    @mcp.tool(name="auth_status", annotations=READ_ONLY)
    async def auth_status_tool() -> dict[str, Any]:
        """Report sign-in state and session bootstrap status."""
        return await auth_status(app)


def _register_drive_tools(mcp: FastMCP, app: AppContext) -> None:
    """Register Google Drive tools."""

    @mcp.tool(name="drive_search", annotations=READ_ONLY)
    async def drive_search_tool(
        query: str = "",
        section: str = "all",
        mime_type: str | None = None,
        max_results: int = 100,
    ) -> dict[str, Any]:
        """Search Drive files by name.

        Args:
            query: Text matched against file names.
            section: "all", "starred" or "trash".
            mime_type: Optional MIME type filter, e.g. "image/".
            max_results: Maximum files to return (1-1000, default 100).

        Returns:
            File summaries with name, type, size, modified date and link.
        """
        return await _invoke(
            app,
            "drive_search",
            DriveSearchParams,
            drive_search,
            query=query,
            section=section,
            mime_type=mime_type,
            max_results=clamp_numeric_input(max_results, 1, 1000, 100),
        )

    @mcp.tool(name="drive_share_file", annotations=WRITE)
    async def drive_share_file_tool(
        file_id: str, email: str, role: str = "reader"
    ) -> dict[str, Any]:
        """Share a Drive file with another user.

        Args:
            file_id: Drive file ID.
            email: Recipient address (common domain typos are rejected
                with a suggestion).
            role: "reader", "commenter" or "writer".
        """
        return await _invoke(
            app,
            "drive_share_file",
            ShareFileParams,
            drive_share_file,
            file_id=file_id,
            email=email,
            role=role,
        )

    @mcp.tool(name="drive_download_file", annotations=WRITE)
    async def drive_download_file_tool(
        file_id: str, file_name: str, dest_dir: str = "."
    ) -> dict[str, Any]:
        """Download a Drive file into a local directory.

        Args:
            file_id: Drive file ID.
            file_name: Name to save under (path separators are removed).
            dest_dir: Existing directory to save into.
        """
        return await _invoke(
            app,
            "drive_download_file",
            DownloadFileParams,
            drive_download_file,
            file_id=file_id,
            file_name=file_name,
            dest_dir=dest_dir,
        )

    @mcp.tool(name="drive_delete_files", annotations=DESTRUCTIVE)
    async def drive_delete_files_tool(file_ids: list[str]) -> dict[str, Any]:
        """Permanently delete selected Drive files (at most 100).

        Returns:
            Counts of total, succeeded and failed deletions.
        """
        return await _invoke(
            app,
            "drive_delete_files",
            DeleteFilesParams,
            drive_delete_files,
            file_ids=file_ids,
        )

    @mcp.tool(name="drive_organize_by_type", annotations=WRITE)
    async def drive_organize_by_type_tool() -> dict[str, Any]:
        """Move files into Documents, Spreadsheets, Images and Videos folders.

        Processes at most 1000 files; larger drives are rejected before
        anything moves.
        """
        return await drive_organize_by_type(app)

    @mcp.tool(name="drive_delete_old_files", annotations=DESTRUCTIVE)
    async def drive_delete_old_files_tool(days_old: int = 365) -> dict[str, Any]:
        """Permanently delete files not modified in the last days_old days.

        Args:
            days_old: Age threshold in days (1-3650, default 365).

        Returns:
            Counts of total, succeeded and failed deletions. More than 1000
            matching files are rejected before anything is deleted.
        """
        return await _invoke(
            app,
            "drive_delete_old_files",
            DeleteOldFilesParams,
            drive_delete_old_files,
            days_old=days_old,
        )


def _register_gmail_tools(mcp: FastMCP, app: AppContext) -> None:
    """Register Gmail tools."""

    @mcp.tool(name="gmail_search", annotations=READ_ONLY)
    async def gmail_search_tool(
        query: str = "",
        section: str | None = None,
        max_results: int = 50,
    ) -> dict[str, Any]:
        """Search emails using a safe subset of Gmail query syntax.

        Query syntax examples:
        - from:sender@example.com
        - subject:invoice
        - after:2024/01/01 has:attachment
        - "exact phrase"

        Args:
            query: Search text.
            section: "inbox", "sent", "starred", "archive" or "trash".
            max_results: Maximum results to return (1-500, default 50).
        """
        return await _invoke(
            app,
            "gmail_search",
            GmailSearchParams,
            gmail_search,
            query=query,
            section=section,
            max_results=clamp_numeric_input(max_results, 1, 500, 50),
        )

    @mcp.tool(name="gmail_list_labels", annotations=READ_ONLY)
    async def gmail_list_labels_tool() -> dict[str, Any]:
        """List system and user labels."""
        return await gmail_list_labels(app)

    @mcp.tool(name="gmail_create_label", annotations=WRITE)
    async def gmail_create_label_tool(name: str) -> dict[str, Any]:
        """Create a label (name up to 255 characters)."""
        return await _invoke(
            app, "gmail_create_label", CreateLabelParams, gmail_create_label, name=name
        )

    @mcp.tool(
        name="gmail_delete_label",
        annotations=ToolAnnotations(
            readOnlyHint=False, destructiveHint=True, idempotentHint=True
        ),
    )
    async def gmail_delete_label_tool(label_id: str) -> dict[str, Any]:
        """Delete a label by ID."""
        return await _invoke(
            app,
            "gmail_delete_label",
            DeleteLabelParams,
            gmail_delete_label,
            label_id=label_id,
        )

    @mcp.tool(
        name="gmail_add_label",
        annotations=ToolAnnotations(
            readOnlyHint=False, destructiveHint=False, idempotentHint=True
        ),
    )
    async def gmail_add_label_tool(message_id: str, label_id: str) -> dict[str, Any]:
        """Apply a label to a message."""
        return await _invoke(
            app,
            "gmail_add_label",
            AddLabelParams,
            gmail_add_label,
            message_id=message_id,
            label_id=label_id,
        )

    @mcp.tool(name="gmail_trash_emails", annotations=DESTRUCTIVE)
    async def gmail_trash_emails_tool(message_ids: list[str]) -> dict[str, Any]:
        """Move selected emails to trash (at most 100)."""
        return await _invoke(
            app,
            "gmail_trash_emails",
            TrashEmailsParams,
            gmail_trash_emails,
            message_ids=message_ids,
        )

    @mcp.tool(name="gmail_trash_old_emails", annotations=DESTRUCTIVE)
    async def gmail_trash_old_emails_tool(days_old: int = 365) -> dict[str, Any]:
        """Move emails older than days_old days to trash.

        Args:
            days_old: Age threshold in days (1-3650, default 365).
        """
        return await _invoke(
            app,
            "gmail_trash_old_emails",
            TrashOldEmailsParams,
            gmail_trash_old_emails,
            days_old=days_old,
        )

    @mcp.tool(name="gmail_delete_spam", annotations=DESTRUCTIVE)
    async def gmail_delete_spam_tool() -> dict[str, Any]:
        """Permanently delete every message in the spam folder."""
        return await gmail_delete_spam(app)


# =============================================================================
# Server Factory
# =============================================================================


def create_server(app: AppContext | None = None) -> FastMCP:
    """Create and configure the FastMCP server instance.

    Args:
        app: Application context; built from the environment if None.

    Returns:
        Configured FastMCP server instance with all tools registered.
    """
    context = app or build_app()

    @asynccontextmanager
    async def server_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        logger.info("Drive & Gmail Manager server starting up...")
        await bootstrap(context)
        sweeper = asyncio.create_task(sweep_stale_windows(context))
        logger.info("Drive & Gmail Manager server ready")

        try:
            yield {}
        finally:
            logger.info("Drive & Gmail Manager server shutting down...")
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper

    mcp = FastMCP(name="drive-gmail-manager", lifespan=server_lifespan)

    _register_auth_tools(mcp, context)
    _register_drive_tools(mcp, context)
    _register_gmail_tools(mcp, context)

    logger.info("Registered 17 tools")
    return mcp


__all__ = ["create_server", "cleanup_resources", "sweep_stale_windows", "bootstrap"]
