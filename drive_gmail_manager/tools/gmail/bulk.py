"""Bulk Gmail tools: trash a selection, trash old emails, purge spam."""

from __future__ import annotations

from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import TrashEmailsParams, TrashOldEmailsParams
from drive_gmail_manager.tools.base import bulk_result_response, execute_tool


async def gmail_trash_emails(
    app: AppContext, params: TrashEmailsParams
) -> dict[str, Any]:
    """Move up to 100 selected emails to trash."""

    async def _execute() -> dict[str, Any]:
        result = await app.bulk.trash_emails(params.message_ids)
        app.audit.log_bulk_run(result)
        return bulk_result_response(result, "moved to trash")

    return await execute_tool(
        app.audit, "gmail_trash_emails", params.model_dump(), _execute
    )


async def gmail_trash_old_emails(
    app: AppContext, params: TrashOldEmailsParams
) -> dict[str, Any]:
    """Move emails older than the given number of days to trash."""

    async def _execute() -> dict[str, Any]:
        result = await app.bulk.trash_old_emails(params.days_old)
        app.audit.log_bulk_run(result)
        return bulk_result_response(result, "moved to trash")

    return await execute_tool(
        app.audit, "gmail_trash_old_emails", params.model_dump(), _execute
    )


async def gmail_delete_spam(app: AppContext) -> dict[str, Any]:
    """Permanently delete every message in the spam folder."""

    async def _execute() -> dict[str, Any]:
        result = await app.bulk.delete_spam_emails()
        app.audit.log_bulk_run(result)
        return bulk_result_response(result, "deleted")

    return await execute_tool(app.audit, "gmail_delete_spam", {}, _execute)
