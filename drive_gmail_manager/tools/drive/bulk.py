"""Bulk Drive tools: selection delete, organize by type, delete old files.

All three are destructive and go through the bulk orchestrator, which
rejects empty or oversized candidate sets before changing anything.
"""

from __future__ import annotations

from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import DeleteFilesParams, DeleteOldFilesParams
from drive_gmail_manager.tools.base import bulk_result_response, execute_tool


async def drive_delete_files(
    app: AppContext, params: DeleteFilesParams
) -> dict[str, Any]:
    """Permanently delete up to 100 selected files."""

    async def _execute() -> dict[str, Any]:
        result = await app.bulk.delete_files(params.file_ids)
        app.audit.log_bulk_run(result)
        return bulk_result_response(result, "deleted")

    return await execute_tool(
        app.audit, "drive_delete_files", params.model_dump(), _execute
    )


async def drive_organize_by_type(app: AppContext) -> dict[str, Any]:
    """Move files into Documents, Spreadsheets, Images and Videos folders."""

    async def _execute() -> dict[str, Any]:
        result = await app.bulk.organize_files_by_type()
        app.audit.log_bulk_run(result)
        return bulk_result_response(result, "moved")

    return await execute_tool(app.audit, "drive_organize_by_type", {}, _execute)


async def drive_delete_old_files(
    app: AppContext, params: DeleteOldFilesParams
) -> dict[str, Any]:
    """Permanently delete files not modified in the given number of days."""

    async def _execute() -> dict[str, Any]:
        result = await app.bulk.delete_old_files(params.days_old)
        app.audit.log_bulk_run(result)
        return bulk_result_response(result, "deleted")

    return await execute_tool(
        app.audit, "drive_delete_old_files", params.model_dump(), _execute
    )
