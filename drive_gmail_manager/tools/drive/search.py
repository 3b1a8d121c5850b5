"""Drive search tool."""

from __future__ import annotations

import logging
from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import DriveSearchParams
from drive_gmail_manager.services.drive import DriveService
from drive_gmail_manager.tools.base import build_success_response, execute_tool

logger = logging.getLogger(__name__)


async def drive_search(app: AppContext, params: DriveSearchParams) -> dict[str, Any]:
    """Search Drive files by name within a section.

    Args:
        app: Application context.
        params: Search parameters (query, section, mime_type, max_results).

    Returns:
        Standardized response with file summaries.

    Example response:
        {
            "status": "success",
            "count": 2,
            "data": [
                {
                    "id": "1AbC...",
                    "name": "Budget 2024.xlsx",
                    "mime_type": "application/vnd.ms-excel",
                    "size": "14.20 KB",
                    "modified": "Mar 5, 2024",
                    "starred": false,
                    "link": "https://docs.google.com/..."
                },
                ...
            ],
            "message": "Found 2 files"
        }
    """

    async def _execute() -> dict[str, Any]:
        files = await app.drive.search_files(
            params.query,
            section=params.section,
            mime_type=params.mime_type,
            max_results=params.max_results,
        )
        results = [DriveService.summarize(file) for file in files]
        return build_success_response(
            data=results,
            message=f"Found {len(results)} files",
            count=len(results),
        )

    return await execute_tool(app.audit, "drive_search", params.model_dump(), _execute)
