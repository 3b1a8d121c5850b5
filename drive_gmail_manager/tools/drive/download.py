"""Drive download tool."""

from __future__ import annotations

from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import DownloadFileParams
from drive_gmail_manager.tools.base import build_success_response, execute_tool


async def drive_download_file(
    app: AppContext, params: DownloadFileParams
) -> dict[str, Any]:
    """Download a file to a local directory under a sanitized name."""

    async def _execute() -> dict[str, Any]:
        path = await app.drive.download_file(
            params.file_id, params.file_name, params.dest_dir
        )
        return build_success_response(
            data={"file_id": params.file_id, "path": str(path)},
            message=f"Downloaded to {path.name}",
        )

    return await execute_tool(
        app.audit, "drive_download_file", params.model_dump(), _execute
    )
