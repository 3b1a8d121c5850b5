"""Drive share tool."""

from __future__ import annotations

from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import ShareFileParams
from drive_gmail_manager.tools.base import build_success_response, execute_tool


async def drive_share_file(app: AppContext, params: ShareFileParams) -> dict[str, Any]:
    """Share a file with another user.

    The address is validated first; a likely domain typo is reported as
    "Did you mean <domain>?" and nothing is shared.
    """

    async def _execute() -> dict[str, Any]:
        address = await app.drive.share_file(params.file_id, params.email, params.role)
        return build_success_response(
            data={
                "file_id": params.file_id,
                "shared_with": address,
                "role": params.role,
            },
            message=f"File shared with {address}",
        )

    return await execute_tool(
        app.audit, "drive_share_file", params.model_dump(), _execute
    )
