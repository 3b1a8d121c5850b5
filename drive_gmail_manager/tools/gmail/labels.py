"""Gmail label tools: list, create, delete and apply labels."""

from __future__ import annotations

import logging
from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import (
    AddLabelParams,
    CreateLabelParams,
    DeleteLabelParams,
)
from drive_gmail_manager.tools.base import build_success_response, execute_tool

logger = logging.getLogger(__name__)


async def gmail_list_labels(app: AppContext) -> dict[str, Any]:
    """List system and user labels, user labels sorted by name."""

    async def _execute() -> dict[str, Any]:
        labels = await app.gmail.list_labels()
        system = [label for label in labels if label.get("type") == "system"]
        user = sorted(
            (label for label in labels if label.get("type") != "system"),
            key=lambda label: label.get("name", "").lower(),
        )
        data = {
            "system_labels": [
                {"id": label.get("id"), "name": label.get("name")} for label in system
            ],
            "user_labels": [
                {"id": label.get("id"), "name": label.get("name")} for label in user
            ],
        }
        return build_success_response(
            data=data,
            message=f"Found {len(labels)} labels",
            count=len(labels),
        )

    return await execute_tool(app.audit, "gmail_list_labels", {}, _execute)


async def gmail_create_label(
    app: AppContext, params: CreateLabelParams
) -> dict[str, Any]:
    """Create a new label."""

    async def _execute() -> dict[str, Any]:
        label = await app.gmail.create_label(params.name)
        return build_success_response(
            data={"id": label.get("id"), "name": label.get("name")},
            message=f"Created label '{label.get('name')}'",
        )

    return await execute_tool(
        app.audit, "gmail_create_label", params.model_dump(), _execute
    )


async def gmail_delete_label(
    app: AppContext, params: DeleteLabelParams
) -> dict[str, Any]:
    """Delete a label (messages keep their other labels)."""

    async def _execute() -> dict[str, Any]:
        await app.gmail.delete_label(params.label_id)
        return build_success_response(
            data={"label_id": params.label_id, "deleted": True},
            message="Label deleted",
        )

    return await execute_tool(
        app.audit, "gmail_delete_label", params.model_dump(), _execute
    )


async def gmail_add_label(app: AppContext, params: AddLabelParams) -> dict[str, Any]:
    """Apply a label to a message."""

    async def _execute() -> dict[str, Any]:
        await app.gmail.add_label_to_email(params.message_id, params.label_id)
        return build_success_response(
            data={"message_id": params.message_id, "label_id": params.label_id},
            message="Label applied",
        )

    return await execute_tool(
        app.audit, "gmail_add_label", params.model_dump(), _execute
    )
