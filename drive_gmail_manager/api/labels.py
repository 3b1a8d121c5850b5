"""Gmail label operations."""

from __future__ import annotations

import logging
from typing import Any

from googleapiclient.discovery import Resource

from drive_gmail_manager.utils.errors import GoogleAPIError

logger = logging.getLogger(__name__)


def list_labels(service: Resource) -> list[dict[str, Any]]:
    """List all labels in the mailbox."""
    try:
        response = service.users().labels().list(userId="me").execute()
        labels = response.get("labels", [])
        logger.debug("Listed %d labels", len(labels))
        return labels
    except Exception as e:
        logger.warning("Failed to list labels: %s", type(e).__name__)
        raise GoogleAPIError.from_exception(e, "Failed to list labels") from e


def create_label(service: Resource, name: str) -> dict[str, Any]:
    """Create a new, visible user label."""
    try:
        body = {
            "name": name,
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }
        label = service.users().labels().create(userId="me", body=body).execute()
        logger.info("Created label %s", label.get("id"))
        return label
    except Exception as e:
        logger.warning("Failed to create label: %s", type(e).__name__)
        raise GoogleAPIError.from_exception(e, "Failed to create label") from e


def delete_label(service: Resource, label_id: str) -> None:
    """Delete a label."""
    try:
        service.users().labels().delete(userId="me", id=label_id).execute()
        logger.info("Deleted label %s", label_id)
    except Exception as e:
        logger.warning("Failed to delete label %s: %s", label_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to delete label {label_id}"
        ) from e


__all__ = ["list_labels", "create_label", "delete_label"]
