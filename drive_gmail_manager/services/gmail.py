"""Gmail adapter: the governed entry point for every Gmail operation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from drive_gmail_manager.api import labels as labels_api
from drive_gmail_manager.api import messages as messages_api
from drive_gmail_manager.middleware.validator import (
    build_gmail_search_query,
    sanitize_opaque_id,
    validate_label_name,
    validate_resource_id,
)
from drive_gmail_manager.services.base import RemoteAdapter
from drive_gmail_manager.utils.errors import ValidationError

logger = logging.getLogger(__name__)

GMAIL_WEB_URL = "https://mail.google.com/mail/u/0/#inbox/"


def _message_id(message_id: object) -> str:
    safe_id = sanitize_opaque_id(message_id)
    if safe_id is None:
        raise ValidationError("Invalid message ID.", field="message_id")
    return safe_id


class GmailService(RemoteAdapter):
    """Async Gmail operations behind sanitization, rate limiting and
    error translation."""

    async def search_emails(
        self,
        text: str = "",
        section: str | None = None,
        max_results: int = 100,
    ) -> list[dict[str, Any]]:
        """Search messages and fetch their headers.

        The listing is a single-shot admission; the per-message metadata
        fetches wait on the "get_email" bucket instead of failing.

        Returns:
            Message summaries (id, from, subject, date, snippet, labels).

        Raises:
            RateLimitError: If the search bucket is full.
            OperationFailedError: If any Gmail call fails.
        """
        query = build_gmail_search_query(text, section)
        self._admit("search", "Too many search requests. Please wait a moment.")
        logger.debug("Searching emails with query: %s", query)

        stubs = await self._call(
            "Email search", messages_api.list_messages, query, None, max_results
        )

        async def fetch(stub: dict[str, Any]) -> dict[str, Any]:
            await self._limiter.acquire("get_email")
            message = await self._call(
                "Email search", messages_api.get_message, stub["id"]
            )
            return messages_api.summarize_message(message)

        results = await asyncio.gather(*(fetch(stub) for stub in stubs))
        logger.debug("Found %d emails", len(results))
        return list(results)

    async def list_message_ids(
        self,
        query: str = "",
        label_ids: list[str] | None = None,
        max_results: int = 100,
        context: str = "Email listing",
    ) -> list[str]:
        """List message IDs for a trusted, internally built query.

        Not admitted here; bulk runs are admitted by the orchestrator.
        """
        stubs = await self._call(
            context, messages_api.list_messages, query, label_ids, max_results
        )
        return [stub["id"] for stub in stubs]

    async def list_labels(self) -> list[dict[str, Any]]:
        """List all labels in the mailbox."""
        self._admit("list_labels", "Too many requests. Please wait.")
        return await self._call("Label list", labels_api.list_labels)

    async def create_label(self, name: str) -> dict[str, Any]:
        """Create a label after checking its name length.

        Raises:
            ValidationError: If the name is empty or longer than 255.
        """
        label_name = validate_label_name(name)
        self._admit("create_label", "Too many label creation requests. Please wait.")
        return await self._call("Label creation", labels_api.create_label, label_name)

    async def delete_label(self, label_id: str) -> None:
        validate_resource_id(label_id, "label ID")
        self._admit("delete_label", "Too many label deletion requests. Please wait.")
        await self._call("Label deletion", labels_api.delete_label, label_id)

    async def add_label_to_email(self, message_id: str, label_id: str) -> None:
        safe_id = _message_id(message_id)
        validate_resource_id(label_id, "label ID")
        self._admit("add_label", "Too many label operations. Please wait.")
        await self._call(
            "Label assignment", messages_api.modify_message, safe_id, [label_id]
        )

    async def trash_message(self, message_id: str) -> None:
        """Move a message to trash (pace governed by the caller)."""
        safe_id = _message_id(message_id)
        await self._call("Email deletion", messages_api.trash_message, safe_id)

    async def delete_message(self, message_id: str) -> None:
        """Permanently delete a message (pace governed by the caller)."""
        safe_id = _message_id(message_id)
        await self._call("Email deletion", messages_api.delete_message, safe_id)

    @staticmethod
    def message_link(message_id: object) -> str | None:
        """Build a Gmail web link, or None if the ID is not safe to embed."""
        safe_id = sanitize_opaque_id(message_id)
        if safe_id is None:
            return None
        return GMAIL_WEB_URL + safe_id


__all__ = ["GmailService", "GMAIL_WEB_URL"]
