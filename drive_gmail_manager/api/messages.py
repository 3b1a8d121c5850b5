"""Gmail message operations."""

from __future__ import annotations

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any

from googleapiclient.discovery import Resource

from drive_gmail_manager.utils.errors import GoogleAPIError

logger = logging.getLogger(__name__)

# Gmail caps maxResults per page at 500
MAX_PAGE_SIZE = 500

METADATA_HEADERS = ["From", "To", "Subject", "Date"]


def _merge_label_query(query: str, label_ids: list[str] | None) -> str:
    """Fold label IDs into the query string.

    Passing both ``q`` and ``labelIds`` to messages.list has been seen to
    drop results on later pages, so labels are expressed as ``label:X``
    terms instead.
    """
    if not label_ids:
        return query
    terms = [f"label:{label_id}" for label_id in label_ids]
    if query:
        terms.insert(0, query)
    return " ".join(terms)


def list_messages(
    service: Resource,
    query: str = "",
    label_ids: list[str] | None = None,
    max_results: int = 100,
) -> list[dict[str, Any]]:
    """List message stubs (id, threadId) matching query and labels."""
    try:
        messages: list[dict[str, Any]] = []
        request = (
            service.users()
            .messages()
            .list(
                userId="me",
                q=_merge_label_query(query, label_ids),
                maxResults=min(max_results, MAX_PAGE_SIZE),
            )
        )

        while request is not None and len(messages) < max_results:
            response = request.execute()
            messages.extend(response.get("messages", []))
            request = service.users().messages().list_next(request, response)

        logger.debug("Listed %d messages", len(messages))
        return messages[:max_results]

    except Exception as e:
        logger.warning("Failed to list messages: %s", type(e).__name__)
        raise GoogleAPIError.from_exception(e, "Failed to list messages") from e


def get_message(
    service: Resource, message_id: str, format: str = "metadata"
) -> dict[str, Any]:
    """Get a message by ID (headers only unless another format is asked for)."""
    try:
        kwargs: dict[str, Any] = {"userId": "me", "id": message_id, "format": format}
        if format == "metadata":
            kwargs["metadataHeaders"] = METADATA_HEADERS
        message = service.users().messages().get(**kwargs).execute()
        logger.debug("Retrieved message %s", message_id)
        return message
    except Exception as e:
        logger.warning("Failed to get message %s: %s", message_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to get message {message_id}"
        ) from e


def modify_message(
    service: Resource,
    message_id: str,
    add_labels: list[str] | None = None,
    remove_labels: list[str] | None = None,
) -> dict[str, Any]:
    """Modify message labels."""
    try:
        body = {"addLabelIds": add_labels or [], "removeLabelIds": remove_labels or []}
        modified = (
            service.users()
            .messages()
            .modify(userId="me", id=message_id, body=body)
            .execute()
        )
        logger.debug("Modified labels on message %s", message_id)
        return modified
    except Exception as e:
        logger.warning("Failed to modify message %s: %s", message_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to modify message {message_id}"
        ) from e


def trash_message(service: Resource, message_id: str) -> dict[str, Any]:
    """Move message to trash."""
    try:
        trashed = service.users().messages().trash(userId="me", id=message_id).execute()
        logger.info("Trashed message %s", message_id)
        return trashed
    except Exception as e:
        logger.warning("Failed to trash message %s: %s", message_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to trash message {message_id}"
        ) from e


def delete_message(service: Resource, message_id: str) -> None:
    """Permanently delete a message."""
    try:
        service.users().messages().delete(userId="me", id=message_id).execute()
        logger.info("Permanently deleted message %s", message_id)
    except Exception as e:
        logger.warning("Failed to delete message %s: %s", message_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to delete message {message_id}"
        ) from e


def parse_headers(message: dict[str, Any]) -> dict[str, str]:
    """Extract common headers from message payload."""
    headers = {}
    payload = message.get("payload", {})
    for header in payload.get("headers", []):
        name = header.get("name", "").lower()
        if name in ("from", "to", "subject", "date"):
            headers[name.capitalize()] = header.get("value", "")
    return headers


def format_date(value: object) -> str:
    """Format a date for display as e.g. ``Mar 5, 2024``.

    Accepts RFC 2822 header dates, ISO 8601 strings (Drive's
    ``modifiedTime``) and datetimes. Anything unparseable is returned as
    text unchanged; a missing value becomes an empty string.
    """
    if value is None or value == "":
        return ""

    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                parsed = None

    if parsed is None:
        return str(value)
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def summarize_message(message: dict[str, Any]) -> dict[str, Any]:
    """Reduce a metadata-format message to the fields shown in listings."""
    headers = parse_headers(message)
    return {
        "id": message.get("id"),
        "thread_id": message.get("threadId"),
        "from": headers.get("From", ""),
        "subject": headers.get("Subject", "(No subject)"),
        "date": format_date(headers.get("Date")),
        "snippet": message.get("snippet", ""),
        "label_ids": message.get("labelIds", []),
    }


__all__ = [
    "list_messages",
    "get_message",
    "modify_message",
    "trash_message",
    "delete_message",
    "parse_headers",
    "format_date",
    "summarize_message",
]
