"""Audit trail for tool calls, sign-in events and bulk runs.

Each entry is one JSON line on stderr under an ``audit`` key, so the trail
can be filtered out of the ordinary log. Stdout belongs to the MCP STDIO
transport and is never written.

Parameter values pass through ``redact`` before they are recorded:
credentials, OAuth codes and state tokens are replaced, email addresses
are masked even inside free-text queries, and long ID selections are
reduced to a count.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal, TextIO

from pydantic import BaseModel, Field

from drive_gmail_manager.schemas.results import BulkOperationResult

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Selections longer than this are logged as "[N items]"
MAX_LISTED_ITEMS = 10

SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "token",
        "client_secret",
        "client_id",
        "api_key",
        "authorization",
        "secret",
        "password",
        "code",
        "state",
        "email",
    }
)

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")


def redact(value: Any, key: str | None = None) -> Any:
    """Return a copy of value that is safe to write to the audit trail.

    Args:
        value: Parameter value; dicts and lists are walked recursively.
        key: Name the value is stored under, if any.

    Returns:
        The redacted value.
    """
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if isinstance(value, dict):
        return {k: redact(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        if len(value) > MAX_LISTED_ITEMS:
            return f"[{len(value)} items]"
        return [redact(item) for item in value]
    if isinstance(value, str):
        return EMAIL_PATTERN.sub(REDACTED, value)
    return value


class AuditEvent(str, Enum):
    """Kinds of audited activity."""

    TOOL_CALL = "tool_call"
    AUTH = "auth"
    BULK_RUN = "bulk_run"


class AuditEntry(BaseModel):
    """One line of the audit trail."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="ISO format timestamp",
    )
    event: AuditEvent = Field(..., description="Kind of activity")
    name: str = Field(
        ..., description="Tool name, auth action or bulk operation name"
    )
    outcome: Literal["success", "error", "partial"] | None = Field(
        default=None,
        description="How the activity ended",
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Redacted parameters or event details",
    )
    error_message: str | None = Field(
        default=None,
        description="User-safe error message if failed",
    )
    duration_ms: float | None = Field(default=None, description="Wall time")
    counts: dict[str, int] | None = Field(
        default=None,
        description="Item accounting for bulk runs",
    )


class AuditLogger:
    """Writes audit entries as JSON lines.

    Example:
        >>> audit = AuditLogger()
        >>> audit.log_auth_event("logout", details={"revoked": True})
    """

    def __init__(self, enabled: bool = True, stream: TextIO | None = None):
        """Initialize audit logger.

        Args:
            enabled: Whether entries are written at all.
            stream: Destination; stderr (looked up at write time) if None.
        """
        self._enabled = enabled
        self._stream = stream
        logger.debug("Audit trail %s", "enabled" if enabled else "disabled")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def log(self, entry: AuditEntry) -> None:
        """Write one entry; a write failure is logged, never raised."""
        if not self._enabled:
            return

        payload = {"audit": entry.model_dump(mode="json", exclude_none=True)}
        try:
            print(json.dumps(payload), file=self._stream or sys.stderr, flush=True)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write audit entry: %s", type(e).__name__)

    def log_tool_call(
        self,
        tool_name: str,
        parameters: dict[str, Any],
        result_status: str | None = None,
        error_message: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Record a tool invocation.

        Args:
            tool_name: Registered tool name.
            parameters: Tool arguments (redacted before writing).
            result_status: "success" or "error".
            error_message: User-safe error message if failed.
            duration_ms: Execution time in milliseconds.
        """
        self.log(
            AuditEntry(
                event=AuditEvent.TOOL_CALL,
                name=tool_name,
                outcome=result_status,
                parameters=redact(parameters),
                error_message=error_message,
                duration_ms=duration_ms,
            )
        )

    def log_auth_event(
        self,
        event: str,
        success: bool = True,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record a sign-in, sign-out or state rejection."""
        self.log(
            AuditEntry(
                event=AuditEvent.AUTH,
                name=event,
                outcome="success" if success else "error",
                parameters=redact(details or {}),
            )
        )

    def log_bulk_run(self, result: BulkOperationResult) -> None:
        """Record the item accounting of a finished bulk run."""
        self.log(
            AuditEntry(
                event=AuditEvent.BULK_RUN,
                name=result.operation,
                outcome="partial" if result.failed else "success",
                counts={
                    "total": result.total,
                    "succeeded": result.succeeded,
                    "failed": result.failed,
                    "skipped": result.skipped,
                },
            )
        )


__all__ = ["AuditEntry", "AuditEvent", "AuditLogger", "redact"]
