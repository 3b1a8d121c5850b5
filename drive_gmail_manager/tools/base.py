"""Base utilities for the Drive & Gmail MCP tools.

This module provides shared utilities used by all tools including:
- Standardized response builders
- Parameter parsing that reports schema failures as ValidationError
- The audit-logging execution wrapper that turns exceptions into
  user-safe error responses
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from drive_gmail_manager.middleware.audit_logger import AuditLogger
from drive_gmail_manager.schemas.results import BulkOperationResult
from drive_gmail_manager.utils.errors import (
    BulkLimitError,
    ManagerError,
    RateLimitError,
    ValidationError,
)
from drive_gmail_manager.utils.user_messages import GENERIC_MESSAGE, report_error

logger = logging.getLogger(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)


# =============================================================================
# Standard Response Keys
# =============================================================================


class ResponseKeys:
    """Standard keys for tool responses."""

    STATUS = "status"
    DATA = "data"
    MESSAGE = "message"
    COUNT = "count"
    ERROR = "error"
    ERROR_CODE = "error_code"


# =============================================================================
# Response Builders
# =============================================================================


def build_success_response(
    data: Any,
    message: str | None = None,
    count: int | None = None,
) -> dict[str, Any]:
    """Build standardized success response.

    Args:
        data: Tool-specific payload.
        message: Optional human-readable message.
        count: Optional item count.

    Returns:
        Standardized success response dict.
    """
    response: dict[str, Any] = {
        ResponseKeys.STATUS: "success",
        ResponseKeys.DATA: data,
    }
    if message:
        response[ResponseKeys.MESSAGE] = message
    if count is not None:
        response[ResponseKeys.COUNT] = count
    return response


def build_error_response(
    error: str,
    error_code: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build standardized error response.

    Args:
        error: User-safe error message.
        error_code: Optional error code for programmatic handling.
        details: Optional additional fields merged into the response.

    Returns:
        Standardized error response dict.
    """
    response: dict[str, Any] = {
        ResponseKeys.STATUS: "error",
        ResponseKeys.ERROR: error,
    }
    if error_code:
        response[ResponseKeys.ERROR_CODE] = error_code
    if details:
        response.update(details)
    return response


def error_response_from(error: BaseException) -> dict[str, Any]:
    """Convert an exception into an error response without leaking detail.

    ManagerError messages are already user-safe (validation messages or
    canned sentences); anything else becomes the generic sentence.
    """
    if isinstance(error, ManagerError):
        details: dict[str, Any] = {}
        if isinstance(error, RateLimitError) and error.retry_after_seconds is not None:
            details["retry_after_seconds"] = round(error.retry_after_seconds, 1)
        if isinstance(error, ValidationError) and error.field:
            details["field"] = error.field
        if isinstance(error, BulkLimitError):
            details["item_count"] = error.item_count
            details["max_items"] = error.max_items
        return build_error_response(
            error=error.message,
            error_code=error.__class__.__name__,
            details=details,
        )

    return build_error_response(error=GENERIC_MESSAGE, error_code="UnexpectedError")


def parse_params(model: type[ParamsT], **arguments: Any) -> ParamsT:
    """Build a parameter model, reporting the first bad field.

    Raises:
        ValidationError: Naming the field; pydantic's own text is logged
            at debug level and never returned.
    """
    try:
        return model(**arguments)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        logger.debug("Rejected %s: %s", model.__name__, first["type"])
        raise ValidationError(
            f"Invalid value for {field or 'request'}.", field=field
        ) from e


def bulk_result_response(result: BulkOperationResult, verb: str) -> dict[str, Any]:
    """Build the success response for a completed bulk run."""
    message = f"{result.succeeded} of {result.total} items {verb}"
    if result.failed:
        message += f", {result.failed} failed"
    if result.skipped:
        message += f", {result.skipped} skipped"
    if result.warning:
        message += f". {result.warning}"
    return build_success_response(
        data=result.model_dump(),
        message=message,
        count=result.total,
    )


# =============================================================================
# Tool Execution Wrapper
# =============================================================================


async def execute_tool(
    audit: AuditLogger,
    tool_name: str,
    params: dict[str, Any],
    operation: Callable[[], Awaitable[dict[str, Any]]],
) -> dict[str, Any]:
    """Run a tool operation with timing, audit logging and error conversion.

    Args:
        audit: Audit logger receiving one entry per call.
        tool_name: Name of the tool being executed.
        params: Tool parameters (for audit logging; redacted there).
        operation: Coroutine function producing the success response.

    Returns:
        The operation's response, or an error response if it raised.
    """
    start_time = time.perf_counter()
    result_status = "success"
    error_message: str | None = None

    try:
        return await operation()

    except ManagerError as e:
        result_status = "error"
        error_message = e.message
        logger.warning("%s failed: %s", tool_name, e.__class__.__name__)
        return error_response_from(e)
    except Exception as e:
        result_status = "error"
        error_message = GENERIC_MESSAGE
        report_error(f"Unexpected error in {tool_name}", e)
        return error_response_from(e)
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        audit.log_tool_call(
            tool_name=tool_name,
            parameters=params,
            result_status=result_status,
            error_message=error_message,
            duration_ms=duration_ms,
        )


__all__ = [
    "ResponseKeys",
    "build_success_response",
    "build_error_response",
    "error_response_from",
    "parse_params",
    "bulk_result_response",
    "execute_tool",
]
