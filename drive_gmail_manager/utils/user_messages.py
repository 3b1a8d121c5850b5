"""Translation of failures into user-facing messages.

Every error surfaced to a caller is one of a small, fixed set of
sentences prefixed with the operation label. Raw exception text, stack
traces and upstream payloads are only ever written to the log, and only
in development mode.
"""

from __future__ import annotations

import logging

from drive_gmail_manager.config import is_development
from drive_gmail_manager.utils.errors import ErrorKind, GoogleAPIError

logger = logging.getLogger(__name__)

STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request. Please check your input and try again.",
    401: "Your session has expired. Please sign in again.",
    403: "You don't have permission to perform this action.",
    404: "The requested item was not found.",
    409: "This operation conflicts with the current state. "
    "Please refresh and try again.",
    429: "Too many requests. Please wait a moment and try again.",
    500: "Google services are experiencing issues. Please try again later.",
    503: "Service temporarily unavailable. Please try again in a few moments.",
}

KIND_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Network error. Please check your internet connection.",
    ErrorKind.QUOTA: "API quota exceeded. Please try again later.",
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.PERMISSION: "Permission denied. Please check your access rights.",
}

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."

SECURITY_MESSAGE = "Security verification failed. Please try again."


def to_user_message(error: BaseException, context: str = "Operation") -> str:
    """Map a failure to a canned, user-safe sentence.

    Args:
        error: Any exception; non-API exceptions are classified first.
        context: Label of the failed operation (e.g. "File search").

    Returns:
        ``"{context} failed: {sentence}"``.
    """
    api_error = GoogleAPIError.from_exception(error, context)

    if api_error.status_code is not None and api_error.status_code in STATUS_MESSAGES:
        return f"{context} failed: {STATUS_MESSAGES[api_error.status_code]}"

    if api_error.kind in KIND_MESSAGES:
        return f"{context} failed: {KIND_MESSAGES[api_error.kind]}"

    return f"{context} failed: {GENERIC_MESSAGE}"


def report_error(message: str, error: BaseException | None = None) -> None:
    """Log an error, keeping raw detail out of production logs.

    Args:
        message: Generic description that is safe to log anywhere.
        error: The underlying exception (logged with traceback in
            development mode only).
    """
    if is_development() and error is not None:
        logger.error("%s: %s", message, error, exc_info=error)
    else:
        logger.error(message)


__all__ = [
    "STATUS_MESSAGES",
    "KIND_MESSAGES",
    "GENERIC_MESSAGE",
    "SECURITY_MESSAGE",
    "to_user_message",
    "report_error",
]
