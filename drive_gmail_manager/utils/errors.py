"""Custom exception hierarchy for Drive & Gmail Manager.

This module defines a structured exception hierarchy for the error
conditions the manager distinguishes: local validation failures, rate
limit rejections, OAuth and CSRF failures, bulk pre-check rejections and
errors returned by the Google Drive and Gmail APIs.

Remote failures are normalized once, at the API call boundary, into a
single ``GoogleAPIError`` carrying an explicit ``ErrorKind`` tag and an
optional HTTP status code.
"""

from __future__ import annotations

import socket
from enum import Enum

import httplib2
import requests
from googleapiclient.errors import HttpError


class ManagerError(Exception):
    """Base exception for all Drive & Gmail Manager errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class AuthenticationError(ManagerError):
    """Exception raised for OAuth and credential-related errors.

    Examples:
        - User denied OAuth consent
        - Client credentials are not configured
        - The session has no access token
        - Session bootstrap did not finish before its deadline
    """

    pass


class SecurityError(AuthenticationError):
    """Exception raised when the OAuth state handshake fails.

    Raised when the ``state`` value echoed by the authorization server is
    missing, expired or does not match the pending token. The message is
    always generic; the reason is only logged.
    """

    pass


class RateLimitError(ManagerError):
    """Exception raised when a single-shot operation is not admitted.

    Attributes:
        retry_after_seconds: Suggested time to wait before retrying.
    """

    def __init__(
        self,
        message: str,
        retry_after_seconds: float | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize the rate limit exception.

        Args:
            message: Human-readable error description.
            retry_after_seconds: Suggested time to wait before retrying.
            details: Optional dictionary containing additional error context.
        """
        super().__init__(message, details)
        self.retry_after_seconds = retry_after_seconds


class ValidationError(ManagerError):
    """Exception raised for input validation errors.

    Attributes:
        field: The name of the field that failed validation, if applicable.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize the validation error exception.

        Args:
            message: Human-readable error description.
            field: The name of the field that failed validation.
            details: Optional dictionary containing additional error context.
        """
        super().__init__(message, details)
        self.field = field


class BulkLimitError(ManagerError):
    """Exception raised when a bulk run is rejected before any mutation.

    Attributes:
        item_count: Size of the candidate set.
        max_items: Ceiling the candidate set was checked against.
    """

    def __init__(self, message: str, item_count: int, max_items: int) -> None:
        super().__init__(message)
        self.item_count = item_count
        self.max_items = max_items


class ErrorKind(str, Enum):
    """Classification of a remote failure."""

    HTTP = "http"
    NETWORK = "network"
    TIMEOUT = "timeout"
    QUOTA = "quota"
    PERMISSION = "permission"
    UNKNOWN = "unknown"


# Checked in order against the lower-cased exception text
_MESSAGE_KINDS: list[tuple[tuple[str, ...], ErrorKind]] = [
    (("network", "fetch"), ErrorKind.NETWORK),
    (("quota",), ErrorKind.QUOTA),
    (("timeout",), ErrorKind.TIMEOUT),
    (("permission",), ErrorKind.PERMISSION),
]


def _kind_from_text(text: str | None, default: ErrorKind) -> ErrorKind:
    lowered = (text or "").lower()
    for needles, kind in _MESSAGE_KINDS:
        if any(needle in lowered for needle in needles):
            return kind
    return default


class GoogleAPIError(ManagerError):
    """Exception raised for errors from Drive or Gmail API calls.

    Attributes:
        kind: Classification of the failure.
        status_code: HTTP status code from the API response, if any.
        error_code: Google API reason string (e.g. "rateLimitExceeded").
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize the Google API error exception.

        Args:
            message: Human-readable error description (internal only).
            kind: Classification of the failure.
            status_code: HTTP status code from the API response.
            error_code: Google API reason string, if available.
            details: Optional dictionary containing additional error context.
        """
        super().__init__(message, details)
        self.kind = kind
        self.status_code = status_code
        self.error_code = error_code

    @classmethod
    def from_exception(cls, exc: BaseException, message: str) -> GoogleAPIError:
        """Build a typed error from whatever a remote call raised.

        Args:
            exc: The exception raised by the client library.
            message: Internal description of the failed operation.

        Returns:
            A GoogleAPIError tagged with the matching ErrorKind.
        """
        if isinstance(exc, GoogleAPIError):
            return exc

        full_message = f"{message}: {exc}"

        if isinstance(exc, HttpError):
            reason = None
            try:
                error_details = exc.error_details
                if isinstance(error_details, list) and error_details:
                    reason = error_details[0].get("reason")
            except AttributeError:
                pass
            # Statuses outside the message table fall back to the reason text
            return cls(
                full_message,
                kind=_kind_from_text(getattr(exc, "reason", None), ErrorKind.HTTP),
                status_code=exc.resp.status,
                error_code=reason,
            )

        if isinstance(exc, (TimeoutError, socket.timeout, requests.Timeout)):
            return cls(full_message, kind=ErrorKind.TIMEOUT)

        if isinstance(
            exc,
            (ConnectionError, httplib2.ServerNotFoundError, requests.ConnectionError),
        ):
            return cls(full_message, kind=ErrorKind.NETWORK)

        return cls(full_message, kind=_kind_from_text(str(exc), ErrorKind.UNKNOWN))


class OperationFailedError(ManagerError):
    """Exception carrying a user-safe message for a failed operation.

    The message is always one of the canned sentences produced by the
    error translator; the underlying exception is chained as ``__cause__``.

    Attributes:
        context: Label of the operation that failed (e.g. "File search").
    """

    def __init__(self, message: str, context: str) -> None:
        super().__init__(message)
        self.context = context


__all__ = [
    "ManagerError",
    "AuthenticationError",
    "SecurityError",
    "RateLimitError",
    "ValidationError",
    "BulkLimitError",
    "ErrorKind",
    "GoogleAPIError",
    "OperationFailedError",
]
