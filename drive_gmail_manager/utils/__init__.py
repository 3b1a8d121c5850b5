"""Utility functions and helpers for Drive & Gmail Manager.

This module provides the exception hierarchy and the translation of
failures into user-safe messages.
"""

from drive_gmail_manager.utils.errors import (
    AuthenticationError,
    BulkLimitError,
    ErrorKind,
    GoogleAPIError,
    ManagerError,
    OperationFailedError,
    RateLimitError,
    SecurityError,
    ValidationError,
)
from drive_gmail_manager.utils.user_messages import report_error, to_user_message

__all__ = [
    # Exception hierarchy
    "ManagerError",
    "AuthenticationError",
    "SecurityError",
    "RateLimitError",
    "ValidationError",
    "BulkLimitError",
    "ErrorKind",
    "GoogleAPIError",
    "OperationFailedError",
    # Error translation
    "to_user_message",
    "report_error",
]
