"""Middleware module for Drive & Gmail Manager."""

from drive_gmail_manager.middleware.audit_logger import (
    AuditEntry,
    AuditEvent,
    AuditLogger,
)
from drive_gmail_manager.middleware.rate_limiter import RateLimiter, RateLimiters
from drive_gmail_manager.middleware.validator import (
    build_drive_search_query,
    build_gmail_search_query,
    clamp_numeric_input,
    is_trusted_google_url,
    sanitize_drive_query_text,
    sanitize_email_address,
    sanitize_file_name,
    sanitize_gmail_query_text,
    sanitize_opaque_id,
    validate_email_address,
    validate_label_name,
    validate_length,
    validate_resource_id,
)

__all__ = [
    "RateLimiter",
    "RateLimiters",
    "AuditLogger",
    "AuditEntry",
    "AuditEvent",
    "validate_email_address",
    "sanitize_email_address",
    "is_trusted_google_url",
    "sanitize_opaque_id",
    "sanitize_drive_query_text",
    "sanitize_gmail_query_text",
    "build_drive_search_query",
    "build_gmail_search_query",
    "sanitize_file_name",
    "clamp_numeric_input",
    "validate_length",
    "validate_label_name",
    "validate_resource_id",
]
