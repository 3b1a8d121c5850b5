"""Pydantic schemas for Drive & Gmail Manager.

This module exports the result models produced by the governance layer
and the parameter models of the MCP tools.
"""

from drive_gmail_manager.schemas.results import (
    BulkOperationResult,
    EmailValidationResult,
    EmailValidationStatus,
    LengthCheck,
)
from drive_gmail_manager.schemas.tools import (
    AddLabelParams,
    CreateLabelParams,
    DeleteFilesParams,
    DeleteLabelParams,
    DeleteOldFilesParams,
    DownloadFileParams,
    DriveSearchParams,
    GmailSearchParams,
    ShareFileParams,
    TrashEmailsParams,
    TrashOldEmailsParams,
)

__all__ = [
    # Results
    "BulkOperationResult",
    "EmailValidationResult",
    "EmailValidationStatus",
    "LengthCheck",
    # Drive tool params
    "DriveSearchParams",
    "ShareFileParams",
    "DownloadFileParams",
    "DeleteFilesParams",
    "DeleteOldFilesParams",
    # Gmail tool params
    "GmailSearchParams",
    "CreateLabelParams",
    "DeleteLabelParams",
    "AddLabelParams",
    "TrashEmailsParams",
    "TrashOldEmailsParams",
]
