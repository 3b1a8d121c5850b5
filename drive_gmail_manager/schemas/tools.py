"""Pydantic parameter models for the MCP tools.

Models are grouped by API family:

- Drive Tools: search, share, download and bulk file operations
- Gmail Tools: search, labels and bulk message operations

Field constraints catch malformed requests early; free text is still
sanitized by the adapters before it reaches a query. Age thresholds and
selection sizes are left to the bulk orchestrator, which reports them
with its own messages.
"""

from pydantic import BaseModel, Field

from drive_gmail_manager.config import (
    DEFAULT_AGE_DAYS,
    MAX_AGE_DAYS,
    MAX_SELECTION_ITEMS,
    MIN_AGE_DAYS,
)

# =============================================================================
# Drive Tool Parameter Models
# =============================================================================


class DriveSearchParams(BaseModel):
    """Parameters for drive_search tool."""

    query: str = Field(
        default="",
        description="Text matched against file names",
    )
    section: str = Field(
        default="all",
        pattern="^(all|starred|trash)$",
        description="Drive section to search",
    )
    mime_type: str | None = Field(
        default=None,
        description="MIME type filter (e.g., 'image/' or 'application/pdf')",
    )
    max_results: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum files to return",
    )


class ShareFileParams(BaseModel):
    """Parameters for drive_share_file tool."""

    file_id: str = Field(..., min_length=1, description="Drive file ID")
    email: str = Field(..., min_length=1, description="Address to share with")
    role: str = Field(
        default="reader",
        pattern="^(reader|commenter|writer)$",
        description="Permission role",
    )


class DownloadFileParams(BaseModel):
    """Parameters for drive_download_file tool."""

    file_id: str = Field(..., min_length=1, description="Drive file ID")
    file_name: str = Field(..., description="Name to save the file under")
    dest_dir: str = Field(
        default=".",
        description="Existing local directory to save into",
    )


class DeleteFilesParams(BaseModel):
    """Parameters for drive_delete_files tool."""

    file_ids: list[str] = Field(
        ...,
        description=f"Drive file IDs to delete permanently (max {MAX_SELECTION_ITEMS})",
    )


class DeleteOldFilesParams(BaseModel):
    """Parameters for drive_delete_old_files tool."""

    days_old: int = Field(
        default=DEFAULT_AGE_DAYS,
        description=(
            f"Delete files not modified in this many days "
            f"({MIN_AGE_DAYS}-{MAX_AGE_DAYS})"
        ),
    )


# =============================================================================
# Gmail Tool Parameter Models
# =============================================================================


class GmailSearchParams(BaseModel):
    """Parameters for gmail_search tool."""

    query: str = Field(
        default="",
        description="Gmail search text (e.g., 'from:user@example.com')",
    )
    section: str | None = Field(
        default=None,
        pattern="^(inbox|sent|starred|archive|trash)$",
        description="Mailbox section",
    )
    max_results: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum messages to return",
    )


class CreateLabelParams(BaseModel):
    """Parameters for gmail_create_label tool."""

    name: str = Field(..., description="Label name (max 255 characters)")


class DeleteLabelParams(BaseModel):
    """Parameters for gmail_delete_label tool."""

    label_id: str = Field(..., min_length=1, description="Label ID")


class AddLabelParams(BaseModel):
    """Parameters for gmail_add_label tool."""

    message_id: str = Field(..., min_length=1, description="Message ID")
    label_id: str = Field(..., min_length=1, description="Label ID")


class TrashEmailsParams(BaseModel):
    """Parameters for gmail_trash_emails tool."""

    message_ids: list[str] = Field(
        ...,
        description=f"Message IDs to move to trash (max {MAX_SELECTION_ITEMS})",
    )


class TrashOldEmailsParams(BaseModel):
    """Parameters for gmail_trash_old_emails tool."""

    days_old: int = Field(
        default=DEFAULT_AGE_DAYS,
        description=(
            f"Trash emails older than this many days "
            f"({MIN_AGE_DAYS}-{MAX_AGE_DAYS})"
        ),
    )


__all__ = [
    "DriveSearchParams",
    "ShareFileParams",
    "DownloadFileParams",
    "DeleteFilesParams",
    "DeleteOldFilesParams",
    "GmailSearchParams",
    "CreateLabelParams",
    "DeleteLabelParams",
    "AddLabelParams",
    "TrashEmailsParams",
    "TrashOldEmailsParams",
]
