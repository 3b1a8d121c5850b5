"""Drive adapter: the governed entry point for every Drive operation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from drive_gmail_manager.api import drive as drive_api
from drive_gmail_manager.api.messages import format_date
from drive_gmail_manager.middleware.validator import (
    build_drive_search_query,
    is_trusted_google_url,
    sanitize_email_address,
    sanitize_file_name,
    validate_email_address,
    validate_resource_id,
)
from drive_gmail_manager.schemas.results import EmailValidationStatus
from drive_gmail_manager.services.base import RemoteAdapter
from drive_gmail_manager.utils.errors import ValidationError

logger = logging.getLogger(__name__)

SHARE_ROLES = ("reader", "commenter", "writer")


class DriveService(RemoteAdapter):
    """Async Drive operations behind sanitization, rate limiting and
    error translation.

    Example:
        >>> drive = DriveService(client.drive, limiters.drive)
        >>> files = await drive.search_files("budget", section="starred")
    """

    async def search_files(
        self,
        text: str = "",
        section: str | None = None,
        mime_type: str | None = None,
        max_results: int = 100,
    ) -> list[dict[str, Any]]:
        """Search files by name within a section.

        Raises:
            RateLimitError: If the search bucket is full.
            OperationFailedError: If the Drive call fails.
        """
        query = build_drive_search_query(text, section, mime_type)
        self._admit("search", "Too many search requests. Please wait a moment.")
        logger.debug("Searching files with query: %s", query)
        files = await self._call(
            "File search", drive_api.list_files, query, max_results
        )
        logger.debug("Found %d files", len(files))
        return files

    async def list_files(
        self, query: str, max_results: int, context: str = "File listing"
    ) -> list[dict[str, Any]]:
        """List files for a trusted, internally built query.

        Not admitted here; bulk runs are admitted by the orchestrator.

        Args:
            query: Drive query built by the caller (not re-sanitized).
            max_results: Upper bound on files returned.
            context: Operation label for the translated error message.
        """
        return await self._call(context, drive_api.list_files, query, max_results)

    async def create_folder(self, name: str, wait: bool = False) -> dict[str, Any]:
        """Create a folder in My Drive.

        Args:
            name: Folder name; sanitized like a file name.
            wait: Park until admitted instead of failing fast.
        """
        safe_name = sanitize_file_name(name)
        await self._gate(
            "create_folder", "Too many folder creation requests. Please wait.", wait
        )
        return await self._call("Folder creation", drive_api.create_folder, safe_name)

    async def move_file_to_folder(
        self, file_id: str, folder_id: str, wait: bool = False
    ) -> None:
        """Move a file into a folder, detaching it from previous parents."""
        validate_resource_id(file_id, "file ID")
        validate_resource_id(folder_id, "folder ID")
        await self._gate("move_file", "Too many move operations. Please wait.", wait)
        await self._call("File move", drive_api.move_file, file_id, folder_id)

    async def share_file(self, file_id: str, email: str, role: str = "reader") -> str:
        """Share a file with a user.

        Returns:
            The sanitized address the file was shared with.

        Raises:
            ValidationError: If the address is invalid or has a domain typo.
            RateLimitError: If the share bucket is full.
            OperationFailedError: If the Drive call fails.
        """
        validate_resource_id(file_id, "file ID")
        if role not in SHARE_ROLES:
            raise ValidationError(
                f"Invalid role. Use one of: {', '.join(SHARE_ROLES)}.", field="role"
            )

        result = validate_email_address(email)
        if result.status == EmailValidationStatus.INVALID_WITH_SUGGESTION:
            raise ValidationError(f"Did you mean {result.suggestion}?", field="email")
        if not result.is_valid:
            raise ValidationError("Please enter a valid email address.", field="email")

        address = sanitize_email_address(email)
        self._admit("share", "Too many share operations. Please wait.")
        await self._call(
            "File sharing", drive_api.create_permission, file_id, address, role
        )
        return address

    async def download_file(
        self, file_id: str, file_name: str, dest_dir: Path | str
    ) -> Path:
        """Download a file's content into dest_dir under a sanitized name.

        Returns:
            Path of the written file.
        """
        validate_resource_id(file_id, "file ID")
        directory = Path(dest_dir)
        if not directory.is_dir():
            raise ValidationError(
                "Download directory does not exist.", field="dest_dir"
            )

        destination = directory / sanitize_file_name(file_name)
        self._admit("download", "Too many download requests. Please wait.")
        await self._call("File download", drive_api.download_file, file_id, destination)
        return destination

    async def delete_file(self, file_id: str) -> None:
        """Permanently delete a file.

        Not admitted here; the bulk orchestrator governs deletion pace.
        """
        validate_resource_id(file_id, "file ID")
        await self._call("File deletion", drive_api.delete_file, file_id)

    @staticmethod
    def web_link(file: dict[str, Any]) -> str | None:
        """Return the file's webViewLink only if it points at Google."""
        link = file.get("webViewLink")
        if is_trusted_google_url(link):
            return link
        if link:
            logger.warning("Dropping untrusted link for file %s", file.get("id"))
        return None

    @classmethod
    def summarize(cls, file: dict[str, Any]) -> dict[str, Any]:
        """Reduce a Drive file resource to the fields shown in listings."""
        return {
            "id": file.get("id"),
            "name": file.get("name"),
            "mime_type": file.get("mimeType"),
            "size": drive_api.format_file_size(file.get("size")),
            "modified": format_date(file.get("modifiedTime")),
            "starred": bool(file.get("starred", False)),
            "link": cls.web_link(file),
        }


__all__ = ["DriveService", "SHARE_ROLES"]
