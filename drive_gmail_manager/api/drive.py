"""Drive file operations."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

from googleapiclient.discovery import Resource
from googleapiclient.http import MediaIoBaseDownload

from drive_gmail_manager.utils.errors import GoogleAPIError

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Drive caps pageSize at 1000
MAX_PAGE_SIZE = 1000

FILE_FIELDS = (
    "id, name, mimeType, size, modifiedTime, webViewLink, iconLink, parents, starred"
)


def list_files(
    service: Resource,
    query: str,
    max_results: int = 100,
    order_by: str = "modifiedTime desc",
) -> list[dict[str, Any]]:
    """List files matching a Drive query, following pagination."""
    try:
        files: list[dict[str, Any]] = []
        page_token: str | None = None

        while len(files) < max_results:
            response = (
                service.files()
                .list(
                    q=query,
                    pageSize=min(max_results - len(files), MAX_PAGE_SIZE),
                    fields=f"nextPageToken, files({FILE_FIELDS})",
                    orderBy=order_by,
                    pageToken=page_token,
                )
                .execute()
            )
            files.extend(response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.debug("Listed %d files", len(files))
        return files[:max_results]

    except Exception as e:
        logger.warning("Failed to list files: %s", type(e).__name__)
        raise GoogleAPIError.from_exception(e, "Failed to list files") from e


def create_folder(service: Resource, name: str) -> dict[str, Any]:
    """Create a folder in the root of My Drive."""
    try:
        folder = (
            service.files()
            .create(
                body={"name": name, "mimeType": FOLDER_MIME_TYPE}, fields="id, name"
            )
            .execute()
        )
        logger.info("Created folder %s", folder.get("id"))
        return folder
    except Exception as e:
        logger.warning("Failed to create folder: %s", type(e).__name__)
        raise GoogleAPIError.from_exception(e, "Failed to create folder") from e


def move_file(service: Resource, file_id: str, folder_id: str) -> dict[str, Any]:
    """Move a file into a folder, detaching it from its current parents."""
    try:
        current = service.files().get(fileId=file_id, fields="parents").execute()
        previous_parents = ",".join(current.get("parents", []))
        moved = (
            service.files()
            .update(
                fileId=file_id,
                addParents=folder_id,
                removeParents=previous_parents,
                fields="id, parents",
            )
            .execute()
        )
        logger.debug("Moved file %s to folder %s", file_id, folder_id)
        return moved
    except Exception as e:
        logger.warning("Failed to move file %s: %s", file_id, type(e).__name__)
        raise GoogleAPIError.from_exception(e, f"Failed to move file {file_id}") from e


def create_permission(
    service: Resource, file_id: str, email: str, role: str = "reader"
) -> dict[str, Any]:
    """Grant a user access to a file."""
    try:
        permission = (
            service.permissions()
            .create(
                fileId=file_id,
                body={"type": "user", "role": role, "emailAddress": email},
                fields="id",
            )
            .execute()
        )
        logger.info("Shared file %s with role %s", file_id, role)
        return permission
    except Exception as e:
        logger.warning("Failed to share file %s: %s", file_id, type(e).__name__)
        raise GoogleAPIError.from_exception(e, f"Failed to share file {file_id}") from e


def download_file(service: Resource, file_id: str, destination: Path) -> int:
    """Stream a file's content to destination.

    Returns:
        Number of bytes written.
    """
    try:
        request = service.files().get_media(fileId=file_id)
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(buffer, request)
        done = False
        while not done:
            _, done = downloader.next_chunk()

        data = buffer.getvalue()
        destination.write_bytes(data)
        logger.info("Downloaded file %s (%d bytes)", file_id, len(data))
        return len(data)
    except OSError as e:
        logger.warning("Failed to write download for %s: %s", file_id, type(e).__name__)
        raise GoogleAPIError.from_exception(e, f"Failed to save file {file_id}") from e
    except Exception as e:
        logger.warning("Failed to download file %s: %s", file_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to download file {file_id}"
        ) from e


def delete_file(service: Resource, file_id: str) -> None:
    """Permanently delete a file."""
    try:
        service.files().delete(fileId=file_id).execute()
        logger.info("Deleted file %s", file_id)
    except Exception as e:
        logger.warning("Failed to delete file %s: %s", file_id, type(e).__name__)
        raise GoogleAPIError.from_exception(
            e, f"Failed to delete file {file_id}"
        ) from e


def format_file_size(size: object) -> str:
    """Format a byte count for display (``512 Bytes``, ``1.50 KB``).

    Drive reports sizes as decimal strings. Google-native documents report
    no size; those, zero and other non-numeric values render as ``N/A``.
    """
    try:
        value = int(size)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return "N/A"

    if value <= 0:
        return "N/A"

    units = ["Bytes", "KB", "MB", "GB", "TB"]
    index = 0
    scaled = float(value)
    while scaled >= 1024 and index < len(units) - 1:
        scaled /= 1024
        index += 1

    if index == 0:
        return f"{value} Bytes"
    return f"{scaled:.2f} {units[index]}"


__all__ = [
    "FOLDER_MIME_TYPE",
    "list_files",
    "create_folder",
    "move_file",
    "create_permission",
    "download_file",
    "delete_file",
    "format_file_size",
]
