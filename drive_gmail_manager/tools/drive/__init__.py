"""Google Drive tools."""

from drive_gmail_manager.tools.drive.bulk import (
    drive_delete_files,
    drive_delete_old_files,
    drive_organize_by_type,
)
from drive_gmail_manager.tools.drive.download import drive_download_file
from drive_gmail_manager.tools.drive.search import drive_search
from drive_gmail_manager.tools.drive.share import drive_share_file

__all__ = [
    "drive_delete_files",
    "drive_delete_old_files",
    "drive_download_file",
    "drive_organize_by_type",
    "drive_search",
    "drive_share_file",
]
