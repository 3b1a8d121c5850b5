"""Drive & Gmail Manager MCP tools package.

Tools are organized into three categories:

- Auth Tools: sign-in, sign-out and status
- Drive Tools: search, share, download and bulk file operations
- Gmail Tools: search, labels and bulk message operations

Every tool takes the application context as its first argument.
"""

from drive_gmail_manager.tools.auth import auth_login, auth_logout, auth_status
from drive_gmail_manager.tools.base import (
    build_error_response,
    build_success_response,
    execute_tool,
)
from drive_gmail_manager.tools.drive import (
    drive_delete_files,
    drive_delete_old_files,
    drive_download_file,
    drive_organize_by_type,
    drive_search,
    drive_share_file,
)
from drive_gmail_manager.tools.gmail import (
    gmail_add_label,
    gmail_create_label,
    gmail_delete_label,
    gmail_delete_spam,
    gmail_list_labels,
    gmail_search,
    gmail_trash_emails,
    gmail_trash_old_emails,
)

__all__ = [
    # Base utilities
    "build_error_response",
    "build_success_response",
    "execute_tool",
    # Auth tools
    "auth_login",
    "auth_logout",
    "auth_status",
    # Drive tools
    "drive_delete_files",
    "drive_delete_old_files",
    "drive_download_file",
    "drive_organize_by_type",
    "drive_search",
    "drive_share_file",
    # Gmail tools
    "gmail_add_label",
    "gmail_create_label",
    "gmail_delete_label",
    "gmail_delete_spam",
    "gmail_list_labels",
    "gmail_search",
    "gmail_trash_emails",
    "gmail_trash_old_emails",
]
