"""Gmail tools."""

from drive_gmail_manager.tools.gmail.bulk import (
    gmail_delete_spam,
    gmail_trash_emails,
    gmail_trash_old_emails,
)
from drive_gmail_manager.tools.gmail.labels import (
    gmail_add_label,
    gmail_create_label,
    gmail_delete_label,
    gmail_list_labels,
)
from drive_gmail_manager.tools.gmail.search import gmail_search

__all__ = [
    "gmail_add_label",
    "gmail_create_label",
    "gmail_delete_label",
    "gmail_delete_spam",
    "gmail_list_labels",
    "gmail_search",
    "gmail_trash_emails",
    "gmail_trash_old_emails",
]
