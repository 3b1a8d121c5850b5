"""Authentication tools."""

from drive_gmail_manager.tools.auth.login import auth_login
from drive_gmail_manager.tools.auth.logout import auth_logout
from drive_gmail_manager.tools.auth.status import auth_status

__all__ = ["auth_login", "auth_logout", "auth_status"]
