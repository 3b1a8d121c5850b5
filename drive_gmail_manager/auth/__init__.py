"""Authentication module: OAuth flow, CSRF state guard and session."""

from drive_gmail_manager.auth.oauth import OAuthManager
from drive_gmail_manager.auth.session import InitStatus, Session
from drive_gmail_manager.auth.state import (
    InMemoryStateStore,
    OAuthStateGuard,
    StateStore,
)

__all__ = [
    "OAuthManager",
    "OAuthStateGuard",
    "StateStore",
    "InMemoryStateStore",
    "Session",
    "InitStatus",
]
