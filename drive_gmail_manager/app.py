"""Composition root: builds and wires every long-lived component once."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from drive_gmail_manager.api.client import GoogleClient
from drive_gmail_manager.auth.oauth import OAuthManager
from drive_gmail_manager.auth.session import Session
from drive_gmail_manager.auth.state import (
    InMemoryStateStore,
    OAuthStateGuard,
    StateStore,
)
from drive_gmail_manager.middleware.audit_logger import AuditLogger
from drive_gmail_manager.middleware.rate_limiter import RateLimiters
from drive_gmail_manager.services.bulk import BulkOrchestrator
from drive_gmail_manager.services.drive import DriveService
from drive_gmail_manager.services.gmail import GmailService
from drive_gmail_manager.utils.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything the tools need, constructed together and passed down."""

    limiters: RateLimiters
    oauth: OAuthManager
    session: Session
    client: GoogleClient
    drive: DriveService
    gmail: GmailService
    bulk: BulkOrchestrator
    audit: AuditLogger

    async def check_oauth_configured(self) -> None:
        """Bootstrap step: fail fast when client credentials are missing."""
        if not self.oauth.is_configured:
            raise AuthenticationError(
                "OAuth not configured",
                details={
                    "hint": "Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET "
                    "environment variables"
                },
            )

    async def sign_out(self) -> bool:
        """Sign out and drop per-session state (services, limiter windows)."""
        revoked = await self.session.logout()
        self.client.invalidate()
        self.limiters.reset_all()
        return revoked


def build_app(
    state_store: StateStore | None = None,
    limiters: RateLimiters | None = None,
    audit_enabled: bool = True,
) -> AppContext:
    """Construct the application graph.

    Args:
        state_store: Storage for the OAuth state token; in-memory if None.
        limiters: Rate limiters; built from configuration if None.
        audit_enabled: Whether audit entries are written.

    Returns:
        A fully wired AppContext.
    """
    limiters = limiters or RateLimiters.from_config()
    guard = OAuthStateGuard(state_store or InMemoryStateStore())
    oauth = OAuthManager(guard)
    session = Session(oauth)
    client = GoogleClient(session)
    drive = DriveService(client.drive, limiters.drive)
    gmail = GmailService(client.gmail, limiters.gmail)

    logger.debug("Application context built")
    return AppContext(
        limiters=limiters,
        oauth=oauth,
        session=session,
        client=client,
        drive=drive,
        gmail=gmail,
        bulk=BulkOrchestrator(drive, gmail, limiters),
        audit=AuditLogger(enabled=audit_enabled),
    )


__all__ = ["AppContext", "build_app"]
