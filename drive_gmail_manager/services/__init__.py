"""Governed Drive and Gmail adapters and the bulk orchestrator."""

from drive_gmail_manager.services.bulk import BulkOrchestrator
from drive_gmail_manager.services.drive import DriveService
from drive_gmail_manager.services.gmail import GmailService

__all__ = ["BulkOrchestrator", "DriveService", "GmailService"]
