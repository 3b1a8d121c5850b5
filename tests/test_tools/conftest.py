"""Fixtures for tool tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.results import BulkOperationResult


@pytest.fixture
def app() -> AppContext:
    """Application context with every collaborator mocked."""
    context = AppContext(
        limiters=MagicMock(),
        oauth=MagicMock(),
        session=MagicMock(),
        client=MagicMock(),
        drive=MagicMock(),
        gmail=MagicMock(),
        bulk=MagicMock(),
        audit=MagicMock(),
    )
    context.oauth.is_configured = True
    context.session.login = AsyncMock(return_value=None)
    context.session.logout = AsyncMock(return_value=True)
    return context


@pytest.fixture
def partial_result() -> BulkOperationResult:
    """A bulk run where one of five items failed."""
    return BulkOperationResult(
        operation="delete_old_files", total=5, succeeded=4, failed=1
    )
