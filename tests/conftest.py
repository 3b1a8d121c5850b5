"""Pytest configuration and fixtures for Drive & Gmail Manager tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from drive_gmail_manager.middleware.rate_limiter import RateLimiter, RateLimiters


class FakeClock:
    """Manually advanced clock for limiter and state guard tests."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, amount: float) -> None:
        self.now += amount


@pytest.fixture
def clock() -> FakeClock:
    """Fixture providing a fake clock starting at zero."""
    return FakeClock()


@pytest.fixture
def generous_limiters() -> RateLimiters:
    """Limiters wide enough that no test ever waits on them."""
    return RateLimiters(
        drive=RateLimiter(10_000, 1000, name="drive"),
        gmail=RateLimiter(10_000, 1000, name="gmail"),
        bulk=RateLimiter(3, 60_000, name="bulk"),
    )


@pytest.fixture
def oauth_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Fixture providing mock Google OAuth client credentials."""
    values = {
        "GOOGLE_CLIENT_ID": "test-client-id.apps.googleusercontent.com",
        "GOOGLE_CLIENT_SECRET": "test-client-secret",
    }
    for key, value in values.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("GOOGLE_REDIRECT_URI", raising=False)
    monkeypatch.delenv("OAUTH_PORT", raising=False)
    return values


@pytest.fixture
def no_oauth_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fixture removing OAuth client credentials from the environment."""
    monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
    monkeypatch.delenv("GOOGLE_CLIENT_SECRET", raising=False)


@pytest.fixture
def mock_token() -> dict[str, Any]:
    """Fixture providing mock OAuth token data."""
    return {
        "access_token": "mock-access-token",
        "refresh_token": "mock-refresh-token",
        "token_uri": "https://oauth2.googleapis.com/token",
        "client_id": "test-client-id.apps.googleusercontent.com",
        "scopes": [
            "https://www.googleapis.com/auth/drive",
            "https://www.googleapis.com/auth/gmail.modify",
        ],
    }


@pytest.fixture
def sample_email() -> dict[str, Any]:
    """Fixture providing a metadata-format message."""
    return {
        "id": "18abc123def",
        "threadId": "18abc123def",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "This is a test email snippet...",
        "payload": {
            "headers": [
                {"name": "From", "value": "sender@example.com"},
                {"name": "To", "value": "recipient@example.com"},
                {"name": "Subject", "value": "Test Email Subject"},
                {"name": "Date", "value": "Mon, 20 Jan 2026 10:00:00 -0500"},
            ],
        },
    }


@pytest.fixture
def sample_file() -> dict[str, Any]:
    """Fixture providing a Drive file resource."""
    return {
        "id": "1AbC_def-456",
        "name": "Budget 2024.xlsx",
        "mimeType": "application/vnd.ms-excel",
        "size": "1536",
        "modifiedTime": "2024-03-05T10:00:00.000Z",
        "webViewLink": "https://docs.google.com/spreadsheets/d/1AbC_def-456",
        "starred": True,
    }


@pytest.fixture
def mock_drive_api(mocker) -> MagicMock:
    """Fixture providing a mocked Drive v3 service."""
    return mocker.MagicMock()


@pytest.fixture
def mock_gmail_api(mocker) -> MagicMock:
    """Fixture providing a mocked Gmail v1 service."""
    service = mocker.MagicMock()
    service.users.return_value.messages.return_value.list_next.return_value = None
    return service
