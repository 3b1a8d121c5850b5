"""Authenticated Drive and Gmail API client factory."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build
from googleapiclient.http import HttpRequest

from drive_gmail_manager.auth.session import Session

logger = logging.getLogger(__name__)

DRIVE_API = ("drive", "v3")
GMAIL_API = ("gmail", "v1")


class GoogleClient:
    """Factory for authenticated Drive and Gmail service objects.

    Service objects are cached per credentials instance. Each request they
    issue gets its own ``AuthorizedHttp`` because httplib2 connections are
    not safe to share between the worker threads the adapters use.
    """

    def __init__(self, session: Session, api_key: str | None = None) -> None:
        """Initialize the factory.

        Args:
            session: Signed-in session supplying credentials.
            api_key: Optional API key sent as ``developerKey``; defaults to
                the GOOGLE_API_KEY environment variable.
        """
        self._session = session
        self._api_key = api_key if api_key is not None else os.getenv("GOOGLE_API_KEY")
        self._services: dict[tuple[str, str], Resource] = {}
        self._built_for: Credentials | None = None
        self._lock = threading.Lock()

    def _request_builder(self, credentials: Credentials) -> Any:
        def build_request(_http: Any, *args: Any, **kwargs: Any) -> HttpRequest:
            http = google_auth_httplib2.AuthorizedHttp(
                credentials, http=httplib2.Http()
            )
            return HttpRequest(http, *args, **kwargs)

        return build_request

    def _get_service(self, api: tuple[str, str]) -> Resource:
        credentials = self._session.get_credentials()

        with self._lock:
            if self._built_for is not credentials:
                self._services.clear()
                self._built_for = credentials

            service = self._services.get(api)
            if service is None:
                name, version = api
                service = build(
                    name,
                    version,
                    http=google_auth_httplib2.AuthorizedHttp(
                        credentials, http=httplib2.Http()
                    ),
                    developerKey=self._api_key,
                    requestBuilder=self._request_builder(credentials),
                    cache_discovery=False,
                )
                self._services[api] = service
                logger.debug("Created %s %s service", name, version)

        return service

    def drive(self) -> Resource:
        """Get the Drive v3 service.

        Raises:
            AuthenticationError: If not signed in or the token cannot be
                refreshed.
        """
        return self._get_service(DRIVE_API)

    def gmail(self) -> Resource:
        """Get the Gmail v1 service.

        Raises:
            AuthenticationError: If not signed in or the token cannot be
                refreshed.
        """
        return self._get_service(GMAIL_API)

    def invalidate(self) -> None:
        """Drop cached service objects (e.g. after sign-out)."""
        with self._lock:
            self._services.clear()
            self._built_for = None
        logger.debug("Invalidated cached API services")


__all__ = ["GoogleClient", "DRIVE_API", "GMAIL_API"]
