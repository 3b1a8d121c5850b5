"""Shared plumbing for the Drive and Gmail adapters.

Every remote operation follows the same path: local validation, rate
limiter admission, the blocking API call in a worker thread, and
translation of any failure into a user-safe ``OperationFailedError``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from googleapiclient.discovery import Resource

from drive_gmail_manager.middleware.rate_limiter import RateLimiter
from drive_gmail_manager.utils.errors import (
    AuthenticationError,
    OperationFailedError,
    RateLimitError,
)
from drive_gmail_manager.utils.user_messages import report_error, to_user_message

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteAdapter:
    """Base class binding one API family to its limiter."""

    def __init__(
        self,
        service_factory: Callable[[], Resource],
        limiter: RateLimiter,
    ) -> None:
        """Initialize the adapter.

        Args:
            service_factory: Returns an authenticated API service; may
                raise AuthenticationError.
            limiter: Sliding-window limiter for this API family.
        """
        self._service_factory = service_factory
        self._limiter = limiter

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    def _admit(self, key: str, message: str) -> None:
        """Single-shot admission: record the call or raise RateLimitError."""
        if not self._limiter.is_allowed(key):
            retry_after = self._limiter.time_until_reset(key) / 1000
            logger.warning("Rate limit exceeded for %s", key)
            raise RateLimitError(message, retry_after_seconds=retry_after)

    async def _gate(self, key: str, message: str, wait: bool) -> None:
        """Admit a call, either failing fast or parking until admitted."""
        if wait:
            await self._limiter.acquire(key)
        else:
            self._admit(key, message)

    async def _call(self, context: str, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking API call in a worker thread and translate failures.

        Args:
            context: Label used in the user-facing message ("File search").
            func: API call site taking the service as first argument.
            *args: Remaining arguments for func.

        Raises:
            AuthenticationError: If there is no usable session.
            OperationFailedError: For any remote or transport failure.
        """

        def run() -> T:
            return func(self._service_factory(), *args)

        try:
            return await asyncio.to_thread(run)
        except AuthenticationError:
            raise
        except Exception as e:
            report_error(f"{context} failed", e)
            message = to_user_message(e, context)
            raise OperationFailedError(message, context=context) from e


__all__ = ["RemoteAdapter"]
