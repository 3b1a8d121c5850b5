"""OAuth ``state`` parameter handling for CSRF protection.

Before every authorization request a fresh random token is generated and
stored; the authorization server must echo it back unchanged. The callback
is only accepted if the echoed value matches the pending token and the
token is younger than the expiry window. Tokens are single-use.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
import time
from collections.abc import Callable
from typing import Protocol

from drive_gmail_manager.config import OAUTH_STATE_EXPIRY_MS

logger = logging.getLogger(__name__)

STATE_KEY = "oauth_state"
STATE_TIMESTAMP_KEY = "oauth_state_timestamp"
STATE_TOKEN_BYTES = 32


class StateStore(Protocol):
    """Short-lived key-value storage for the pending state token."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class InMemoryStateStore:
    """Thread-safe, process-scoped StateStore.

    Plays the role of a browser tab's session storage: values live only as
    long as the running process.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def clear(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class OAuthStateGuard:
    """Generates, stores and verifies single-use OAuth state tokens.

    Example:
        >>> guard = OAuthStateGuard(InMemoryStateStore())
        >>> state = guard.issue()
        >>> guard.verify_state(state)
        True
        >>> guard.verify_state(state)  # already consumed
        False
    """

    def __init__(
        self,
        store: StateStore,
        expiry_ms: int = OAUTH_STATE_EXPIRY_MS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the guard.

        Args:
            store: Where the pending token and its timestamp are kept.
            expiry_ms: Token lifetime in milliseconds (default 10 minutes).
            clock: Wall clock in seconds; injectable for tests.
        """
        self._store = store
        self._expiry_ms = expiry_ms
        self._clock = clock

    @staticmethod
    def generate_state_token() -> str:
        """Generate 32 random bytes as a 64-character lowercase hex string."""
        return secrets.token_bytes(STATE_TOKEN_BYTES).hex()

    def store_state(self, token: str) -> None:
        """Store token as the pending state, replacing any previous one."""
        try:
            self._store.set(STATE_KEY, token)
            self._store.set(STATE_TIMESTAMP_KEY, str(int(self._clock() * 1000)))
        except Exception as e:
            logger.error("Failed to store OAuth state: %s", type(e).__name__)

    def issue(self) -> str:
        """Generate and store a fresh state token for one authorization request."""
        token = self.generate_state_token()
        self.store_state(token)
        logger.debug("Issued OAuth state %s...", token[:8])
        return token

    def has_pending(self) -> bool:
        """Check whether a state token is waiting for verification."""
        return self._store.get(STATE_KEY) is not None

    def _clear(self) -> None:
        self._store.clear(STATE_KEY)
        self._store.clear(STATE_TIMESTAMP_KEY)

    def verify_state(self, candidate: str | None) -> bool:
        """Verify the state value returned by the authorization server.

        A mismatch leaves the pending token in place; a match consumes it.

        Args:
            candidate: The ``state`` value from the callback.

        Returns:
            True exactly once for the pending, unexpired token.
        """
        try:
            stored = self._store.get(STATE_KEY)
            timestamp = int(self._store.get(STATE_TIMESTAMP_KEY) or "0")

            if stored is None:
                logger.warning("OAuth state verification with no pending state")
                return False

            elapsed_ms = self._clock() * 1000 - timestamp
            if elapsed_ms > self._expiry_ms:
                logger.warning("OAuth state expired")
                self._clear()
                return False

            if not isinstance(candidate, str) or not hmac.compare_digest(
                candidate.encode(), stored.encode()
            ):
                logger.error("OAuth state mismatch - possible CSRF attack")
                return False

            self._clear()
            return True

        except Exception as e:
            logger.error("Failed to verify OAuth state: %s", type(e).__name__)
            return False


__all__ = [
    "StateStore",
    "InMemoryStateStore",
    "OAuthStateGuard",
    "STATE_KEY",
    "STATE_TIMESTAMP_KEY",
]
