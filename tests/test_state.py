"""Tests for OAuth state (CSRF) token handling."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

import pytest

from drive_gmail_manager.auth.state import (
    STATE_KEY,
    STATE_TIMESTAMP_KEY,
    InMemoryStateStore,
    OAuthStateGuard,
)


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def guard(store: InMemoryStateStore, clock) -> OAuthStateGuard:
    clock.advance(1_700_000_000)
    return OAuthStateGuard(store, clock=clock)


class TestStateTokenGeneration:
    """Tests for generate_state_token and issue."""

    def test_token_is_64_lowercase_hex(self) -> None:
        token = OAuthStateGuard.generate_state_token()
        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_tokens_are_unique(self) -> None:
        tokens = {OAuthStateGuard.generate_state_token() for _ in range(100)}
        assert len(tokens) == 100

    def test_issue_stores_token_and_timestamp(
        self, guard: OAuthStateGuard, store: InMemoryStateStore
    ) -> None:
        token = guard.issue()

        assert store.get(STATE_KEY) == token
        assert store.get(STATE_TIMESTAMP_KEY) == str(1_700_000_000_000)
        assert guard.has_pending()

    def test_issue_replaces_previous_token(self, guard: OAuthStateGuard) -> None:
        first = guard.issue()
        second = guard.issue()

        assert not guard.verify_state(first)
        assert guard.verify_state(second)


class TestVerifyState:
    """Tests for verify_state."""

    def test_matching_state_verifies_once(self, guard: OAuthStateGuard) -> None:
        token = guard.issue()

        assert guard.verify_state(token) is True
        assert guard.verify_state(token) is False
        assert not guard.has_pending()

    def test_mismatch_is_rejected_and_keeps_pending(
        self, guard: OAuthStateGuard
    ) -> None:
        token = guard.issue()

        assert guard.verify_state("0" * 64) is False
        assert guard.has_pending()
        assert guard.verify_state(token) is True

    def test_missing_candidate_is_rejected(self, guard: OAuthStateGuard) -> None:
        guard.issue()
        assert guard.verify_state(None) is False
        assert guard.verify_state("") is False

    def test_no_pending_state_is_rejected(self, guard: OAuthStateGuard) -> None:
        assert guard.verify_state("anything") is False

    def test_expired_state_is_rejected_and_cleared(
        self, guard: OAuthStateGuard, clock
    ) -> None:
        token = guard.issue()
        clock.advance(10 * 60 + 1)

        assert guard.verify_state(token) is False
        assert not guard.has_pending()

    def test_state_at_expiry_boundary_still_verifies(
        self, guard: OAuthStateGuard, clock
    ) -> None:
        token = guard.issue()
        clock.advance(10 * 60)

        assert guard.verify_state(token) is True

    def test_store_failure_is_reported_as_rejection(self) -> None:
        store = MagicMock()
        store.get.side_effect = RuntimeError("storage unavailable")
        guard = OAuthStateGuard(store)

        assert guard.verify_state("token") is False

    def test_store_failure_on_issue_does_not_raise(self) -> None:
        store = MagicMock()
        store.set.side_effect = RuntimeError("storage unavailable")
        guard = OAuthStateGuard(store)

        assert len(guard.issue()) == 64
