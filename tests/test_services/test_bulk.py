"""Tests for the bulk operation orchestrator."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from drive_gmail_manager.middleware.rate_limiter import RateLimiters
from drive_gmail_manager.services.bulk import BulkOrchestrator, categorize
from drive_gmail_manager.utils.errors import (
    BulkLimitError,
    OperationFailedError,
    RateLimitError,
    ValidationError,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def drive() -> MagicMock:
    service = MagicMock()
    service.list_files = AsyncMock(return_value=[])
    service.delete_file = AsyncMock(return_value=None)
    service.create_folder = AsyncMock(
        side_effect=lambda name, wait=False: {"id": f"folder-{name.lower()}"}
    )
    service.move_file_to_folder = AsyncMock(return_value=None)
    return service


@pytest.fixture
def gmail() -> MagicMock:
    service = MagicMock()
    service.list_message_ids = AsyncMock(return_value=[])
    service.trash_message = AsyncMock(return_value=None)
    service.delete_message = AsyncMock(return_value=None)
    return service


@pytest.fixture
def orchestrator(
    drive: MagicMock, gmail: MagicMock, generous_limiters: RateLimiters
) -> BulkOrchestrator:
    return BulkOrchestrator(drive, gmail, generous_limiters, now=lambda: NOW)


def make_files(count: int, mime_type: str = "application/pdf") -> list[dict]:
    return [{"id": f"file{i}", "mimeType": mime_type} for i in range(count)]


class TestSizeCeiling:
    """Tests for the pre-check that runs before any mutation."""

    @pytest.mark.asyncio
    async def test_oversized_set_is_rejected_before_any_delete(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(1001)

        with pytest.raises(BulkLimitError) as exc_info:
            await orchestrator.delete_old_files(30)

        assert "1001" in exc_info.value.message
        assert "1000" in exc_info.value.message
        assert exc_info.value.item_count == 1001
        assert exc_info.value.max_items == 1000
        drive.delete_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_listing_asks_for_one_more_than_the_ceiling(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(2)

        await orchestrator.delete_old_files(30)

        assert drive.list_files.call_args.args[1] == 1001

    @pytest.mark.asyncio
    async def test_empty_set_is_rejected(
        self, orchestrator: BulkOrchestrator, gmail: MagicMock
    ) -> None:
        with pytest.raises(BulkLimitError) as exc_info:
            await orchestrator.delete_spam_emails()

        assert exc_info.value.item_count == 0
        assert "found 0" in exc_info.value.message
        gmail.delete_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_large_batch_carries_warning(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(150)

        result = await orchestrator.delete_old_files(30)

        assert result.total == 150
        assert result.warning is not None
        assert "150" in result.warning

    @pytest.mark.asyncio
    async def test_selection_ceiling(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        ids = [f"file{i}" for i in range(101)]

        with pytest.raises(BulkLimitError) as exc_info:
            await orchestrator.delete_files(ids)

        assert exc_info.value.max_items == 100
        drive.delete_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_selection_rejection_does_not_consume_bulk_quota(
        self,
        orchestrator: BulkOrchestrator,
        generous_limiters: RateLimiters,
    ) -> None:
        with pytest.raises(BulkLimitError):
            await orchestrator.trash_emails([f"m{i}" for i in range(101)])

        assert generous_limiters.bulk.remaining("bulk") == 3


class TestPartialFailure:
    """Tests for per-item failure accounting."""

    @pytest.mark.asyncio
    async def test_failing_item_is_counted_and_skipped(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(5)
        drive.delete_file.side_effect = [
            None,
            None,
            OperationFailedError("File deletion failed: ...", "File deletion"),
            None,
            None,
        ]

        result = await orchestrator.delete_old_files(30)

        assert result.total == 5
        assert result.succeeded == 4
        assert result.failed == 1
        assert result.succeeded + result.failed == result.total
        assert drive.delete_file.call_count == 5

    @pytest.mark.asyncio
    async def test_items_processed_in_listing_order(
        self, orchestrator: BulkOrchestrator, gmail: MagicMock
    ) -> None:
        result = await orchestrator.trash_emails(["m3", "m1", "m2"])

        assert [c.args[0] for c in gmail.trash_message.call_args_list] == [
            "m3",
            "m1",
            "m2",
        ]
        assert result.succeeded == 3

    @pytest.mark.asyncio
    async def test_listing_failure_aborts_run(
        self, orchestrator: BulkOrchestrator, gmail: MagicMock
    ) -> None:
        gmail.list_message_ids.side_effect = OperationFailedError(
            "Email deletion failed: Network error.", "Email deletion"
        )

        with pytest.raises(OperationFailedError):
            await orchestrator.trash_old_emails(30)

        gmail.trash_message.assert_not_called()


class TestAdmission:
    """Tests for bulk limiter admission and age validation."""

    @pytest.mark.asyncio
    async def test_fourth_run_in_a_minute_is_rejected(
        self, orchestrator: BulkOrchestrator
    ) -> None:
        for _ in range(3):
            await orchestrator.delete_files(["file1"])

        with pytest.raises(RateLimitError) as exc_info:
            await orchestrator.delete_files(["file1"])

        assert exc_info.value.message == (
            "Too many bulk operations. Please wait a minute and try again."
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, 3651, -1, True])
    async def test_invalid_age_is_rejected_before_listing(
        self,
        orchestrator: BulkOrchestrator,
        drive: MagicMock,
        generous_limiters: RateLimiters,
        days: int,
    ) -> None:
        with pytest.raises(ValidationError):
            await orchestrator.delete_old_files(days)

        drive.list_files.assert_not_called()
        assert generous_limiters.bulk.remaining("bulk") == 3


class TestQueries:
    """Tests for the listing queries each flow issues."""

    @pytest.mark.asyncio
    async def test_delete_old_files_query(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(1)

        await orchestrator.delete_old_files(30)

        assert drive.list_files.call_args.args[0] == (
            "modifiedTime < '2024-05-02T12:00:00' and trashed = false"
        )
        assert drive.list_files.call_args.kwargs["context"] == "File deletion"

    @pytest.mark.asyncio
    async def test_trash_old_emails_query(
        self, orchestrator: BulkOrchestrator, gmail: MagicMock
    ) -> None:
        gmail.list_message_ids.return_value = ["m1", "m2"]

        result = await orchestrator.trash_old_emails(30)

        assert gmail.list_message_ids.call_args.args[0] == "before:2024/05/02"
        assert result.succeeded == 2

    @pytest.mark.asyncio
    async def test_spam_listing_uses_label(
        self, orchestrator: BulkOrchestrator, gmail: MagicMock
    ) -> None:
        gmail.list_message_ids.return_value = ["m1"]

        result = await orchestrator.delete_spam_emails()

        assert gmail.list_message_ids.call_args.kwargs["label_ids"] == ["SPAM"]
        gmail.delete_message.assert_called_once_with("m1")
        assert result.operation == "delete_spam_emails"


class TestOrganizeByType:
    """Tests for organize_files_by_type."""

    def test_categorize(self) -> None:
        assert categorize("application/pdf") == "documents"
        assert categorize("application/vnd.google-apps.spreadsheet") == "spreadsheets"
        assert categorize("image/png") == "images"
        assert categorize("video/mp4") == "videos"
        assert categorize("text/plain") is None
        assert categorize(None) is None

    @pytest.mark.asyncio
    async def test_files_are_moved_into_category_folders(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = [
            {"id": "a", "mimeType": "application/pdf"},
            {"id": "b", "mimeType": "image/png"},
            {"id": "c", "mimeType": "application/msword"},
            {"id": "d", "mimeType": "text/plain"},
        ]

        result = await orchestrator.organize_files_by_type()

        assert result.total == 4
        assert result.succeeded == 3
        assert result.skipped == 1
        assert result.failed == 0
        moves = {c.args[:2] for c in drive.move_file_to_folder.call_args_list}
        assert moves == {
            ("a", "folder-documents"),
            ("b", "folder-images"),
            ("c", "folder-documents"),
        }

    @pytest.mark.asyncio
    async def test_each_folder_is_created_once(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(25, "application/pdf")

        result = await orchestrator.organize_files_by_type()

        assert result.succeeded == 25
        drive.create_folder.assert_called_once_with("Documents", wait=True)

    @pytest.mark.asyncio
    async def test_failed_move_is_counted(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(3, "image/jpeg")
        drive.move_file_to_folder.side_effect = [
            None,
            OperationFailedError("File move failed: ...", "File move"),
            None,
        ]

        result = await orchestrator.organize_files_by_type()

        assert result.succeeded == 2
        assert result.failed == 1

    @pytest.mark.asyncio
    async def test_folders_are_excluded_from_listing(
        self, orchestrator: BulkOrchestrator, drive: MagicMock
    ) -> None:
        drive.list_files.return_value = make_files(1)

        await orchestrator.organize_files_by_type()

        query = drive.list_files.call_args.args[0]
        assert "mimeType != 'application/vnd.google-apps.folder'" in query
        assert "trashed = false" in query
