"""Bulk operation orchestration over the Drive and Gmail adapters.

Every run has the same shape:

1. Admission through the bulk limiter (fails fast).
2. Fetch the candidate set; a failure here aborts the run.
3. Size check: an empty set or one above the ceiling is rejected before
   anything is modified.
4. Process items. Each item waits for its own admission on the family
   limiter; a failing item is logged, counted and skipped.

Runs cannot be cancelled once processing starts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from drive_gmail_manager.api.drive import FOLDER_MIME_TYPE
from drive_gmail_manager.config import (
    LARGE_BATCH_THRESHOLD,
    MAX_AGE_DAYS,
    MAX_BULK_ITEMS,
    MAX_SELECTION_ITEMS,
    MIN_AGE_DAYS,
    ORGANIZE_BATCH_SIZE,
)
from drive_gmail_manager.middleware.rate_limiter import RateLimiter, RateLimiters
from drive_gmail_manager.schemas.results import BulkOperationResult
from drive_gmail_manager.services.drive import DriveService
from drive_gmail_manager.services.gmail import GmailService
from drive_gmail_manager.utils.errors import (
    BulkLimitError,
    RateLimitError,
    ValidationError,
)

logger = logging.getLogger(__name__)

BULK_KEY = "bulk"

# Category -> MIME types moved into the category's folder
MIME_CATEGORIES: dict[str, tuple[str, ...]] = {
    "documents": (
        "application/vnd.google-apps.document",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    "spreadsheets": (
        "application/vnd.google-apps.spreadsheet",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ),
    "images": ("image/jpeg", "image/png", "image/gif"),
    "videos": ("video/mp4", "video/x-msvideo"),
}


def categorize(mime_type: str | None) -> str | None:
    """Get the organize category for a MIME type, if any."""
    for category, mime_types in MIME_CATEGORIES.items():
        if mime_type in mime_types:
            return category
    return None


def _validate_age(days_old: object) -> int:
    if (
        isinstance(days_old, bool)
        or not isinstance(days_old, int)
        or not MIN_AGE_DAYS <= days_old <= MAX_AGE_DAYS
    ):
        raise ValidationError(
            f"Invalid age threshold. Must be between {MIN_AGE_DAYS} "
            f"and {MAX_AGE_DAYS} days.",
            field="days_old",
        )
    return days_old


class BulkOrchestrator:
    """Runs multi-item destructive operations under a hard size ceiling.

    Attributes:
        _drive: Drive adapter.
        _gmail: Gmail adapter.
        _limiters: Family and bulk limiters.
        _max_items: Ceiling for query-driven runs.
        _batch_size: Concurrency of organize sub-batches.
    """

    def __init__(
        self,
        drive: DriveService,
        gmail: GmailService,
        limiters: RateLimiters,
        max_items: int = MAX_BULK_ITEMS,
        batch_size: int = ORGANIZE_BATCH_SIZE,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._drive = drive
        self._gmail = gmail
        self._limiters = limiters
        self._max_items = max_items
        self._batch_size = batch_size
        self._now = now

    @property
    def max_items(self) -> int:
        return self._max_items

    # =========================================================================
    # Shared steps
    # =========================================================================

    def _admit_run(self, operation: str) -> None:
        if not self._limiters.bulk.is_allowed(BULK_KEY):
            retry_after = self._limiters.bulk.time_until_reset(BULK_KEY) / 1000
            logger.warning("Bulk operation %s rejected by rate limit", operation)
            raise RateLimitError(
                "Too many bulk operations. Please wait a minute and try again.",
                retry_after_seconds=retry_after,
            )

    def _check_size(
        self, operation: str, count: int, ceiling: int, noun: str
    ) -> BulkOperationResult:
        """Reject empty or oversized candidate sets; start the result."""
        if count == 0:
            raise BulkLimitError(
                f"No {noun} to process (found 0, maximum is {ceiling} per operation).",
                item_count=count,
                max_items=ceiling,
            )
        if count > ceiling:
            logger.warning(
                "Bulk operation %s rejected: %d items exceeds %d",
                operation,
                count,
                ceiling,
            )
            raise BulkLimitError(
                f"Too many {noun} ({count}). Maximum is {ceiling} per operation. "
                "Please process in smaller batches.",
                item_count=count,
                max_items=ceiling,
            )

        result = BulkOperationResult(operation=operation, total=count)
        if count > LARGE_BATCH_THRESHOLD:
            result.warning = (
                f"You are about to process {count} items. "
                "This may take several minutes."
            )
        return result

    async def _process_sequentially(
        self,
        result: BulkOperationResult,
        item_ids: Sequence[str],
        limiter: RateLimiter,
        key: str,
        action: Callable[[str], Awaitable[Any]],
    ) -> BulkOperationResult:
        """Apply action to each item in listing order, counting outcomes."""
        for item_id in item_ids:
            await limiter.acquire(key)
            try:
                await action(item_id)
                result.succeeded += 1
            except Exception as e:
                logger.error(
                    "%s failed for item %s: %s", result.operation, item_id, e
                )
                result.failed += 1

        logger.info(
            "%s complete: %d succeeded, %d failed of %d",
            result.operation,
            result.succeeded,
            result.failed,
            result.total,
        )
        return result

    def _cutoff(self, days_old: int) -> datetime:
        return self._now() - timedelta(days=days_old)

    # =========================================================================
    # Drive flows
    # =========================================================================

    async def organize_files_by_type(self) -> BulkOperationResult:
        """Move files into Documents/Spreadsheets/Images/Videos folders.

        Files are processed in concurrent sub-batches. Each category folder
        is created on first use and reused for the rest of the run. Files
        of other types are counted as skipped.

        Raises:
            RateLimitError: If the bulk limiter rejects the run.
            OperationFailedError: If listing files fails.
            BulkLimitError: If there are no files or too many.
        """
        operation = "organize_files_by_type"
        self._admit_run(operation)

        files = await self._drive.list_files(
            f"trashed = false and mimeType != '{FOLDER_MIME_TYPE}'",
            self._max_items + 1,
            context="File organization",
        )
        result = self._check_size(operation, len(files), self._max_items, "files")
        logger.info("Organizing %d files by type", len(files))

        folders: dict[str, str] = {}
        locks = {category: asyncio.Lock() for category in MIME_CATEGORIES}

        async def folder_for(category: str) -> str:
            async with locks[category]:
                if category not in folders:
                    folder = await self._drive.create_folder(
                        category.capitalize(), wait=True
                    )
                    folders[category] = folder["id"]
                return folders[category]

        async def organize_one(file: dict[str, Any]) -> None:
            category = categorize(file.get("mimeType"))
            if category is None:
                result.skipped += 1
                return
            try:
                folder_id = await folder_for(category)
                await self._drive.move_file_to_folder(file["id"], folder_id, wait=True)
                result.succeeded += 1
            except Exception as e:
                logger.error("Failed to organize file %s: %s", file.get("id"), e)
                result.failed += 1

        for start in range(0, len(files), self._batch_size):
            batch = files[start : start + self._batch_size]
            await asyncio.gather(*(organize_one(file) for file in batch))

        logger.info(
            "Organization complete: %d moved, %d failed, %d skipped",
            result.succeeded,
            result.failed,
            result.skipped,
        )
        return result

    async def delete_old_files(self, days_old: int = 365) -> BulkOperationResult:
        """Permanently delete files not modified in the last days_old days.

        Raises:
            ValidationError: If days_old is outside 1-3650.
            RateLimitError: If the bulk limiter rejects the run.
            OperationFailedError: If listing files fails.
            BulkLimitError: If there are no matching files or too many.
        """
        days = _validate_age(days_old)
        operation = "delete_old_files"
        self._admit_run(operation)

        cutoff = self._cutoff(days).strftime("%Y-%m-%dT%H:%M:%S")
        files = await self._drive.list_files(
            f"modifiedTime < '{cutoff}' and trashed = false",
            self._max_items + 1,
            context="File deletion",
        )
        result = self._check_size(operation, len(files), self._max_items, "files")
        logger.info("Deleting %d files older than %d days", len(files), days)

        return await self._process_sequentially(
            result,
            [file["id"] for file in files],
            self._limiters.drive,
            "delete",
            self._drive.delete_file,
        )

    async def delete_files(self, file_ids: Sequence[str]) -> BulkOperationResult:
        """Permanently delete an explicit selection of at most 100 files."""
        result = self._check_size(
            "delete_files", len(file_ids), MAX_SELECTION_ITEMS, "files"
        )
        self._admit_run(result.operation)
        return await self._process_sequentially(
            result,
            list(file_ids),
            self._limiters.drive,
            "delete",
            self._drive.delete_file,
        )

    # =========================================================================
    # Gmail flows
    # =========================================================================

    async def trash_old_emails(self, days_old: int = 365) -> BulkOperationResult:
        """Move emails received before the cutoff date to trash.

        Raises:
            ValidationError: If days_old is outside 1-3650.
            RateLimitError: If the bulk limiter rejects the run.
            OperationFailedError: If listing messages fails.
            BulkLimitError: If there are no matching emails or too many.
        """
        days = _validate_age(days_old)
        operation = "trash_old_emails"
        self._admit_run(operation)

        cutoff = self._cutoff(days).strftime("%Y/%m/%d")
        message_ids = await self._gmail.list_message_ids(
            f"before:{cutoff}",
            max_results=self._max_items + 1,
            context="Email deletion",
        )
        result = self._check_size(
            operation, len(message_ids), self._max_items, "emails"
        )
        logger.info("Trashing %d emails older than %d days", len(message_ids), days)

        return await self._process_sequentially(
            result,
            message_ids,
            self._limiters.gmail,
            "trash",
            self._gmail.trash_message,
        )

    async def delete_spam_emails(self) -> BulkOperationResult:
        """Permanently delete everything in the spam folder."""
        operation = "delete_spam_emails"
        self._admit_run(operation)

        message_ids = await self._gmail.list_message_ids(
            label_ids=["SPAM"],
            max_results=self._max_items + 1,
            context="Spam deletion",
        )
        result = self._check_size(
            operation, len(message_ids), self._max_items, "spam emails"
        )
        logger.info("Deleting %d spam emails", len(message_ids))

        return await self._process_sequentially(
            result,
            message_ids,
            self._limiters.gmail,
            "delete",
            self._gmail.delete_message,
        )

    async def trash_emails(self, message_ids: Sequence[str]) -> BulkOperationResult:
        """Move an explicit selection of at most 100 emails to trash."""
        result = self._check_size(
            "trash_emails", len(message_ids), MAX_SELECTION_ITEMS, "emails"
        )
        self._admit_run(result.operation)
        return await self._process_sequentially(
            result,
            list(message_ids),
            self._limiters.gmail,
            "trash",
            self._gmail.trash_message,
        )


__all__ = ["BulkOrchestrator", "MIME_CATEGORIES", "BULK_KEY", "categorize"]
