"""Tests for the Drive and Gmail API call sites."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import httplib2
import pytest
from googleapiclient.errors import HttpError

from drive_gmail_manager.api import drive as drive_api
from drive_gmail_manager.api import labels as labels_api
from drive_gmail_manager.api import messages as messages_api
from drive_gmail_manager.utils.errors import ErrorKind, GoogleAPIError


class TestDriveListFiles:
    """Tests for drive list_files pagination."""

    def test_follows_page_tokens(self, mock_drive_api: MagicMock) -> None:
        files_list = mock_drive_api.files.return_value.list
        files_list.return_value.execute.side_effect = [
            {"files": [{"id": "a"}, {"id": "b"}], "nextPageToken": "page2"},
            {"files": [{"id": "c"}]},
        ]

        files = drive_api.list_files(mock_drive_api, "trashed = false")

        assert [f["id"] for f in files] == ["a", "b", "c"]
        assert files_list.call_args_list[0].kwargs["pageToken"] is None
        assert files_list.call_args_list[1].kwargs["pageToken"] == "page2"
        assert files_list.call_args_list[0].kwargs["q"] == "trashed = false"

    def test_stops_at_max_results(self, mock_drive_api: MagicMock) -> None:
        files_list = mock_drive_api.files.return_value.list
        files_list.return_value.execute.return_value = {
            "files": [{"id": "a"}, {"id": "b"}],
            "nextPageToken": "more",
        }

        files = drive_api.list_files(mock_drive_api, "q", max_results=2)

        assert len(files) == 2
        assert files_list.call_count == 1
        assert files_list.call_args.kwargs["pageSize"] == 2

    def test_page_size_is_capped(self, mock_drive_api: MagicMock) -> None:
        files_list = mock_drive_api.files.return_value.list
        files_list.return_value.execute.return_value = {"files": []}

        drive_api.list_files(mock_drive_api, "q", max_results=1001)

        assert files_list.call_args.kwargs["pageSize"] == 1000

    def test_http_error_is_normalized(self, mock_drive_api: MagicMock) -> None:
        error = HttpError(httplib2.Response({"status": 403}), b"{}")
        files_list = mock_drive_api.files.return_value.list
        files_list.return_value.execute.side_effect = error

        with pytest.raises(GoogleAPIError) as exc_info:
            drive_api.list_files(mock_drive_api, "q")

        assert exc_info.value.kind == ErrorKind.HTTP
        assert exc_info.value.status_code == 403
        assert exc_info.value.__cause__ is error


class TestDriveMutations:
    """Tests for folder, move, permission and delete call sites."""

    def test_create_folder(self, mock_drive_api: MagicMock) -> None:
        create = mock_drive_api.files.return_value.create
        create.return_value.execute.return_value = {"id": "f1", "name": "Images"}

        folder = drive_api.create_folder(mock_drive_api, "Images")

        assert folder["id"] == "f1"
        assert create.call_args.kwargs["body"] == {
            "name": "Images",
            "mimeType": drive_api.FOLDER_MIME_TYPE,
        }

    def test_move_file_replaces_parents(self, mock_drive_api: MagicMock) -> None:
        files = mock_drive_api.files.return_value
        files.get.return_value.execute.return_value = {"parents": ["p1", "p2"]}

        drive_api.move_file(mock_drive_api, "file1", "folder1")

        kwargs = files.update.call_args.kwargs
        assert kwargs["fileId"] == "file1"
        assert kwargs["addParents"] == "folder1"
        assert kwargs["removeParents"] == "p1,p2"

    def test_create_permission(self, mock_drive_api: MagicMock) -> None:
        drive_api.create_permission(
            mock_drive_api, "file1", "bob@example.com", "writer"
        )

        kwargs = mock_drive_api.permissions.return_value.create.call_args.kwargs
        assert kwargs["fileId"] == "file1"
        assert kwargs["body"] == {
            "type": "user",
            "role": "writer",
            "emailAddress": "bob@example.com",
        }

    def test_delete_file(self, mock_drive_api: MagicMock) -> None:
        drive_api.delete_file(mock_drive_api, "file1")
        mock_drive_api.files.return_value.delete.assert_called_once_with(
            fileId="file1"
        )

    def test_delete_failure_is_normalized(self, mock_drive_api: MagicMock) -> None:
        delete = mock_drive_api.files.return_value.delete
        delete.return_value.execute.side_effect = ConnectionError("reset")

        with pytest.raises(GoogleAPIError) as exc_info:
            drive_api.delete_file(mock_drive_api, "file1")

        assert exc_info.value.kind == ErrorKind.NETWORK


class FakeDownloader:
    """Stands in for MediaIoBaseDownload, delivering two chunks."""

    def __init__(self, fd: Any, request: Any) -> None:
        self._fd = fd
        self._chunks = [b"hello ", b"world"]

    def next_chunk(self) -> tuple[None, bool]:
        self._fd.write(self._chunks.pop(0))
        return None, not self._chunks


class TestDriveDownload:
    """Tests for download_file."""

    def test_writes_content(self, mock_drive_api: MagicMock, tmp_path: Path) -> None:
        destination = tmp_path / "report.pdf"

        with patch("drive_gmail_manager.api.drive.MediaIoBaseDownload", FakeDownloader):
            written = drive_api.download_file(mock_drive_api, "file1", destination)

        assert written == 11
        assert destination.read_bytes() == b"hello world"
        mock_drive_api.files.return_value.get_media.assert_called_once_with(
            fileId="file1"
        )

    def test_unwritable_destination(
        self, mock_drive_api: MagicMock, tmp_path: Path
    ) -> None:
        destination = tmp_path / "missing" / "report.pdf"

        with patch("drive_gmail_manager.api.drive.MediaIoBaseDownload", FakeDownloader):
            with pytest.raises(GoogleAPIError):
                drive_api.download_file(mock_drive_api, "file1", destination)


class TestFormatting:
    """Tests for size and date formatting."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (None, "N/A"),
            ("0", "N/A"),
            ("abc", "N/A"),
            ("512", "512 Bytes"),
            ("1536", "1.50 KB"),
            (1048576, "1.00 MB"),
            (5 * 1024**3, "5.00 GB"),
        ],
    )
    def test_format_file_size(self, size: object, expected: str) -> None:
        assert drive_api.format_file_size(size) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2024-03-05T10:00:00.000Z", "Mar 5, 2024"),
            ("Mon, 20 Jan 2026 10:00:00 -0500", "Jan 20, 2026"),
            ("not a date", "not a date"),
            (None, ""),
            ("", ""),
        ],
    )
    def test_format_date(self, value: object, expected: str) -> None:
        assert messages_api.format_date(value) == expected


class TestListMessages:
    """Tests for messages list_messages."""

    def test_label_ids_merged_into_query(self, mock_gmail_api: MagicMock) -> None:
        messages = mock_gmail_api.users.return_value.messages.return_value
        messages.list.return_value.execute.return_value = {"messages": []}

        messages_api.list_messages(
            mock_gmail_api, query="is:important", label_ids=["SPAM"]
        )

        kwargs = messages.list.call_args.kwargs
        assert kwargs["q"] == "is:important label:SPAM"
        assert "labelIds" not in kwargs

    def test_follows_list_next(self, mock_gmail_api: MagicMock) -> None:
        messages = mock_gmail_api.users.return_value.messages.return_value
        first_page = MagicMock()
        first_page.execute.return_value = {"messages": [{"id": "m1"}]}
        second_page = MagicMock()
        second_page.execute.return_value = {"messages": [{"id": "m2"}]}
        messages.list.return_value = first_page
        messages.list_next.side_effect = [second_page, None]

        result = messages_api.list_messages(mock_gmail_api, "in:inbox")

        assert [m["id"] for m in result] == ["m1", "m2"]

    def test_truncates_to_max_results(self, mock_gmail_api: MagicMock) -> None:
        messages = mock_gmail_api.users.return_value.messages.return_value
        messages.list.return_value.execute.return_value = {
            "messages": [{"id": f"m{i}"} for i in range(5)]
        }

        result = messages_api.list_messages(mock_gmail_api, max_results=3)

        assert len(result) == 3
        assert messages.list.call_args.kwargs["maxResults"] == 3


class TestMessageOperations:
    """Tests for get, modify, trash and delete."""

    def test_get_message_requests_metadata_headers(
        self, mock_gmail_api: MagicMock
    ) -> None:
        messages_api.get_message(mock_gmail_api, "m1")

        kwargs = mock_gmail_api.users.return_value.messages.return_value.get.call_args
        assert kwargs.kwargs["format"] == "metadata"
        assert kwargs.kwargs["metadataHeaders"] == ["From", "To", "Subject", "Date"]

    def test_modify_message(self, mock_gmail_api: MagicMock) -> None:
        messages_api.modify_message(mock_gmail_api, "m1", add_labels=["Label_1"])

        kwargs = (
            mock_gmail_api.users.return_value.messages.return_value.modify.call_args
        ).kwargs
        assert kwargs["body"] == {"addLabelIds": ["Label_1"], "removeLabelIds": []}

    def test_trash_and_delete(self, mock_gmail_api: MagicMock) -> None:
        messages = mock_gmail_api.users.return_value.messages.return_value

        messages_api.trash_message(mock_gmail_api, "m1")
        messages_api.delete_message(mock_gmail_api, "m2")

        messages.trash.assert_called_once_with(userId="me", id="m1")
        messages.delete.assert_called_once_with(userId="me", id="m2")

    def test_summarize_message(self, sample_email: dict[str, Any]) -> None:
        summary = messages_api.summarize_message(sample_email)

        assert summary["from"] == "sender@example.com"
        assert summary["subject"] == "Test Email Subject"
        assert summary["date"] == "Jan 20, 2026"
        assert summary["label_ids"] == ["INBOX", "UNREAD"]

    def test_summarize_message_without_subject(self) -> None:
        summary = messages_api.summarize_message({"id": "m1", "payload": {}})
        assert summary["subject"] == "(No subject)"
        assert summary["date"] == ""


class TestLabels:
    """Tests for label call sites."""

    def test_list_labels(self, mock_gmail_api: MagicMock) -> None:
        labels = mock_gmail_api.users.return_value.labels.return_value
        labels.list.return_value.execute.return_value = {
            "labels": [{"id": "INBOX", "type": "system"}]
        }

        assert labels_api.list_labels(mock_gmail_api) == [
            {"id": "INBOX", "type": "system"}
        ]

    def test_create_label_is_visible(self, mock_gmail_api: MagicMock) -> None:
        labels_api.create_label(mock_gmail_api, "Receipts")

        body = mock_gmail_api.users.return_value.labels.return_value.create.call_args
        assert body.kwargs["body"] == {
            "name": "Receipts",
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }

    def test_delete_label_failure(self, mock_gmail_api: MagicMock) -> None:
        labels = mock_gmail_api.users.return_value.labels.return_value
        labels.delete.return_value.execute.side_effect = TimeoutError()

        with pytest.raises(GoogleAPIError) as exc_info:
            labels_api.delete_label(mock_gmail_api, "Label_1")

        assert exc_info.value.kind == ErrorKind.TIMEOUT
