"""Unit tests for the file manager service."""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from services.file_manager import RESUME_DRAFT_FILENAME, FileManager
from utils.errors import UpstreamError, ValidationError


def stored(file_id, filename, created_at=1700000000):
    return SimpleNamespace(id=file_id, filename=filename, created_at=created_at)


@pytest.fixture
def files(mock_openai, mock_assistants):
    return FileManager(mock_openai, mock_assistants)


@pytest.fixture
def listing(mock_openai, make_stream):
    """Set what the hosted file store lists."""
    def set_listing(entries):
        mock_openai.files.list = MagicMock(side_effect=lambda **kwargs: make_stream(entries))
    return set_listing


class TestListFiles:

    def test_decodes_type_and_display_name(self, files, listing):
        listing([
            stored("f1", "1-work-experience-rooster-cv.pdf"),
            stored("f2", "2-job-description-rooster-jd.txt"),
            stored("f3", RESUME_DRAFT_FILENAME),
        ])

        result = asyncio.run(files.list_files())

        assert [(f.fileId, f.fileType, f.displayName) for f in result] == [
            ("f1", "work-experience", "cv.pdf"),
            ("f2", "job-description", "jd.txt"),
            ("f3", "unknown", RESUME_DRAFT_FILENAME),
        ]

    def test_filters_by_type(self, files, listing):
        listing([
            stored("f1", "1-work-experience-rooster-cv.pdf"),
            stored("f2", "2-job-description-rooster-jd.txt"),
        ])

        result = asyncio.run(files.list_files("job-description"))

        assert [f.fileId for f in result] == ["f2"]


class TestUpload:

    def test_uploads_and_attaches_to_vector_store(self, files, mock_openai):
        mock_openai.files.create.return_value = SimpleNamespace(id="file_new")

        result = asyncio.run(files.upload(b"data", "cv.pdf", "work-experience", "application/pdf"))

        filename, content, content_type = mock_openai.files.create.await_args.kwargs["file"]
        assert filename.endswith("-work-experience-rooster-cv.pdf")
        assert (content, content_type) == (b"data", "application/pdf")
        mock_openai.vector_stores.files.create_and_poll.assert_awaited_once_with(
            file_id="file_new", vector_store_id="vs_test",
        )
        assert result.fileId == "file_new"
        assert result.originalFilename == "cv.pdf"
        assert result.success is True

    @pytest.mark.parametrize("file_type", [None, "", "resume", "unknown"])
    def test_rejects_bad_type(self, files, mock_openai, file_type):
        with pytest.raises(ValidationError, match="Invalid file type"):
            asyncio.run(files.upload(b"data", "cv.pdf", file_type))

        mock_openai.files.create.assert_not_awaited()

    def test_upstream_failure(self, files, mock_openai):
        mock_openai.files.create.side_effect = openai.APIError(
            "quota", httpx.Request("POST", "https://api.openai.com/v1/files"), body=None
        )

        with pytest.raises(UpstreamError):
            asyncio.run(files.upload(b"data", "cv.pdf", "work-experience"))


class TestDelete:

    def test_removes_from_store_then_deletes(self, files, mock_openai):
        order = []
        mock_openai.vector_stores.files.delete.side_effect = lambda *args, **kwargs: order.append("store")
        mock_openai.files.delete.side_effect = lambda *args, **kwargs: order.append("file")

        asyncio.run(files.delete("file_1"))

        assert order == ["store", "file"]
        mock_openai.vector_stores.files.delete.assert_awaited_once_with("file_1", vector_store_id="vs_test")

    def test_requires_id(self, files):
        with pytest.raises(ValidationError):
            asyncio.run(files.delete(""))


class TestDeleteAll:

    def test_counts_both_phases(self, files, mock_openai, listing, make_stream):
        mock_openai.vector_stores.files.list = MagicMock(
            return_value=make_stream([SimpleNamespace(id="f1"), SimpleNamespace(id="f2")])
        )
        listing([stored("f1", "1-work-experience-rooster-a.txt"), stored("f2", "x.txt"), stored("f3", "y.txt")])

        result = asyncio.run(files.delete_all())

        assert result.deletedVectorStoreFiles == 2
        assert result.deletedFiles == 3

    def test_phase_failure_is_best_effort(self, files, mock_openai, listing):
        mock_openai.vector_stores.files.list = MagicMock(side_effect=RuntimeError("down"))
        listing([stored("f1", "x.txt")])

        result = asyncio.run(files.delete_all())

        assert result.deletedVectorStoreFiles == 0
        assert result.deletedFiles == 1


class TestResumeDraft:

    def test_replaces_previous_draft(self, files, mock_openai, listing):
        listing([stored("old_draft", RESUME_DRAFT_FILENAME), stored("f1", "1-work-experience-rooster-cv.pdf")])
        mock_openai.files.create.return_value = SimpleNamespace(id="new_draft")

        file_id = asyncio.run(files.replace_resume_draft("# Resume"))

        assert file_id == "new_draft"
        mock_openai.files.delete.assert_awaited_once_with("old_draft")
        filename, content, _ = mock_openai.files.create.await_args.kwargs["file"]
        assert (filename, content) == (RESUME_DRAFT_FILENAME, b"# Resume")

    def test_missing_draft_in_store_is_tolerated(self, files, mock_openai, listing):
        listing([stored("old_draft", RESUME_DRAFT_FILENAME)])
        response = httpx.Response(404, request=httpx.Request("DELETE", "https://api.openai.com/v1/x"))
        mock_openai.vector_stores.files.delete.side_effect = openai.NotFoundError("gone", response=response, body=None)
        mock_openai.files.create.return_value = SimpleNamespace(id="new_draft")

        assert asyncio.run(files.replace_resume_draft("# Resume")) == "new_draft"
        mock_openai.files.delete.assert_awaited_once_with("old_draft")

    def test_requires_content(self, files):
        with pytest.raises(ValidationError):
            asyncio.run(files.replace_resume_draft(""))
