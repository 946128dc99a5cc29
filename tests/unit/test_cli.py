"""Unit tests for the command line front end."""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

import cli


def client_with(files_by_type):
    client = MagicMock()
    client.list_files = AsyncMock(side_effect=lambda file_type: files_by_type.get(file_type, []))
    return client


@pytest.fixture
def patched_chat(monkeypatch, tmp_path):
    """Run `chat` against a given transport double with the builder mocked out."""
    monkeypatch.setenv("RESUME_ROOSTER_STATE", str(tmp_path / "state.json"))
    cli.get_settings.cache_clear()
    builder = MagicMock()
    builder.open = AsyncMock()
    monkeypatch.setattr(cli, "ResumeBuilder", MagicMock(return_value=builder))

    def run(client):
        @asynccontextmanager
        async def open_client():
            yield client

        monkeypatch.setattr(cli, "open_client", open_client)
        asyncio.run(cli.chat(cli.parse_args(["chat"])))

    yield run, builder
    cli.get_settings.cache_clear()


class TestRequiredDocuments:

    def test_nothing_missing(self, uploaded_file):
        client = client_with({
            "work-experience": [uploaded_file("cv")],
            "job-description": [uploaded_file("jd", "job-description")],
        })

        assert asyncio.run(cli.missing_documents(client)) == []

    def test_reports_each_missing_type(self, uploaded_file):
        client = client_with({"work-experience": [uploaded_file("cv")]})

        assert asyncio.run(cli.missing_documents(client)) == ["job-description"]

    def test_message_names_missing_documents(self):
        with pytest.raises(SystemExit, match="work experience and job description"):
            asyncio.run(cli.require_documents(client_with({})))

    def test_chat_refuses_without_job_description(self, patched_chat, uploaded_file):
        """No conversation is opened, so no kickoff message claims files were uploaded."""
        run, builder = patched_chat

        with pytest.raises(SystemExit, match="job description"):
            run(client_with({"work-experience": [uploaded_file("cv")]}))

        builder.open.assert_not_awaited()


class TestParseArgs:

    def test_upload(self):
        args = cli.parse_args(["upload", "-t", "work-experience", "a.pdf", "b.txt"])

        assert args.handler is cli.upload_files
        assert args.paths == ["a.pdf", "b.txt"]

    def test_upload_rejects_unknown_type(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["upload", "-t", "cover-letter", "a.pdf"])

    def test_draft(self):
        args = cli.parse_args(["draft", "--job", "jd.txt", "--work", "cv.pdf", "-o", "out.md"])

        assert (args.job, args.work, args.output) == ("jd.txt", ["cv.pdf"], "out.md")
