"""Unit tests for run and file retrieval logging."""

import asyncio
import logging
from types import SimpleNamespace

import pytest

from services.run_logger import RunLogger


def file_search_step():
    call = SimpleNamespace(
        type="file_search",
        file_search=SimpleNamespace(query="python experience", results=[SimpleNamespace(file_id="file_cv")]),
        output=None,
    )
    return SimpleNamespace(
        type="tool_calls",
        created_at=101,
        completed_at=105,
        step_details=SimpleNamespace(tool_calls=[call]),
    )


@pytest.fixture
def client(mock_openai):
    mock_openai.beta.threads.runs.retrieve.return_value = SimpleNamespace(
        status="completed", model="gpt-4o", created_at=100, completed_at=110,
    )
    mock_openai.beta.threads.runs.steps.list.return_value = SimpleNamespace(data=[
        file_search_step(),
        SimpleNamespace(type="message_creation", created_at=106, completed_at=109, step_details=None),
    ])
    return mock_openai


class TestDuplicateSuppression:

    def test_same_key_logged_once(self, client):
        """A repeated thread:run:event key does not fetch the run again."""
        run_logger = RunLogger(client)

        asyncio.run(run_logger.log_run_details("th_1", "run_1", "run_completed"))
        asyncio.run(run_logger.log_run_details("th_1", "run_1", "run_completed"))

        client.beta.threads.runs.retrieve.assert_awaited_once_with("run_1", thread_id="th_1")

    def test_different_event_is_logged(self, client):
        run_logger = RunLogger(client)

        asyncio.run(run_logger.log_run_details("th_1", "run_1", "before_tool_outputs"))
        asyncio.run(run_logger.log_run_details("th_1", "run_1", "run_completed_after_tools"))

        assert client.beta.threads.runs.retrieve.await_count == 2

    def test_suppression_is_per_instance(self, client):
        asyncio.run(RunLogger(client).log_run_details("th_1", "run_1", "run_completed"))
        asyncio.run(RunLogger(client).log_run_details("th_1", "run_1", "run_completed"))

        assert client.beta.threads.runs.retrieve.await_count == 2

    def test_failure_is_swallowed_and_retried(self, client):
        client.beta.threads.runs.retrieve.side_effect = [RuntimeError("timeout"), client.beta.threads.runs.retrieve.return_value]
        run_logger = RunLogger(client)

        asyncio.run(run_logger.log_run_details("th_1", "run_1", "run_completed"))
        asyncio.run(run_logger.log_run_details("th_1", "run_1", "run_completed"))

        assert client.beta.threads.runs.retrieve.await_count == 2


class TestLogContent:

    def test_logs_status_timeline_and_retrievals(self, client, caplog):
        caplog.set_level(logging.INFO, logger="services.run_logger")

        asyncio.run(RunLogger(client).log_run_details("th_1", "run_1", "run_completed"))

        assert "status=completed" in caplog.text
        assert "Step 1: tool_calls (4s)" in caplog.text
        assert "made 1 file retrievals" in caplog.text
        assert "query='python experience' sources=file_cv" in caplog.text

    def test_run_without_retrievals(self, client, caplog):
        caplog.set_level(logging.INFO, logger="services.run_logger")
        client.beta.threads.runs.steps.list.return_value = SimpleNamespace(data=[])

        asyncio.run(RunLogger(client).log_file_retrievals("th_1", "run_1"))

        assert "No file retrieval steps found in run run_1" in caplog.text
