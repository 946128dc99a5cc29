"""
Shared pytest fixtures for Resume Rooster.

Async code is driven with `asyncio.run` inside plain test functions, and the
hosted assistant service is replaced with `unittest.mock` doubles.
"""

from typing import Iterable, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from client.events import RequiresAction, RunCompleted, TextCreated, TextDelta
from models.conversation import ConversationSession, PendingToolCall
from models.files import UploadedFile


class AsyncList:
    """Async iterator over a fixed list, standing in for a paged SDK listing or a stream"""

    def __init__(self, items: Iterable):
        self._items = list(items)

    def __aiter__(self):
        self._iter = iter(self._items)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


@pytest.fixture
def make_stream():
    """Factory for async event streams."""
    return AsyncList


@pytest.fixture
def session() -> ConversationSession:
    return ConversationSession(thread_id="th_test")


@pytest.fixture
def text_turn() -> List:
    """A turn that streams one assistant message and completes."""
    return [
        TextCreated(message_id="msg_1"),
        TextDelta(value="Hello", message_id="msg_1"),
        TextDelta(value=", world", message_id="msg_1"),
        RunCompleted(run_id="run_1"),
    ]


@pytest.fixture
def update_resume_call() -> PendingToolCall:
    return PendingToolCall(
        id="call_1",
        function_name="update_resume",
        arguments='{"content":"# Resume","summary":"added header"}',
    )


@pytest.fixture
def tool_turn(update_resume_call) -> List:
    """A turn that asks for one tool call and streams nothing else."""
    return [RequiresAction(run_id="run_1", tool_calls=[update_resume_call])]


def make_uploaded_file(file_id: str, file_type: str = "work-experience", created_at: int = 0) -> UploadedFile:
    return UploadedFile(
        fileId=file_id,
        filename=f"{created_at}-{file_type}-rooster-{file_id}.txt",
        fileType=file_type,
        displayName=f"{file_id}.txt",
        createdAt=created_at,
    )


@pytest.fixture
def uploaded_file():
    """Factory for UploadedFile entries."""
    return make_uploaded_file


@pytest.fixture
def mock_openai():
    """AsyncOpenAI double with the namespaces the services use."""
    client = MagicMock()
    client.beta.threads.create = AsyncMock()
    client.beta.threads.messages.create = AsyncMock()
    client.beta.threads.messages.list = AsyncMock()
    client.beta.threads.runs.list = AsyncMock()
    client.beta.threads.runs.cancel = AsyncMock()
    client.beta.threads.runs.retrieve = AsyncMock()
    client.beta.threads.runs.steps.list = AsyncMock()
    client.beta.assistants.create = AsyncMock()
    client.beta.assistants.retrieve = AsyncMock()
    client.beta.assistants.update = AsyncMock()
    client.files.create = AsyncMock()
    client.files.delete = AsyncMock()
    client.files.retrieve = AsyncMock()
    client.files.content = AsyncMock()
    client.vector_stores.create = AsyncMock()
    client.vector_stores.files.create_and_poll = AsyncMock()
    client.vector_stores.files.delete = AsyncMock()
    return client


@pytest.fixture
def mock_assistants():
    """AssistantService double with fixed ids."""
    assistants = MagicMock()
    assistants.ensure_assistant = AsyncMock(return_value="asst_test")
    assistants.get_or_create_vector_store = AsyncMock(return_value="vs_test")
    return assistants
