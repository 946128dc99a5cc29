"""The server relay and the client decoder agree on the wire format."""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

from client.controller import ConversationController
from client.events import decode_sse
from models.conversation import ConversationSession
from routes.threads import generate_stream_response


def vendor_event(name, payload):
    return SimpleNamespace(event=name, data=MagicMock(**{"model_dump.return_value": payload}))


def text_delta(message_id, value, annotations=None):
    text = {"value": value}
    if annotations:
        text["annotations"] = annotations
    return vendor_event("thread.message.delta", {
        "id": message_id,
        "object": "thread.message.delta",
        "delta": {"content": [{"index": 0, "type": "text", "text": text}]},
    })


async def relay(events):
    """Run vendor events through the SSE relay and back out as encoded lines."""
    async def source():
        for event in events:
            yield event

    lines = []
    async for chunk in generate_stream_response(source()):
        lines.extend(line.encode("utf-8") + b"\n" for line in chunk.split("\n"))

    async def byte_lines():
        for line in lines:
            yield line

    return byte_lines()


async def drive(session, events):
    controller = ConversationController(session, MagicMock(), MagicMock())
    await controller.consume(decode_sse(await relay(events)))
    return controller


class TestStreamRelay:

    def test_full_turn_reaches_session(self):
        session = ConversationSession(thread_id="th_1")
        citation = {
            "type": "file_citation", "text": "【0†cv】", "start_index": 9, "end_index": 15,
            "file_citation": {"file_id": "file_cv"},
        }
        events = [
            vendor_event("thread.run.created", {"id": "run_1"}),
            text_delta("msg_1", "Based on "),
            text_delta("msg_1", "【0†cv】, here you go."),
            text_delta("msg_1", "", annotations=[citation]),
            vendor_event("thread.run.completed", {"id": "run_1"}),
        ]

        asyncio.run(drive(session, events))

        assert session.last_message.text == "Based on /files/file_cv, here you go."
        assert session.input_enabled is True

    def test_relay_failure_becomes_error_event(self):
        async def failing_source():
            yield text_delta("msg_1", "partial")
            raise RuntimeError("upstream closed")

        async def collect():
            return [chunk async for chunk in generate_stream_response(failing_source())]

        chunks = asyncio.run(collect())

        assert chunks[-2] == 'data: {"event": "error", "data": {"message": "upstream closed"}}\n\n'
        assert chunks[-1] == "data: [DONE]\n\n"

    def test_error_leaves_input_disabled(self):
        session = ConversationSession(thread_id="th_1")
        events = [
            text_delta("msg_1", "partial"),
            vendor_event("thread.run.failed", {"id": "run_1", "last_error": {"message": "rate limited"}}),
        ]

        asyncio.run(drive(session, events))

        assert session.last_message.text == "partial"
        assert session.input_enabled is False
