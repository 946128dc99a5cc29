"""
Typed events consumed by the conversation controller.

The server relays the hosted assistant's stream as server-sent events carrying
`{"event": <vendor name>, "data": {...}}`. `StreamDecoder` turns those vendor
payloads into the small discriminated union below, so nothing downstream has to
reach into untyped dictionaries.
"""
import json
import logging
from typing import Annotated, Any, AsyncIterator, Dict, List, Literal, Optional, Set, Tuple, Union

from pydantic import BaseModel, Field

from models.conversation import Annotation, PendingToolCall

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
RUN_FAILURE_EVENTS = ("thread.run.failed", "thread.run.cancelled", "thread.run.expired")


class TextCreated(BaseModel):
    type: Literal["text_created"] = "text_created"
    message_id: Optional[str] = None


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    value: Optional[str] = None
    annotations: Optional[List[Annotation]] = None
    message_id: Optional[str] = None


class RequiresAction(BaseModel):
    type: Literal["requires_action"] = "requires_action"
    run_id: str
    tool_calls: List[PendingToolCall] = Field(default_factory=list)


class RunCompleted(BaseModel):
    type: Literal["run_completed"] = "run_completed"
    run_id: Optional[str] = None


class StreamError(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[TextCreated, TextDelta, RequiresAction, RunCompleted, StreamError],
    Field(discriminator="type"),
]


def _parse_annotation(raw: Dict[str, Any]) -> Optional[Annotation]:
    """Keep only annotations that point at a file"""
    for key in ("file_path", "file_citation"):
        target = raw.get(key)
        if isinstance(target, dict) and target.get("file_id"):
            return Annotation(
                text=raw.get("text") or "",
                file_id=target["file_id"],
                type=raw.get("type", key),
                start_index=raw.get("start_index"),
                end_index=raw.get("end_index"),
            )
    return None


class StreamDecoder:
    """
    Maps vendor stream payloads onto typed events

    One decoder serves one stream: it remembers which message content parts
    have already produced a TextCreated event.
    """

    def __init__(self):
        self._seen_parts: Set[Tuple[Optional[str], int]] = set()

    def decode(self, payload: Dict[str, Any]) -> List[StreamEvent]:
        name = payload.get("event")
        data = payload.get("data") or {}

        if name == "thread.message.delta":
            return self._decode_message_delta(data)
        if name == "thread.run.requires_action":
            return [self._decode_requires_action(data)]
        if name == "thread.run.completed":
            return [RunCompleted(run_id=data.get("id"))]
        if name in RUN_FAILURE_EVENTS:
            error = data.get("last_error") or {}
            return [StreamError(message=error.get("message") or f"Run ended with {name}")]
        if name == "error":
            return [StreamError(message=data.get("message") or "Stream error")]
        return []

    def _decode_message_delta(self, data: Dict[str, Any]) -> List[StreamEvent]:
        message_id = data.get("id")
        events: List[StreamEvent] = []
        for part in (data.get("delta") or {}).get("content") or []:
            if part.get("type") != "text":
                continue

            key = (message_id, part.get("index", 0))
            if key not in self._seen_parts:
                self._seen_parts.add(key)
                events.append(TextCreated(message_id=message_id))

            text = part.get("text") or {}
            raw_annotations = text.get("annotations")
            annotations = None
            if raw_annotations:
                annotations = [a for a in map(_parse_annotation, raw_annotations) if a is not None]
            events.append(TextDelta(value=text.get("value"), annotations=annotations, message_id=message_id))
        return events

    @staticmethod
    def _decode_requires_action(data: Dict[str, Any]) -> RequiresAction:
        required = (data.get("required_action") or {}).get("submit_tool_outputs") or {}
        tool_calls = []
        for call in required.get("tool_calls") or []:
            function = call.get("function") or {}
            tool_calls.append(PendingToolCall(
                id=call["id"],
                function_name=function.get("name", ""),
                arguments=function.get("arguments") or "{}",
            ))
        return RequiresAction(run_id=data["id"], tool_calls=tool_calls)


def parse_sse_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Parse one server-sent event line

    Returns:
        The JSON payload, or None for blank lines, comments and the done marker
    """
    line = line.strip()
    if not line.startswith("data:"):
        return None
    data = line[len("data:"):].strip()
    if not data or data == DONE_SENTINEL:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed stream line: %s", data[:100])
        return None


async def decode_sse(lines: AsyncIterator[bytes]) -> AsyncIterator[StreamEvent]:
    """Decode a byte stream of server-sent event lines into typed events"""
    decoder = StreamDecoder()
    async for raw in lines:
        payload = parse_sse_line(raw.decode("utf-8"))
        if payload is None:
            continue
        for event in decoder.decode(payload):
            yield event
