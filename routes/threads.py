import json
import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from dependencies import Threads
from models.chat import MessageCreate, ThreadCreated, ToolOutputsSubmit
from utils.errors import ValidationError, error_response

logger = logging.getLogger(__name__)

router = APIRouter()


async def generate_stream_response(events: AsyncIterator[Any]):
    """Relay vendor stream events to the client as server-sent events"""
    try:
        async for event in events:
            payload = {"event": event.event, "data": event.data.model_dump(mode="json")}
            yield f"data: {json.dumps(payload)}\n\n"
    except Exception as e:
        logger.error("Error in assistant stream: %s", e)
        err = {"event": "error", "data": {"message": str(e)}}
        yield f"data: {json.dumps(err)}\n\n"

    yield "data: [DONE]\n\n"


@router.post("", response_model=ThreadCreated)
async def create_thread(threads: Threads):
    """Create a new conversation thread"""
    try:
        thread_id = await threads.create_thread()
        return ThreadCreated(threadId=thread_id)
    except Exception as e:
        logger.error("Error creating thread: %s", e)
        return error_response(e, "Failed to create thread")


@router.get("/{thread_id}/messages")
async def get_messages(thread_id: str, threads: Threads):
    """Get messages from a thread, oldest first"""
    try:
        messages = await threads.list_messages(thread_id)
        return {"messages": messages}
    except Exception as e:
        logger.error("Error fetching messages: %s", e)
        return error_response(e, "Failed to fetch messages")


@router.post("/{thread_id}/messages")
async def send_message(thread_id: str, body: MessageCreate, threads: Threads):
    """Send a user message and stream the assistant's turn"""
    try:
        await threads.post_user_message(thread_id, body.content)
    except Exception as e:
        logger.error("Failed to send message or initiate run: %s", e)
        return error_response(e, "Internal server error")

    return StreamingResponse(
        generate_stream_response(threads.stream_run(thread_id)),
        media_type="text/event-stream"
    )


@router.post("/{thread_id}/actions")
async def submit_tool_outputs(thread_id: str, body: ToolOutputsSubmit, threads: Threads):
    """Submit a batch of tool outputs to a run and stream the continued turn"""
    if not body.runId or body.toolCallOutputs is None:
        return error_response(ValidationError("Missing required parameters"), "")

    return StreamingResponse(
        generate_stream_response(
            threads.stream_tool_outputs(thread_id, body.runId, body.toolCallOutputs)
        ),
        media_type="text/event-stream"
    )


@router.post("/{thread_id}/cancel-runs")
async def cancel_runs(thread_id: str, threads: Threads):
    """Cancel any runs still active on the thread"""
    try:
        return await threads.cancel_active_runs(thread_id)
    except Exception as e:
        logger.error("Error cancelling runs: %s", e)
        return error_response(e, "Failed to cancel runs")
