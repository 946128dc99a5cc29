import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import APIError, AsyncOpenAI

from models.chat import CancelRunsResult, ToolOutput
from services.assistant import AssistantService
from services.run_logger import RunLogger
from utils.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

ACTIVE_RUN_STATUSES = ("queued", "in_progress", "requires_action")


class ThreadManager:
    """Thread lifecycle, message posting and streamed runs against the hosted assistant"""

    def __init__(self, client: AsyncOpenAI, assistants: AssistantService):
        self.client = client
        self.assistants = assistants

    async def create_thread(self) -> str:
        try:
            thread = await self.client.beta.threads.create()
        except APIError as e:
            logger.error("Error creating thread: %s", e)
            raise UpstreamError("Failed to create thread")
        logger.info("Created thread %s", thread.id)
        return thread.id

    async def list_messages(self, thread_id: str) -> List[Dict[str, Any]]:
        """
        Get every message in a thread, oldest first

        Returns:
            The messages as plain dictionaries
        """
        logger.info("Fetching messages from thread: %s", thread_id)
        try:
            page = await self.client.beta.threads.messages.list(thread_id, order="asc", limit=100)
        except APIError as e:
            logger.error("Error fetching messages for %s: %s", thread_id, e)
            raise UpstreamError("Failed to fetch messages")
        return [message.model_dump(mode="json") for message in page.data]

    async def cancel_active_runs(self, thread_id: str) -> CancelRunsResult:
        """
        Cancel every queued, in-progress or action-pending run of a thread

        A run that fails to cancel is counted and logged; the rest still get cancelled.
        """
        try:
            runs = await self.client.beta.threads.runs.list(thread_id, limit=10)
        except APIError as e:
            logger.error("Error listing runs for %s: %s", thread_id, e)
            raise UpstreamError("Failed to cancel runs")

        cancelled = 0
        failed = 0
        for run in runs.data:
            if run.status not in ACTIVE_RUN_STATUSES:
                continue
            try:
                await self.client.beta.threads.runs.cancel(run.id, thread_id=thread_id)
                cancelled += 1
                logger.info("Cancelled run %s in thread %s", run.id, thread_id)
            except APIError as e:
                failed += 1
                logger.error("Failed to cancel run %s in thread %s: %s", run.id, thread_id, e)

        message = f"Cancelled {cancelled} active runs"
        if failed:
            message += f", failed to cancel {failed} runs"
        return CancelRunsResult(message=message, cancelledCount=cancelled, failedCount=failed)

    async def post_user_message(self, thread_id: str, content: Optional[str]) -> None:
        """Add a user message to a thread ahead of starting a run"""
        if not thread_id or not content:
            raise ValidationError("Missing parameters")

        try:
            await self.client.beta.threads.messages.create(thread_id, role="user", content=content)
        except APIError as e:
            logger.error("Failed to send message to %s: %s", thread_id, e)
            raise UpstreamError("Failed to send message")

    async def stream_run(self, thread_id: str) -> AsyncIterator[Any]:
        """
        Stream a new assistant run over the thread

        Yields:
            Vendor stream events, each with an `event` name and a `data` payload
        """
        assistant_id = await self.assistants.ensure_assistant()

        run_logger = RunLogger(self.client)
        async with self.client.beta.threads.runs.stream(
                thread_id=thread_id,
                assistant_id=assistant_id,
        ) as stream:
            async for event in stream:
                yield event
                if event.event == "thread.run.completed":
                    logger.info("Run %s completed successfully", event.data.id)
                    await run_logger.log_run_details(thread_id, event.data.id, "run_completed")

    async def stream_tool_outputs(
            self,
            thread_id: str,
            run_id: str,
            outputs: List[ToolOutput],
    ) -> AsyncIterator[Any]:
        """
        Submit a batch of tool outputs and stream the resumed run

        Yields:
            Vendor stream events for the continued run
        """
        logger.info("Submitting %d tool outputs to run %s in thread %s", len(outputs), run_id, thread_id)
        run_logger = RunLogger(self.client)
        await run_logger.log_run_details(thread_id, run_id, "before_tool_outputs")

        async with self.client.beta.threads.runs.submit_tool_outputs_stream(
                run_id=run_id,
                thread_id=thread_id,
                tool_outputs=[output.model_dump() for output in outputs],
        ) as stream:
            async for event in stream:
                yield event
                if event.event == "thread.run.completed":
                    logger.info("Run %s completed after tool outputs for thread %s", run_id, thread_id)
                    await run_logger.log_run_details(thread_id, run_id, "run_completed_after_tools")
