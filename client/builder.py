import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from client.controller import ConversationController
from client.events import StreamEvent
from client.state import ClientState
from client.tools import ResumeToolHandler
from client.transport import ResumeRoosterClient
from models.chat import ToolOutput
from models.conversation import ASSISTANT_ROLE, USER_ROLE, ConversationSession, Message
from utils.errors import ResumeRoosterError, StateError

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hello! I'll help you create a resume based on your work experience and the job "
    "description you provided. What would you like me to focus on in your resume?"
)
KICKOFF_MESSAGE = "I've uploaded files for resume creation."
EMPTY_USER_MESSAGE = "Files were uploaded for analysis."
ATTACHMENT_TYPES = ("image_file", "file_attachment")


def format_history(raw_messages: List[Dict[str, Any]]) -> List[Message]:
    """Flatten hosted thread messages into plain role/text pairs"""
    messages = []
    for raw in raw_messages:
        content = raw.get("content")
        if isinstance(content, str):
            text = content
        else:
            parts = []
            for item in content or []:
                if item.get("type") == "text" and item.get("text"):
                    parts.append(item["text"].get("value") or "")
                elif item.get("type") in ATTACHMENT_TYPES:
                    parts.append(f"[Attached file: {item.get('file_id') or 'File'}]")
            text = "\n".join(parts)

        role = raw.get("role", ASSISTANT_ROLE)
        if not text.strip() and role == USER_ROLE:
            text = EMPTY_USER_MESSAGE
        messages.append(Message(role=role, text=text))
    return messages


class ResumeBuilder:
    """
    Hosts one resume-building conversation

    Opening the builder either starts a new thread with a kickoff message or
    resumes the stored one: active runs are cancelled first, then the history
    is replayed and the saved resume draft restored.
    """

    def __init__(
            self,
            client: ResumeRoosterClient,
            state: ClientState,
            tools: Optional[ResumeToolHandler] = None,
            on_input_enabled: Optional[Callable[[bool], None]] = None,
    ):
        self.client = client
        self.state = state
        self.session = ConversationSession()
        self.tools = tools or ResumeToolHandler(state=state, save_remote=client.save_resume)
        self.controller = ConversationController(
            self.session,
            self.tools,
            self._submit_tool_outputs,
            on_input_enabled=on_input_enabled,
        )

    def _submit_tool_outputs(self, run_id: str, outputs: List[ToolOutput]) -> AsyncIterator[StreamEvent]:
        if self.session.thread_id is None:
            raise StateError("Cannot submit tool outputs without a thread")
        return self.client.submit_tool_outputs(self.session.thread_id, run_id, outputs)

    async def open(self) -> None:
        saved_thread_id = self.state.thread_id
        if saved_thread_id:
            logger.info("Existing thread %s found, cancelling runs and loading messages", saved_thread_id)
            await self._resume(saved_thread_id)
        else:
            logger.info("No existing thread found, creating new thread")
            await self._start_new()

    async def _start_new(self) -> None:
        thread_id = await self.client.create_thread()
        self.session.thread_id = thread_id
        self.state.thread_id = thread_id
        logger.info("New thread %s created", thread_id)

        # input stays disabled until the kickoff run completes
        await self._run_turn(KICKOFF_MESSAGE)

    async def _resume(self, thread_id: str) -> None:
        await self._cancel_runs(thread_id)
        await self._load_history(thread_id)
        self.session.thread_id = thread_id

        saved_resume = self.state.resume_content
        if saved_resume:
            logger.info("Found saved resume content, restoring draft")
            self.tools.restore(saved_resume)
        self.controller.set_input_enabled(True)

    async def _cancel_runs(self, thread_id: str) -> None:
        try:
            result = await self.client.cancel_active_runs(thread_id)
            logger.info("Cancelled %d existing runs for thread %s", result.cancelledCount, thread_id)
        except ResumeRoosterError as e:
            logger.warning("Failed to cancel runs for thread %s: %s", thread_id, e.message)

    async def _load_history(self, thread_id: str) -> None:
        try:
            raw_messages = await self.client.fetch_messages(thread_id)
        except ResumeRoosterError as e:
            logger.error("Error fetching messages for thread %s: %s", thread_id, e.message)
            self.session.append_message(ASSISTANT_ROLE, WELCOME_MESSAGE)
            return

        if not raw_messages:
            logger.info("No messages found for thread %s, adding welcome message", thread_id)
            self.session.append_message(ASSISTANT_ROLE, WELCOME_MESSAGE)
            return

        self.session.messages = format_history(raw_messages)
        logger.info("Loaded %d messages for thread %s", len(self.session.messages), thread_id)

    async def _run_turn(self, text: str) -> None:
        if not self.controller.begin_user_turn(text):
            return
        await self.controller.consume(self.client.start_turn(self.session.thread_id, text))

    async def send(self, text: str) -> None:
        """Send a user message and stream the assistant's turn to completion"""
        if self.session.thread_id is None:
            raise StateError("No conversation thread; open the builder first")
        if not self.session.input_enabled:
            raise StateError("Input is disabled while the assistant is working")
        await self._run_turn(text)

    def start_fresh(self) -> None:
        """Forget the stored thread and resume draft"""
        self.state.clear()
        self.session.reset()
        self.tools.resume = None
        logger.info("Cleared conversation state")

    @property
    def resume(self) -> Optional[str]:
        return self.tools.resume.content if self.tools.resume else None
