"""
Streaming conversation controller

Consumes the typed events of one assistant turn and evolves a
`ConversationSession`: text deltas are appended to a lazily created assistant
message, citation annotations are rewritten into download links, tool calls are
resolved through a host-supplied handler and submitted as one batch whose
stream feeds back into the same dispatch loop. Only a completed run re-enables
input.
"""
import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Awaitable, Callable, Deque, List, Optional

from client.events import RequiresAction, RunCompleted, StreamError, StreamEvent, TextCreated, TextDelta
from models.chat import ToolOutput
from models.conversation import ASSISTANT_ROLE, USER_ROLE, ControllerState, ConversationSession, Message, PendingToolCall
from utils.errors import ResumeRoosterError

logger = logging.getLogger(__name__)

FunctionCallHandler = Callable[[PendingToolCall], Awaitable[str]]
SubmitToolOutputs = Callable[[str, List[ToolOutput]], AsyncIterator[StreamEvent]]

DEFAULT_TOOL_OUTPUT = "Function call failed, no action taken"


class ConversationController:
    def __init__(
            self,
            session: ConversationSession,
            function_call_handler: FunctionCallHandler,
            submit_tool_outputs: SubmitToolOutputs,
            on_input_enabled: Optional[Callable[[bool], None]] = None,
    ):
        self.session = session
        self.function_call_handler = function_call_handler
        self.submit_tool_outputs = submit_tool_outputs
        self.on_input_enabled = on_input_enabled
        self.state = ControllerState.IDLE
        self._awaiting_text = False

    def set_input_enabled(self, enabled: bool) -> None:
        self.session.input_enabled = enabled
        if self.on_input_enabled is not None:
            self.on_input_enabled(enabled)

    def begin_user_turn(self, text: str) -> bool:
        """
        Record a user message and disable input for the turn that follows

        Returns:
            False if the text is blank and no turn should start
        """
        if not text.strip():
            return False
        self.session.append_message(USER_ROLE, text)
        self.set_input_enabled(False)
        self.state = ControllerState.STREAMING
        return True

    async def consume(self, stream: AsyncIterator[StreamEvent]) -> None:
        """
        Drive a turn to the end of its stream and of every follow-up stream

        Follow-up streams come from tool-output submissions and are consumed in
        order once the stream that requested them has ended.
        """
        streams: Deque[AsyncIterator[StreamEvent]] = deque([stream])
        while streams:
            current = streams.popleft()
            self.state = ControllerState.STREAMING
            try:
                async for event in current:
                    follow_up = await self.dispatch(event)
                    if follow_up is not None:
                        streams.append(follow_up)
            except ResumeRoosterError as e:
                # partial text stays, input stays disabled
                logger.error("Error reading assistant stream: %s", e.message)
                return

    async def dispatch(self, event: StreamEvent) -> Optional[AsyncIterator[StreamEvent]]:
        """
        Apply one event to the session

        Returns:
            The follow-up stream opened by a tool-output submission, if any
        """
        if isinstance(event, TextCreated):
            self._awaiting_text = True
        elif isinstance(event, TextDelta):
            self._on_text_delta(event)
        elif isinstance(event, RequiresAction):
            return await self._on_requires_action(event)
        elif isinstance(event, RunCompleted):
            self.state = ControllerState.COMPLETED
            self.set_input_enabled(True)
            self.state = ControllerState.IDLE
        elif isinstance(event, StreamError):
            logger.error("Assistant stream reported an error: %s", event.message)
        return None

    def _on_text_delta(self, event: TextDelta) -> None:
        if event.value:
            if self._awaiting_text or not self._last_is_assistant():
                self.session.messages.append(Message(role=ASSISTANT_ROLE, text=""))
                self._awaiting_text = False
            self.session.append_to_last_message(event.value)

        if event.annotations and self._last_is_assistant():
            self.session.annotate_last_message(event.annotations)

    def _last_is_assistant(self) -> bool:
        last = self.session.last_message
        return last is not None and last.role == ASSISTANT_ROLE

    async def _on_requires_action(self, event: RequiresAction) -> AsyncIterator[StreamEvent]:
        self.state = ControllerState.REQUIRES_ACTION
        self.set_input_enabled(False)

        outputs = await asyncio.gather(*(self._resolve(call) for call in event.tool_calls))

        self.state = ControllerState.SUBMITTING
        return self.submit_tool_outputs(event.run_id, list(outputs))

    async def _resolve(self, call: PendingToolCall) -> ToolOutput:
        try:
            output = await self.function_call_handler(call)
        except Exception:
            logger.exception("Tool call %s (%s) failed", call.id, call.function_name)
            output = DEFAULT_TOOL_OUTPUT
        return ToolOutput(tool_call_id=call.id, output=output)
