import json
import logging
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError as SchemaError

from client.state import ClientState
from models.conversation import PendingToolCall, ResumeArtifact
from utils.errors import ResumeRoosterError, ValidationError

logger = logging.getLogger(__name__)

NO_RESUME_OUTPUT = "No resume available yet."
UNKNOWN_TOOL_OUTPUT = "Function call received, no action taken"
UPDATE_ACK = "Resume updated successfully"
# fallbacks for drafts short enough to appear inside the acknowledgement
NEUTRAL_ACKS = ("Draft saved.", "OK")


class UpdateResumeArgs(BaseModel):
    content: str
    summary: str = ""


def parse_arguments(call: PendingToolCall, schema: type[BaseModel]) -> BaseModel:
    """Validate a tool call's JSON arguments against its schema"""
    try:
        return schema.model_validate(json.loads(call.arguments or "{}"))
    except (json.JSONDecodeError, SchemaError) as e:
        raise ValidationError(f"Invalid arguments for {call.function_name}: {e}") from e


class ResumeToolHandler:
    """
    Resolves the assistant's resume tool calls

    `update_resume` replaces the current artifact and answers with a short
    acknowledgement that never repeats the resume itself. `get_resume` answers
    with the current content. Anything else gets a harmless default.
    """

    def __init__(
            self,
            state: Optional[ClientState] = None,
            save_remote: Optional[Callable[[str], Awaitable[object]]] = None,
            on_resume_updated: Optional[Callable[[ResumeArtifact], None]] = None,
    ):
        self.state = state
        self.save_remote = save_remote
        self.on_resume_updated = on_resume_updated
        self.resume: Optional[ResumeArtifact] = None

    def restore(self, content: Optional[str]) -> None:
        """Reload a previously saved draft"""
        if content:
            self.resume = ResumeArtifact(content=content)

    async def __call__(self, call: PendingToolCall) -> str:
        if call.function_name == "update_resume":
            try:
                args = parse_arguments(call, UpdateResumeArgs)
            except ValidationError as e:
                logger.warning(e.message)
                return f"Parsing error: {e.message}"
            return await self.update_resume(args)

        if call.function_name == "get_resume":
            return self.resume.content if self.resume else NO_RESUME_OUTPUT

        logger.info("No handler for tool %s", call.function_name)
        return UNKNOWN_TOOL_OUTPUT

    async def update_resume(self, args: UpdateResumeArgs) -> str:
        self.resume = ResumeArtifact(content=args.content, summary=args.summary)
        logger.info("Resume updated (%d characters)", len(args.content))

        if self.state is not None:
            self.state.resume_content = args.content
        if self.on_resume_updated is not None:
            self.on_resume_updated(self.resume)
        if self.save_remote is not None:
            try:
                await self.save_remote(args.content)
            except ResumeRoosterError as e:
                logger.warning("Could not index resume draft on the server: %s", e.message)

        summary = args.summary.strip()
        acknowledgements = [UPDATE_ACK]
        if summary:
            acknowledgements.insert(0, f"{UPDATE_ACK} ({summary})")
        for ack in acknowledgements + list(NEUTRAL_ACKS):
            if not args.content or args.content not in ack:
                return ack
        return ""
