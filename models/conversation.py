from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Set, Tuple

from pydantic import BaseModel, Field, PrivateAttr

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
Role = Literal["user", "assistant"]

FILE_LINK_TEMPLATE = "/files/{file_id}"


class Annotation(BaseModel):
    """A citation marker in streamed text that refers to a source file"""
    text: str
    file_id: str
    type: str = "file_citation"
    start_index: Optional[int] = None
    end_index: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str, Optional[int], Optional[int]]:
        return self.text, self.file_id, self.start_index, self.end_index

    @property
    def link(self) -> str:
        return FILE_LINK_TEMPLATE.format(file_id=self.file_id)


class Message(BaseModel):
    role: Role
    text: str = ""
    _applied_annotations: Set[Tuple] = PrivateAttr(default_factory=set)

    def annotate(self, annotations: List[Annotation]) -> None:
        """
        Rewrite citation text into download links across the whole message

        Each annotation occurrence is applied at most once, so replaying the
        same annotation list never substitutes twice.
        """
        for annotation in annotations:
            if not annotation.text or annotation.key in self._applied_annotations:
                continue
            self.text = self.text.replace(annotation.text, annotation.link)
            self._applied_annotations.add(annotation.key)


class ConversationSession(BaseModel):
    """One UI surface's view of a hosted conversation thread"""
    thread_id: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    input_enabled: bool = False

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None

    def append_message(self, role: Role, text: str) -> bool:
        """
        Append a message unless it repeats the immediately preceding one

        Returns:
            True if the message was appended
        """
        last = self.last_message
        if last is not None and last.role == role and last.text == text:
            return False
        self.messages.append(Message(role=role, text=text))
        return True

    def append_to_last_message(self, text: str) -> None:
        if self.last_message is None:
            raise ValueError("No message to append to")
        self.last_message.text += text

    def annotate_last_message(self, annotations: List[Annotation]) -> None:
        if self.last_message is not None:
            self.last_message.annotate(annotations)

    def reset(self) -> None:
        self.thread_id = None
        self.messages = []
        self.input_enabled = False


class PendingToolCall(BaseModel):
    id: str
    function_name: str
    arguments: str = "{}"


class ResumeArtifact(BaseModel):
    content: str
    summary: str = ""
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ControllerState(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    REQUIRES_ACTION = "requires_action"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
