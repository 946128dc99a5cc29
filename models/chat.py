from typing import List, Optional

from pydantic import BaseModel


class MessageCreate(BaseModel):
    content: Optional[str] = None


class ToolOutput(BaseModel):
    tool_call_id: str
    output: str


class ToolOutputsSubmit(BaseModel):
    runId: Optional[str] = None
    toolCallOutputs: Optional[List[ToolOutput]] = None


class ThreadCreated(BaseModel):
    threadId: str


class CancelRunsResult(BaseModel):
    message: str
    cancelledCount: int = 0
    failedCount: int = 0
