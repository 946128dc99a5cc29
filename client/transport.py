import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp

from client.events import StreamEvent, decode_sse
from models.chat import CancelRunsResult, ToolOutput
from models.files import CleanupResult, UploadedFile, UploadResult
from utils.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

STREAM_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_read=300)


class ResumeRoosterClient:
    """
    HTTP client for the resume rooster server

    Every request goes through `_request` or `_stream`, which turn network
    failures into TransportError and non-2xx answers into UpstreamError carrying
    the server's `error` message.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str):
        self.session = session
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    async def _raise_for_status(response: aiohttp.ClientResponse) -> None:
        if response.status < 400:
            return
        message = f"Server answered with status {response.status}"
        try:
            body = await response.json(content_type=None)
            if isinstance(body, dict) and body.get("error"):
                message = body["error"]
        except (aiohttp.ContentTypeError, ValueError):
            pass
        raise UpstreamError(message)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with self.session.request(method, self._url(path), **kwargs) as response:
                await self._raise_for_status(response)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Request to {path} failed: {e}") from e

    async def _stream(self, path: str, payload: Dict[str, Any]) -> AsyncIterator[StreamEvent]:
        try:
            async with self.session.post(self._url(path), json=payload, timeout=STREAM_TIMEOUT) as response:
                await self._raise_for_status(response)
                async for event in decode_sse(response.content):
                    yield event
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Stream from {path} failed: {e}") from e

    # Threads

    async def get_assistant(self) -> str:
        data = await self._request("GET", "/assistants")
        return data["assistantId"]

    async def create_thread(self) -> str:
        data = await self._request("POST", "/assistants/threads")
        return data["threadId"]

    async def cancel_active_runs(self, thread_id: str) -> CancelRunsResult:
        data = await self._request("POST", f"/assistants/threads/{thread_id}/cancel-runs")
        return CancelRunsResult.model_validate(data)

    async def fetch_messages(self, thread_id: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", f"/assistants/threads/{thread_id}/messages")
        return data.get("messages", [])

    def start_turn(self, thread_id: str, content: str) -> AsyncIterator[StreamEvent]:
        """Post a user message and stream the assistant's reply"""
        return self._stream(f"/assistants/threads/{thread_id}/messages", {"content": content})

    def submit_tool_outputs(self, thread_id: str, run_id: str, outputs: List[ToolOutput]) -> AsyncIterator[StreamEvent]:
        """Submit a batch of tool outputs and stream the continued run"""
        payload = {
            "runId": run_id,
            "toolCallOutputs": [output.model_dump() for output in outputs],
        }
        return self._stream(f"/assistants/threads/{thread_id}/actions", payload)

    # Files

    async def list_files(self, file_type: Optional[str] = None) -> List[UploadedFile]:
        params = {"fileType": file_type} if file_type else None
        data = await self._request("GET", "/assistants/files", params=params)
        return [UploadedFile.model_validate(item) for item in data]

    async def upload_file(self, path: Path, file_type: str) -> UploadResult:
        form = aiohttp.FormData()
        form.add_field("fileType", file_type)
        form.add_field("file", path.read_bytes(), filename=path.name)
        data = await self._request("POST", "/assistants/files", data=form)
        return UploadResult.model_validate(data)

    async def upload_text(self, text: str, file_type: str) -> UploadResult:
        data = await self._request("POST", "/assistants/files", json={"text": text, "fileType": file_type})
        return UploadResult.model_validate(data)

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"/assistants/files/{file_id}")

    async def delete_all_files(self) -> CleanupResult:
        data = await self._request("DELETE", "/assistants/files")
        return CleanupResult.model_validate(data)

    async def save_resume(self, content: str) -> str:
        data = await self._request("PUT", "/assistants/resume", json={"content": content})
        return data["fileId"]
