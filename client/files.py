import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from client.transport import ResumeRoosterClient
from models.files import UploadedFile
from utils.errors import ResumeRoosterError

logger = logging.getLogger(__name__)


class FileLibrary:
    """
    The uploaded documents of one type

    Keeps a local list that mirrors the server, removes entries optimistically
    on delete and keeps at most `max_files` of them by deleting the oldest
    before new uploads. The last failure is kept in `error`.
    """

    def __init__(self, client: ResumeRoosterClient, file_type: str, max_files: int = 1):
        self.client = client
        self.file_type = file_type
        self.max_files = max_files
        self.files: List[UploadedFile] = []
        self.error: Optional[str] = None

    async def refresh(self) -> List[UploadedFile]:
        try:
            files = await self.client.list_files(self.file_type)
        except ResumeRoosterError as e:
            logger.error("Failed to fetch %s files: %s", self.file_type, e.message)
            self.error = "Failed to load files"
            return self.files

        self.files = sorted(
            (f for f in files if f.fileType == self.file_type),
            key=lambda f: f.createdAt,
        )
        return self.files

    async def delete(self, file_id: str) -> bool:
        """
        Delete one file, removing it from the local list first

        Returns:
            True if the server confirmed the deletion
        """
        entry = next((f for f in self.files if f.fileId == file_id), None)
        if entry is None:
            return False

        self.files = [f for f in self.files if f.fileId != file_id]
        try:
            await self.client.delete_file(file_id)
        except ResumeRoosterError as e:
            logger.error("Error deleting file %s: %s", file_id, e.message)
            self.files.append(entry)
            self.files.sort(key=lambda f: f.createdAt)
            self.error = "Failed to delete file"
            return False
        return True

    async def _make_room(self, incoming: int) -> int:
        """Delete the oldest files so `incoming` more fit, and return the free slots"""
        overflow = len(self.files) + incoming - self.max_files
        if overflow > 0:
            oldest = self.files[:overflow]
            await asyncio.gather(*(self.delete(f.fileId) for f in oldest))
        return max(self.max_files - len(self.files), 0)

    async def upload(self, paths: Sequence[Path]) -> List[UploadedFile]:
        if not paths:
            return self.files
        self.error = None

        slots = await self._make_room(len(paths))
        try:
            for path in list(paths)[:slots]:
                result = await self.client.upload_file(path, self.file_type)
                logger.info("Uploaded %s as %s", path.name, result.fileId)
        except ResumeRoosterError as e:
            logger.error("Error uploading file: %s", e.message)
            self.error = e.message
        return await self.refresh()

    async def submit_text(self, text: str) -> List[UploadedFile]:
        if not text.strip():
            return self.files
        self.error = None

        if await self._make_room(1) < 1:
            return await self.refresh()
        try:
            result = await self.client.upload_text(text, self.file_type)
            logger.info("Saved pasted %s as %s", self.file_type, result.fileId)
        except ResumeRoosterError as e:
            logger.error("Error submitting text: %s", e.message)
            self.error = e.message
        return await self.refresh()
