import logging
import re
import time
from typing import List, Optional, Tuple

from openai import APIError, AsyncOpenAI, NotFoundError

from models.files import CleanupResult, FileType, UploadedFile, UploadResult
from services.assistant import AssistantService
from utils.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

FILENAME_MARKER = "rooster"
RESUME_DRAFT_FILENAME = "resume-draft.txt"

_TIMESTAMP_PREFIX = re.compile(r"^(\d+)-")


def build_filename(file_type: FileType, original_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Encode the upload type into a stored filename

    Args:
        file_type: One of the two recognised upload types
        original_name: The name the user uploaded the document under
        timestamp_ms: Unix time in milliseconds, defaults to now

    Returns:
        A filename of the form <unixMillis>-<type>-rooster-<originalName>
    """
    if file_type not in (FileType.WORK_EXPERIENCE, FileType.JOB_DESCRIPTION):
        raise ValidationError("Invalid file type")
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}-{file_type.value}-{FILENAME_MARKER}-{original_name}"


def parse_filename(filename: str) -> Tuple[str, str]:
    """
    Decode the upload type and display name from a stored filename

    Returns:
        (file_type, display_name); file_type is "unknown" when no recognised prefix follows the timestamp
    """
    match = _TIMESTAMP_PREFIX.match(filename)
    if not match:
        return FileType.UNKNOWN.value, filename

    remainder = filename[match.end():]
    for file_type in (FileType.WORK_EXPERIENCE, FileType.JOB_DESCRIPTION):
        prefix = f"{file_type.value}-{FILENAME_MARKER}-"
        if remainder.startswith(prefix):
            return file_type.value, remainder[len(prefix):]

    return FileType.UNKNOWN.value, filename


def text_upload_name(file_type: FileType) -> str:
    """Original name given to pasted text submissions"""
    return f"{file_type.value}.txt"


class FileManager:
    """Keeps uploaded documents and the resume draft in the assistant's vector store"""

    def __init__(self, client: AsyncOpenAI, assistants: AssistantService):
        self.client = client
        self.assistants = assistants

    async def list_files(self, file_type: Optional[str] = None) -> List[UploadedFile]:
        """
        List files uploaded for the assistant, decoding their type from the filename

        Args:
            file_type: Only return files of this type when given

        Returns:
            A list of uploaded file descriptions
        """
        try:
            files = []
            async for file in self.client.files.list(purpose="assistants"):
                decoded_type, display_name = parse_filename(file.filename)
                files.append(UploadedFile(
                    fileId=file.id,
                    filename=file.filename,
                    fileType=decoded_type,
                    displayName=display_name,
                    createdAt=file.created_at,
                ))
        except APIError as e:
            logger.error("Error retrieving files: %s", e)
            raise UpstreamError("Failed to retrieve files")

        if file_type:
            files = [f for f in files if f.fileType == file_type]
            logger.info("Filtered to %d files of type %s", len(files), file_type)
        return files

    async def upload(
            self,
            content: bytes,
            original_name: str,
            file_type: Optional[str],
            content_type: str = "text/plain",
    ) -> UploadResult:
        """
        Upload a document and attach it to the vector store

        Args:
            content: Raw document bytes
            original_name: The user's filename for the document
            file_type: work-experience or job-description
            content_type: MIME type of the document

        Returns:
            The stored file's id and names

        Raises:
            ValidationError: If the file type is not recognised
            UpstreamError: If the hosted service rejects the upload
        """
        parsed_type = FileType.parse(file_type)
        if parsed_type is None:
            raise ValidationError("Invalid file type")

        timestamp = int(time.time() * 1000)
        filename = build_filename(parsed_type, original_name, timestamp)
        vector_store_id = await self.assistants.get_or_create_vector_store()

        try:
            file = await self.client.files.create(
                file=(filename, content, content_type),
                purpose="assistants",
            )
            await self.client.vector_stores.files.create_and_poll(
                file_id=file.id,
                vector_store_id=vector_store_id,
            )
        except APIError as e:
            logger.error("Error uploading file %s: %s", filename, e)
            raise UpstreamError(f"Error uploading file: {e}")

        logger.info("Uploaded %s as %s", filename, file.id)
        return UploadResult(
            fileId=file.id,
            filename=filename,
            originalFilename=original_name,
            fileType=parsed_type.value,
            createdAt=timestamp,
        )

    async def delete(self, file_id: str) -> None:
        """Remove a file from the vector store, then delete the file itself"""
        if not file_id:
            raise ValidationError("No file ID provided")

        logger.info("Deleting file: %s", file_id)
        vector_store_id = await self.assistants.get_or_create_vector_store()
        try:
            await self.client.vector_stores.files.delete(file_id, vector_store_id=vector_store_id)
            logger.info("File deleted from vector store: %s", file_id)
            await self.client.files.delete(file_id)
            logger.info("File deleted from storage: %s", file_id)
        except APIError as e:
            logger.error("Error deleting file %s: %s", file_id, e)
            raise UpstreamError("Failed to delete file")

    async def delete_all_vector_store_files(self) -> int:
        vector_store_id = await self.assistants.get_or_create_vector_store()
        deleted = 0
        async for file in self.client.vector_stores.files.list(vector_store_id):
            await self.client.vector_stores.files.delete(file.id, vector_store_id=vector_store_id)
            deleted += 1
        return deleted

    async def delete_all_files(self) -> int:
        files = await self.list_files()
        for file in files:
            await self.client.files.delete(file.fileId)
        return len(files)

    async def delete_all(self) -> CleanupResult:
        """
        Delete every vector store file and every uploaded file

        Each phase is best-effort: a failure is logged and counted as zero deletions.
        """
        result = CleanupResult()
        try:
            result.deletedVectorStoreFiles = await self.delete_all_vector_store_files()
        except Exception as e:
            logger.error("Error during vector store file cleanup: %s", e)
        try:
            result.deletedFiles = await self.delete_all_files()
        except Exception as e:
            logger.error("Error during file cleanup: %s", e)

        logger.info(
            "Cleanup complete: %d vector store files, %d files",
            result.deletedVectorStoreFiles, result.deletedFiles
        )
        return result

    async def replace_resume_draft(self, content: str) -> str:
        """
        Overwrite the indexed resume draft so file search sees the latest version

        Returns:
            The id of the newly uploaded draft
        """
        if not content:
            raise ValidationError("No resume content provided")

        vector_store_id = await self.assistants.get_or_create_vector_store()
        try:
            # Drop any previous draft from the store and from storage
            async for file in self.client.files.list(purpose="assistants"):
                if file.filename == RESUME_DRAFT_FILENAME:
                    try:
                        await self.client.vector_stores.files.delete(file.id, vector_store_id=vector_store_id)
                    except NotFoundError:
                        logger.warning("Previous draft %s was not in the vector store", file.id)
                    await self.client.files.delete(file.id)

            draft = await self.client.files.create(
                file=(RESUME_DRAFT_FILENAME, content.encode("utf-8"), "text/plain"),
                purpose="assistants",
            )
            await self.client.vector_stores.files.create_and_poll(
                file_id=draft.id,
                vector_store_id=vector_store_id,
            )
        except APIError as e:
            logger.error("Error updating resume in vector store: %s", e)
            raise UpstreamError("Failed to update resume draft")

        logger.info("Resume draft indexed as %s", draft.id)
        return draft.id

    async def download(self, file_id: str) -> Tuple[str, bytes]:
        """Fetch a file's name and content for download"""
        try:
            file = await self.client.files.retrieve(file_id)
            content = await self.client.files.content(file_id)
        except APIError as e:
            logger.error("Error downloading file %s: %s", file_id, e)
            raise UpstreamError("Failed to download file")
        return file.filename, content.content
