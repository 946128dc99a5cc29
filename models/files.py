from enum import Enum
from typing import Optional

from pydantic import BaseModel


class FileType(Enum):
    WORK_EXPERIENCE = "work-experience"
    JOB_DESCRIPTION = "job-description"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["FileType"]:
        """Return the recognised upload type for value, or None"""
        if value in (cls.WORK_EXPERIENCE.value, cls.JOB_DESCRIPTION.value):
            return cls(value)
        return None


class UploadedFile(BaseModel):
    fileId: str
    filename: str
    fileType: str
    displayName: str
    createdAt: int


class TextUpload(BaseModel):
    text: Optional[str] = None
    fileType: Optional[str] = None


class UploadResult(BaseModel):
    success: bool = True
    fileId: str
    filename: str
    originalFilename: str
    fileType: str
    createdAt: int
    message: str = "File uploaded successfully and attached to the vector store."


class CleanupResult(BaseModel):
    success: bool = True
    deletedVectorStoreFiles: int = 0
    deletedFiles: int = 0


class ResumeDraft(BaseModel):
    content: str
