from typing import Annotated

from fastapi import Request, Depends

from services.assistant import AssistantService
from services.file_manager import FileManager
from services.thread_manager import ThreadManager


async def get_assistant_service(request: Request) -> AssistantService:
    """Get assistant service from app state"""
    return request.app.state.assistant_service


async def get_file_manager(request: Request) -> FileManager:
    """Get file manager from app state"""
    return request.app.state.file_manager


async def get_thread_manager(request: Request) -> ThreadManager:
    """Get thread manager from app state"""
    return request.app.state.thread_manager


# Type annotations for dependency injection
Assistants = Annotated[AssistantService, Depends(get_assistant_service)]
Files = Annotated[FileManager, Depends(get_file_manager)]
Threads = Annotated[ThreadManager, Depends(get_thread_manager)]
