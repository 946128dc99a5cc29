import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from dependencies import Assistants, Files
from models.files import ResumeDraft
from utils.errors import error_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_assistant(assistants: Assistants):
    """Return the assistant id, creating the assistant on first use"""
    try:
        assistant_id = await assistants.ensure_assistant()
        return {"assistantId": assistant_id}
    except Exception as e:
        logger.error("Error retrieving assistant: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve or create assistant"}
        )


@router.put("/resume")
async def update_resume_draft(draft: ResumeDraft, files: Files):
    """Replace the indexed resume draft so the assistant's file search sees the latest version"""
    try:
        file_id = await files.replace_resume_draft(draft.content)
        return {"success": True, "fileId": file_id}
    except Exception as e:
        logger.error("Error updating resume in vector store: %s", e)
        return error_response(e, "Failed to update resume draft")
