import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from dependencies import Files
from models.files import FileType, TextUpload
from services.file_manager import text_upload_name
from utils.errors import ValidationError, error_response

logger = logging.getLogger(__name__)

router = APIRouter()
download_router = APIRouter()


@router.get("")
async def list_files(files: Files, fileType: Optional[str] = None):
    """List uploaded documents, optionally only those of one type"""
    logger.info("Getting files%s", f" for type: {fileType}" if fileType else "")
    try:
        return await files.list_files(fileType)
    except Exception as e:
        logger.error("Error retrieving files: %s", e)
        return error_response(e, "Failed to retrieve files")


@router.post("")
async def upload_file(request: Request, files: Files):
    """
    Upload a document for the assistant

    Accepts either multipart form data with `file` and `fileType`, or a JSON body
    with pasted `text` and `fileType`.
    """
    try:
        content_type = request.headers.get("content-type", "")

        # Pasted text submissions
        if "application/json" in content_type:
            try:
                body = TextUpload.model_validate(await request.json())
            except ValueError:
                raise ValidationError("Invalid request body")

            if not body.text:
                raise ValidationError("No text provided")
            file_type = FileType.parse(body.fileType)
            if file_type is None:
                raise ValidationError("Invalid file type")

            return await files.upload(
                content=body.text.encode("utf-8"),
                original_name=text_upload_name(file_type),
                file_type=file_type.value,
                content_type="text/plain",
            )

        # File uploads
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise ValidationError("No file provided")
        file_type = form.get("fileType")
        if FileType.parse(file_type) is None:
            raise ValidationError("Invalid file type")

        content = await upload.read()
        return await files.upload(
            content=content,
            original_name=upload.filename or "upload",
            file_type=file_type,
            content_type=upload.content_type or "application/octet-stream",
        )
    except Exception as e:
        logger.error("Error uploading file: %s", e)
        return error_response(e, "Error uploading file")


@router.delete("")
async def delete_all_files(files: Files):
    """Delete every vector store file and every uploaded file"""
    try:
        return await files.delete_all()
    except Exception as e:
        logger.error("Error cleaning up files: %s", e)
        return error_response(e, "Failed to delete files")


@router.delete("/{file_id}")
async def delete_file(file_id: str, files: Files):
    try:
        await files.delete(file_id)
        return {"success": True}
    except Exception as e:
        logger.error("Error deleting file: %s", e)
        return error_response(e, "Failed to delete file")


@download_router.get("/{file_id}")
async def download_file(file_id: str, files: Files):
    """Download a file referenced by an annotation link"""
    try:
        filename, content = await files.download(file_id)
    except Exception as e:
        logger.error("Error downloading file: %s", e)
        return error_response(e, "Failed to download file")

    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
