# app/middleware/upload.py
from fastapi import UploadFile

from guestpost.core.errors import BadRequestError

ALLOWED_MIME_TYPES = (
    "text/csv",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
)


async def read_upload(file: UploadFile, max_size: int) -> bytes:
    """Return the upload body after checking its type and size."""
    if file.content_type not in ALLOWED_MIME_TYPES:
        raise BadRequestError("Invalid file type. Allowed types: CSV, PDF, DOC, DOCX, TXT, Images")

    content = await file.read(max_size + 1)
    if len(content) > max_size:
        raise BadRequestError(f"File too large. Maximum size is {max_size // (1024 * 1024)}MB")
    return content
