# app/routes/files.py
import os

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.dependencies import Services, get_services
from app.middleware.rbac import get_current_user
from app.utils.file_utils import content_type_for, is_safe_relative_path
from guestpost.core.errors import BadRequestError, NotFoundError

file_router = APIRouter(tags=["Files"])


@file_router.get("/{file_path:path}")
async def serve_file(file_path: str, current_user: dict = Depends(get_current_user),
                     services: Services = Depends(get_services)):
    """
    Serve an uploaded file by its path relative to the upload root.
    """
    if not is_safe_relative_path(file_path):
        raise BadRequestError("Invalid file path")

    storage = services.file_storage
    if not await storage.exists(file_path):
        raise NotFoundError("File not found")
    if not await storage.is_file(file_path):
        raise BadRequestError("Path is not a file")

    full_path = storage.full_path(file_path)
    return FileResponse(
        path=full_path,
        filename=os.path.basename(full_path),
        media_type=content_type_for(file_path),
        content_disposition_type="inline",
    )
