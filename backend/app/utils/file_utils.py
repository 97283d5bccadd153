import logging
import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".csv": "text/csv",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


def content_type_for(path: str) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


class LocalFileStorage:
    """Uploads kept on local disk; callers only ever see paths relative to the root."""

    def __init__(self, root: str):
        self.root = Path(root)

    def full_path(self, relative_path: str) -> Path:
        return self.root / relative_path

    async def save(self, content: bytes, original_name: str, subdirectory: str = "site-submissions") -> dict:
        directory = self.root / subdirectory
        await aiofiles.os.makedirs(directory, exist_ok=True)

        file_name = f"{uuid.uuid4()}{Path(original_name or '').suffix}"
        async with aiofiles.open(directory / file_name, "wb") as f:
            await f.write(content)

        relative = f"{subdirectory}/{file_name}"
        logger.info("File saved: %s", relative)
        return {"filePath": relative, "fileName": original_name}

    async def delete(self, relative_path: str) -> bool:
        try:
            await aiofiles.os.remove(self.full_path(relative_path))
        except FileNotFoundError:
            logger.warning("File not found, treating as deleted: %s", relative_path)
            return True
        except OSError as e:
            logger.error("Failed to delete file %s: %s", relative_path, e)
            return False
        logger.info("File deleted: %s", relative_path)
        return True

    async def exists(self, relative_path: str) -> bool:
        return await aiofiles.os.path.exists(self.full_path(relative_path))

    async def is_file(self, relative_path: str) -> bool:
        return await aiofiles.os.path.isfile(self.full_path(relative_path))


def is_safe_relative_path(path: str) -> bool:
    return ".." not in path and not os.path.isabs(path) and not path.startswith(("/", "\\"))
