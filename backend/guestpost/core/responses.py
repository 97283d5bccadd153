# guestpost/core/responses.py
import math
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _envelope(success: bool, message: str, data: Any = None, **extra) -> dict:
    body = {
        "success": success,
        "message": message,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    body.update(extra)
    return body


class ApiResponse:
    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = status.HTTP_200_OK) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=jsonable_encoder(_envelope(True, message, data)))

    @staticmethod
    def created(data: Any = None, message: str = "Created successfully") -> JSONResponse:
        return ApiResponse.success(data, message, status.HTTP_201_CREATED)

    @staticmethod
    def paginated(data: Any, page: int, limit: int, total: int, message: str = "Success") -> JSONResponse:
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        }
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=jsonable_encoder(_envelope(True, message, data, pagination=pagination)),
        )

    @staticmethod
    def error(message: str, status_code: int, data: Optional[Any] = None) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=jsonable_encoder(_envelope(False, message, data)))
