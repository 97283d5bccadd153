import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response, StreamingResponse

from app.dependencies import Services, get_services
from app.middleware.rbac import authenticate_token, get_current_user, is_admin, is_owner_or_admin, oauth2_scheme
from app.schemas.messages import MessageCreateSchema, MessageEntrySchema, MessageUpdateSchema
from guestpost.core.errors import AppError, ForbiddenError
from guestpost.core.responses import ApiResponse
from guestpost.service.message_stream import MessagePoller, format_sse

logger = logging.getLogger(__name__)

message_router = APIRouter(tags=["Messages"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def sse_events(poller: MessagePoller, is_disconnected: Callable[[], Awaitable[bool]], wait: float):
    """Drain the poller's queue as SSE frames until the client goes away.

    ``wait`` bounds how long a disconnect can go unnoticed. The poller is
    always stopped on the way out.
    """
    poller.start()
    try:
        while True:
            if await is_disconnected():
                break
            try:
                event = await asyncio.wait_for(poller.queue.get(), timeout=wait)
            except asyncio.TimeoutError:
                continue
            yield format_sse(event)
    finally:
        await poller.stop()


@message_router.get("/me")
async def get_my_messages(current_user: dict = Depends(get_current_user),
                          services: Services = Depends(get_services)):
    messages = await services.messages.get_messages_by_user_email(current_user["user_email"])
    return ApiResponse.success(messages, "User messages retrieved successfully")


@message_router.get("/stream")
async def message_stream(request: Request,
                         lastId: Optional[str] = None,
                         token: Optional[str] = Query(None),
                         header_token: Optional[str] = Depends(oauth2_scheme),
                         services: Services = Depends(get_services)):
    try:
        user = await authenticate_token(header_token or token, services)
    except AppError as e:
        logger.info("Message stream rejected: %s", e.message)
        return Response(format_sse({"type": "error", "message": "Unauthorized"}),
                        status_code=401, media_type="text/event-stream")

    settings = services.settings
    poller = MessagePoller(
        services.messages,
        user["user_email"],
        last_id=lastId,
        poll_interval=settings.MESSAGE_POLL_INTERVAL,
        lookback_seconds=settings.MESSAGE_LOOKBACK_SECONDS,
    )
    return StreamingResponse(
        sse_events(poller, request.is_disconnected, settings.MESSAGE_POLL_INTERVAL),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@message_router.post("")
async def create_message(data: MessageCreateSchema,
                         current_user: dict = Depends(get_current_user),
                         services: Services = Depends(get_services)):
    message_data = data.model_dump(exclude_none=True)
    if current_user.get("role") != "admin" or not message_data.get("userEmail"):
        message_data["userEmail"] = current_user["user_email"]
        message_data["userId"] = str(current_user["_id"])
        message_data.setdefault("userName", current_user.get("user_nicename"))

    message = await services.messages.create_message(message_data)
    return ApiResponse.created(message, "Message created successfully")


@message_router.put("/{id}")
async def update_message(id: str, data: MessageUpdateSchema,
                         current_user: dict = Depends(get_current_user),
                         services: Services = Depends(get_services)):
    thread = await services.messages.get_message_by_id(id)
    if not is_owner_or_admin(current_user, thread.get("userEmail")):
        raise ForbiddenError("Not authorized to update this message")

    message = await services.messages.update_message(id, data.model_dump(exclude_none=True))
    return ApiResponse.success(message, "Message updated successfully")


@message_router.post("/{id}/reply")
async def add_reply_to_message(id: str, data: MessageEntrySchema,
                               current_user: dict = Depends(get_current_user),
                               services: Services = Depends(get_services)):
    thread = await services.messages.get_message_by_id(id)
    if not is_owner_or_admin(current_user, thread.get("userEmail")):
        raise ForbiddenError("Not authorized to reply to this message")

    entry = data.model_dump(exclude_none=True)
    entry["sender"] = "admin" if current_user.get("role") == "admin" else "user"
    entry.setdefault("senderName", current_user.get("user_nicename"))

    message = await services.messages.add_message_to_thread(id, entry)
    return ApiResponse.success(message, "Reply added successfully")


# ------------------------
# Admin only
# ------------------------
@message_router.get("")
async def get_messages(admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    messages = await services.messages.get_all_messages()
    return ApiResponse.success(messages, "Messages retrieved successfully")


@message_router.get("/stats")
async def get_message_stats(admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    stats = await services.messages.get_message_stats()
    return ApiResponse.success(stats, "Message statistics retrieved successfully")


@message_router.get("/{id}")
async def get_message_by_id(id: str, admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    message = await services.messages.get_message_by_id(id)
    return ApiResponse.success(message, "Message retrieved successfully")


@message_router.delete("/{id}")
async def delete_message(id: str, admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    await services.messages.delete_message(id)
    return ApiResponse.success(None, "Message deleted successfully")
