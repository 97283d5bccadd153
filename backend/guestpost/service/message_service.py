# guestpost/service/message_service.py
import logging
from datetime import datetime, time
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from guestpost.core.errors import ConflictError, NotFoundError
from guestpost.db.database import MESSAGES
from guestpost.models.message import MessageContent, MessageThread
from guestpost.serialize import serialize_doc, serialize_list
from guestpost.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, db):
        self.messages = db[MESSAGES]

    async def get_all_messages(self) -> list:
        return serialize_list(await self.messages.find().sort("date", -1).to_list(length=None))

    async def get_message_by_id(self, comment_id: str) -> dict:
        message = await self.messages.find_one({"commentId": comment_id})
        if not message:
            raise NotFoundError("Message not found")
        return serialize_doc(message)

    async def create_message(self, data: dict) -> dict:
        data = {k: v for k, v in data.items() if v is not None}
        data["userEmail"] = data["userEmail"].lower()
        thread = MessageThread(**data)
        doc = thread.model_dump(exclude_none=True)
        try:
            result = await self.messages.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Message thread already exists")
        doc["_id"] = result.inserted_id
        logger.info("Message thread %s created for %s", doc["commentId"], doc["userEmail"])
        return serialize_doc(doc)

    async def update_message(self, comment_id: str, data: dict) -> dict:
        update = {k: v for k, v in data.items() if k not in ("_id", "id", "commentId", "content")}
        if not update:
            return await self.get_message_by_id(comment_id)
        message = await self.messages.find_one_and_update(
            {"commentId": comment_id}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        if not message:
            raise NotFoundError("Message not found")
        return serialize_doc(message)

    async def add_message_to_thread(self, comment_id: str, entry: dict) -> dict:
        message = await self.messages.find_one({"commentId": comment_id})
        if not message:
            raise NotFoundError("Message not found")

        content = MessageContent(**{k: v for k, v in entry.items() if v is not None}).model_dump(exclude_none=True)
        message.setdefault("content", []).append(content)
        # date is what the stream uses to spot new activity
        message["date"] = utcnow()
        message["approved"] = 1

        await self.messages.replace_one({"_id": message["_id"]}, message)
        logger.info("Added reply to thread %s, new content length: %d", comment_id, len(message["content"]))
        return serialize_doc(message)

    async def delete_message(self, comment_id: str):
        message = await self.messages.find_one_and_delete({"commentId": comment_id})
        if not message:
            raise NotFoundError("Message not found")
        logger.info("Message thread %s deleted", comment_id)

    async def get_messages_by_user_email(self, user_email: Optional[str]) -> list:
        if not user_email:
            return []
        try:
            messages = await self.messages.find({"userEmail": user_email.lower()}).sort("date", -1).to_list(length=None)
        except Exception:
            logger.exception("Error fetching messages by user email")
            return []
        return serialize_list(messages)

    async def get_message_stats(self) -> dict:
        today = datetime.combine(utcnow().date(), time.min)
        total = await self.messages.count_documents({})
        unread = await self.messages.count_documents({"approved": 0})
        today_count = await self.messages.count_documents({"date": {"$gte": today}})
        return {"total": total, "unread": unread, "todayCount": today_count}
