# guestpost/models/message.py
from datetime import datetime, timezone
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from guestpost.utils.datetime_utils import utcnow


class MessageContent(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    message: str
    sender: Literal["user", "admin"] = "user"
    senderName: Optional[str] = None
    date: datetime = Field(default_factory=utcnow)


def new_comment_id() -> str:
    return str(int(datetime.now(timezone.utc).timestamp() * 1000))


class MessageThread(BaseModel):
    commentId: str = Field(default_factory=new_comment_id)
    userId: Optional[str] = None
    userEmail: str
    userName: Optional[str] = None
    type: str = "support"
    approved: int = 0
    content: List[MessageContent] = []
    date: datetime = Field(default_factory=utcnow)
