from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class MessageEntrySchema(BaseModel):
    message: str = Field(..., min_length=1)
    sender: Literal["user", "admin"] = "user"
    senderName: Optional[str] = None


class MessageCreateSchema(BaseModel):
    commentId: Optional[str] = None
    userId: Optional[str] = None
    userEmail: Optional[EmailStr] = None
    userName: Optional[str] = None
    type: str = "support"
    content: List[MessageEntrySchema] = []


class MessageUpdateSchema(BaseModel):
    approved: Optional[int] = None
    type: Optional[str] = None
    userName: Optional[str] = None
