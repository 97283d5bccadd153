# guestpost/models/order.py
from datetime import datetime
from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from guestpost.utils.datetime_utils import utcnow

OrderStatus = Literal["pending", "processing", "completed", "failed"]
ORDER_STATUSES = ("pending", "processing", "completed", "failed")


class OrderFile(BaseModel):
    name: str
    type: str
    size: int
    data: Optional[str] = None


class Order(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    userId: ObjectId
    user_id: str
    userName: str
    userEmail: str
    item_name: str
    price: float = Field(..., gt=0)
    type: str
    status: OrderStatus = "pending"
    date: datetime = Field(default_factory=utcnow)

    description: Optional[str] = None
    features: Optional[List[str]] = None
    article: Optional[str] = None
    file: Optional[OrderFile] = None
    message: Optional[str] = None
    message_time: Optional[datetime] = None
    submittedAt: Optional[datetime] = None

    completedAt: Optional[datetime] = None
    completionMessage: Optional[str] = None
    completionLink: Optional[str] = None

    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)
