from typing import List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from guestpost.db.database import is_object_id
from guestpost.models.order import OrderFile


class OrderCreateSchema(BaseModel):
    userId: Optional[str] = None
    user_id: Optional[str] = None
    userName: Optional[str] = None
    userEmail: Optional[EmailStr] = None

    item_name: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    price: Optional[Union[float, str]] = None
    amount: Optional[Union[float, str]] = None
    type: str = "service"

    description: Optional[str] = None
    features: Optional[List[str]] = None
    article: Optional[str] = None
    file: Optional[OrderFile] = None
    message: Optional[str] = None
    submittedAt: Optional[str] = None

    @field_validator("userId")
    @classmethod
    def check_user_id(cls, value):
        if value and not is_object_id(value):
            raise ValueError("Invalid user ID format")
        return value


class OrderUpdateSchema(BaseModel):
    status: Optional[Literal["pending", "processing", "completed", "failed"]] = None
    item_name: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    type: Optional[str] = None
    description: Optional[str] = None
    features: Optional[List[str]] = None
    article: Optional[str] = None
    message: Optional[str] = None
    completionMessage: Optional[str] = None
    completionLink: Optional[str] = None


class OrderCompleteSchema(BaseModel):
    completionMessage: Optional[str] = None
    completionLink: Optional[str] = None
