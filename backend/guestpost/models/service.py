# guestpost/models/service.py
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field

from guestpost.utils.datetime_utils import utcnow


class Service(BaseModel):
    title: str
    description: str
    icon: str = "CheckCircle"
    status: Literal["active", "inactive"] = "active"
    order: int = 0
    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)


class ServicePackage(BaseModel):
    serviceId: str  # e.g. "article-writing", "link-insertions"
    name: str
    price: float
    originalPrice: float
    articles: str  # e.g. "3 Articles"
    features: List[str]
    popular: bool = False
    description: str
    status: Literal["active", "inactive"] = "active"
    order: int = 0
    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)
