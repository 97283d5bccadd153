from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ServiceCreateSchema(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    icon: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    order: Optional[int] = None


class ServiceUpdateSchema(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    icon: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    order: Optional[int] = None


class ServicePackageCreateSchema(BaseModel):
    serviceId: str
    name: str
    price: float = Field(..., ge=0)
    originalPrice: float = Field(..., ge=0)
    articles: str
    features: List[str]
    popular: Optional[bool] = None
    description: str
    status: Optional[Literal["active", "inactive"]] = None
    order: Optional[int] = None


class ServicePackageUpdateSchema(BaseModel):
    serviceId: Optional[str] = None
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    originalPrice: Optional[float] = Field(None, ge=0)
    articles: Optional[str] = None
    features: Optional[List[str]] = None
    popular: Optional[bool] = None
    description: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    order: Optional[int] = None
