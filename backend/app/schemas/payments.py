from typing import Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class StripeIntentSchema(BaseModel):
    amount: float = Field(..., ge=0.01)
    currency: Optional[str] = "usd"
    orderId: Optional[str] = None
    userEmail: Optional[EmailStr] = None
    metadata: Optional[Dict[str, str]] = None


class PayPalCreateSchema(BaseModel):
    amount: float = Field(..., ge=0.01)
    currency: Optional[str] = "USD"
    orderId: Optional[str] = None
    description: Optional[str] = None
    userEmail: Optional[EmailStr] = None


class PayPalExecuteSchema(BaseModel):
    paymentId: str = Field(..., min_length=1)
    payerId: str = Field(..., min_length=1)
