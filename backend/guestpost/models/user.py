# guestpost/models/user.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from guestpost.utils.datetime_utils import utcnow


class User(BaseModel):
    user_nicename: str
    user_email: EmailStr
    user_pass: str

    # Auth / account
    role: Literal["user", "admin"] = "user"
    user_status: Literal["active", "inactive"] = "active"
    isEmailVerified: bool = False
    emailVerificationToken: Optional[str] = None
    emailVerificationExpires: Optional[datetime] = None
    passwordResetToken: Optional[str] = None
    passwordResetExpires: Optional[datetime] = None
    googleId: Optional[str] = None
    avatar: Optional[str] = None

    # Funds, mutated by payment / fund-request flows
    balance: float = 0

    registration_date: datetime = Field(default_factory=utcnow)
    lastLogin: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)


# Never leave the service layer
PRIVATE_USER_FIELDS = (
    "user_pass",
    "emailVerificationToken",
    "emailVerificationExpires",
    "passwordResetToken",
    "passwordResetExpires",
    "googleId",
)
