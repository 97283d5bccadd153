from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class RegisterSchema(BaseModel):
    user_nicename: str = Field(..., min_length=2, max_length=50)
    user_email: EmailStr
    user_pass: str = Field(..., min_length=8)


class LoginSchema(BaseModel):
    user_email: EmailStr
    user_pass: str = Field(..., min_length=1)


class RefreshTokenSchema(BaseModel):
    refreshToken: str


class ForgotPasswordSchema(BaseModel):
    user_email: EmailStr


class ResetPasswordSchema(BaseModel):
    token: str
    user_pass: str


class ChangePasswordSchema(BaseModel):
    currentPassword: str
    newPassword: str


class VerifyEmailSchema(BaseModel):
    token: str


class GoogleAuthSchema(BaseModel):
    idToken: Optional[str] = None
