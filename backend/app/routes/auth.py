from fastapi import APIRouter, Depends, Security

from app.dependencies import Services, get_services
from app.middleware.rbac import get_current_user
from app.schemas.auth import (
    ChangePasswordSchema,
    ForgotPasswordSchema,
    GoogleAuthSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
    VerifyEmailSchema,
)
from guestpost.core.responses import ApiResponse

auth_router = APIRouter(tags=["Auth"])


# ------------------------
# Register / login
# ------------------------
@auth_router.post("/register")
async def register(data: RegisterSchema, services: Services = Depends(get_services)):
    result = await services.auth.register(data.model_dump())
    return ApiResponse.created(result, "User registered successfully")


@auth_router.post("/login")
async def login(data: LoginSchema, services: Services = Depends(get_services)):
    result = await services.auth.login(data.model_dump())
    return ApiResponse.success(result, "Login successful")


@auth_router.post("/google")
async def google_auth(data: GoogleAuthSchema, services: Services = Depends(get_services)):
    result = await services.auth.google_auth(data.idToken)
    return ApiResponse.success(result, "Google authentication successful")


@auth_router.post("/refresh")
async def refresh_token(data: RefreshTokenSchema, services: Services = Depends(get_services)):
    result = await services.auth.refresh_token(data.refreshToken)
    return ApiResponse.success(result, "Token refreshed successfully")


# ------------------------
# Forgot / reset / change password
# ------------------------
@auth_router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordSchema, services: Services = Depends(get_services)):
    result = await services.auth.forgot_password(data.user_email)
    return ApiResponse.success(None, result["message"])


@auth_router.post("/reset-password")
async def reset_password(data: ResetPasswordSchema, services: Services = Depends(get_services)):
    result = await services.auth.reset_password(data.token, data.user_pass)
    return ApiResponse.success(None, result["message"])


@auth_router.put("/change-password")
async def change_password(data: ChangePasswordSchema,
                          current_user: dict = Security(get_current_user),
                          services: Services = Depends(get_services)):
    result = await services.auth.change_password(str(current_user["_id"]), data.currentPassword, data.newPassword)
    return ApiResponse.success(None, result["message"])


@auth_router.post("/verify-email")
async def verify_email(data: VerifyEmailSchema, services: Services = Depends(get_services)):
    result = await services.auth.verify_email(data.token)
    return ApiResponse.success(None, result["message"])


# ------------------------
# Current user
# ------------------------
@auth_router.get("/me")
async def get_current_user_info(current_user: dict = Security(get_current_user),
                                services: Services = Depends(get_services)):
    user = await services.auth.get_me(str(current_user["_id"]))
    return ApiResponse.success(user, "User retrieved successfully")
