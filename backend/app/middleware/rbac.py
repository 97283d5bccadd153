# app/middleware/rbac.py
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.dependencies import Services, get_services
from guestpost.core.errors import ErrorResponses, UnauthorizedError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def authenticate_token(token: Optional[str], services: Services) -> dict:
    if not token:
        raise UnauthorizedError("Not authorized, no token provided")
    payload = services.tokens.decode_token(token)
    if not payload.get("userId"):
        raise ErrorResponses.invalid_token()
    return await services.auth.get_active_user(payload["userId"])


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme),
                           services: Services = Depends(get_services)) -> dict:
    return await authenticate_token(token, services)


def is_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        raise ErrorResponses.admin_only()
    return user


def is_owner_or_admin(user: dict, owner_email: Optional[str]) -> bool:
    return user.get("role") == "admin" or (owner_email or "").lower() == user.get("user_email", "").lower()
