# guestpost/utils/auth_utils.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from starlette.concurrency import run_in_threadpool

from guestpost.core.errors import ErrorResponses, InternalServerError, UnauthorizedError

logger = logging.getLogger(__name__)


class TokenManager:
    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 access_expires: timedelta = timedelta(hours=1),
                 refresh_expires: timedelta = timedelta(days=7)):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires

    def _encode(self, data: dict, expires_delta: timedelta, token_type: str) -> str:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + expires_delta
        to_encode.update({"exp": expire, "type": token_type})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        return self._encode(data, expires_delta or self.access_expires, "access")

    def create_refresh_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        return self._encode(data, expires_delta or self.refresh_expires, "refresh")

    def generate_tokens(self, user_id: str, email: str, role: str) -> dict:
        payload = {"userId": user_id, "email": email, "role": role}
        return {
            "accessToken": self.create_access_token(payload),
            "refreshToken": self.create_refresh_token(payload),
        }

    def decode_token(self, token: str, expected_type: str = "access") -> dict:
        try:
            decoded = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired %s token", expected_type)
            raise ErrorResponses.token_expired()
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid %s token: %s", expected_type, e)
            raise ErrorResponses.invalid_token()

        if decoded.get("type") != expected_type:
            raise UnauthorizedError(f"Invalid token type: expected {expected_type}")
        return decoded


class GoogleTokenVerifier:
    """Checks Google Sign-In ID tokens against our OAuth client id."""

    def __init__(self, client_id: Optional[str]):
        self.client_id = client_id
        self._request = google_requests.Request()

    @property
    def configured(self) -> bool:
        return bool(self.client_id)

    async def verify(self, token: Optional[str]) -> dict:
        if not token:
            raise UnauthorizedError("Google ID token is required")
        if not self.configured:
            raise InternalServerError("Google sign-in is not configured")

        try:
            # fetches Google's signing certs over HTTP
            claims = await run_in_threadpool(id_token.verify_oauth2_token, token, self._request, self.client_id)
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            logger.info("Rejected Google ID token: %s", e)
            raise UnauthorizedError("Invalid Google token")

        if not claims.get("email") or not claims.get("email_verified"):
            raise UnauthorizedError("Google account email is not verified")
        return claims
