# guestpost/service/auth_service.py
import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Optional

from pymongo.errors import DuplicateKeyError

from guestpost.core.errors import BadRequestError, ErrorResponses, UnauthorizedError
from guestpost.db.database import USERS, is_object_id, to_object_id
from guestpost.models.user import PRIVATE_USER_FIELDS, User
from guestpost.utils.datetime_utils import utcnow
from guestpost.utils.hash_utils import hash_password, validate_password_strength, verify_and_upgrade_password

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_TTL = timedelta(hours=24)
PASSWORD_RESET_TTL = timedelta(hours=1)
FORGOT_PASSWORD_MESSAGE = "If email exists, reset link has been sent"


def _digest(token: str) -> str:
    # Only the digest is stored; the raw token travels by email.
    return hashlib.sha256(token.encode()).hexdigest()


def _user_summary(user: dict, *extra: str) -> dict:
    summary = {
        "ID": str(user["_id"]),
        "user_nicename": user.get("user_nicename"),
        "user_email": user.get("user_email"),
        "balance": float(user.get("balance") or 0),
        "role": user.get("role", "user"),
    }
    for key in extra:
        summary[key] = user.get(key)
    return summary


def _check_strength(password: str):
    ok, errors = validate_password_strength(password)
    if not ok:
        raise BadRequestError(", ".join(errors))


class AuthService:
    def __init__(self, db, token_manager, notifications, google_verifier):
        self.users = db[USERS]
        self.tokens = token_manager
        self.notifications = notifications
        self.google = google_verifier

    def _issue_tokens(self, user: dict) -> dict:
        return self.tokens.generate_tokens(str(user["_id"]), user["user_email"], user.get("role", "user"))

    async def _find_by_id(self, user_id: str) -> Optional[dict]:
        if not is_object_id(user_id):
            return None
        return await self.users.find_one({"_id": to_object_id(user_id)})

    # ------------------------
    # Register / login
    # ------------------------
    async def register(self, data: dict) -> dict:
        email = data["user_email"].strip().lower()
        if await self.users.find_one({"user_email": email}):
            raise ErrorResponses.user_exists()
        _check_strength(data["user_pass"])

        verification_token = secrets.token_hex(32)
        user = User(
            user_nicename=data["user_nicename"],
            user_email=email,
            user_pass=hash_password(data["user_pass"]),
            emailVerificationToken=_digest(verification_token),
            emailVerificationExpires=utcnow() + EMAIL_VERIFICATION_TTL,
        )
        doc = user.model_dump(exclude_none=True)
        try:
            result = await self.users.insert_one(doc)
        except DuplicateKeyError:
            raise ErrorResponses.user_exists()
        doc["_id"] = result.inserted_id
        logger.info("User registered: %s", email)

        try:
            await self.notifications.send_verification_email(email, doc["user_nicename"], verification_token)
        except Exception:
            logger.exception("Failed to send verification email to %s", email)

        return {"user": _user_summary(doc, "isEmailVerified"), "tokens": self._issue_tokens(doc)}

    async def login(self, data: dict) -> dict:
        email = (data.get("user_email") or "").strip().lower()
        password = data.get("user_pass") or ""
        if not email or not password:
            raise BadRequestError("Please provide email and password")

        user = await self.users.find_one({"user_email": email})
        if not user:
            raise ErrorResponses.invalid_credentials()

        valid = await verify_and_upgrade_password(user["_id"], password, user.get("user_pass"), self.users)
        if not valid:
            raise ErrorResponses.invalid_credentials()

        if user.get("user_status", "active") != "active":
            raise ErrorResponses.inactive_account()

        now = utcnow()
        await self.users.update_one({"_id": user["_id"]}, {"$set": {"lastLogin": now, "updatedAt": now}})
        logger.info("User logged in: %s", email)
        return {"user": _user_summary(user), "tokens": self._issue_tokens(user)}

    async def get_me(self, user_id: str) -> dict:
        user = await self._find_by_id(user_id)
        if not user:
            raise UnauthorizedError("User not found")
        return _user_summary(user, "user_status", "registration_date", "isEmailVerified", "avatar")

    async def google_auth(self, token: Optional[str]) -> dict:
        claims = await self.google.verify(token)
        email = claims["email"].strip().lower()
        google_id = claims["sub"]
        now = utcnow()
        user = await self.users.find_one({"user_email": email})

        if user:
            if user.get("user_status", "active") != "active":
                raise ErrorResponses.inactive_account()
            if user.get("googleId") and user["googleId"] != google_id:
                raise UnauthorizedError("Email is linked to a different Google account")
            update = {"lastLogin": now, "updatedAt": now, "isEmailVerified": True, "googleId": google_id}
            await self.users.update_one({"_id": user["_id"]}, {"$set": update})
            user.update(update)
        else:
            # OAuth accounts get an unguessable password; they sign in through Google
            doc = User(
                user_nicename=claims.get("name") or email.split("@")[0],
                user_email=email,
                user_pass=hash_password(secrets.token_urlsafe(32)),
                isEmailVerified=True,
                googleId=google_id,
                avatar=claims.get("picture"),
                lastLogin=now,
            ).model_dump(exclude_none=True)
            try:
                result = await self.users.insert_one(doc)
            except DuplicateKeyError:
                raise ErrorResponses.user_exists()
            doc["_id"] = result.inserted_id
            user = doc
            logger.info("User registered through Google: %s", email)

        return {"user": _user_summary(user, "isEmailVerified"), "tokens": self._issue_tokens(user)}

    async def refresh_token(self, refresh_token: str) -> dict:
        try:
            payload = self.tokens.decode_token(refresh_token, expected_type="refresh")
        except UnauthorizedError:
            raise UnauthorizedError("Invalid refresh token")

        user = await self._find_by_id(payload.get("userId"))
        if not user:
            raise UnauthorizedError("Invalid refresh token")
        return {"user": _user_summary(user), "tokens": self._issue_tokens(user)}

    # ------------------------
    # Password and email flows
    # ------------------------
    async def forgot_password(self, email: str) -> dict:
        email = email.strip().lower()
        user = await self.users.find_one({"user_email": email})
        if not user:
            return {"message": FORGOT_PASSWORD_MESSAGE}

        reset_token = secrets.token_hex(32)
        await self.users.update_one({"_id": user["_id"]}, {"$set": {
            "passwordResetToken": _digest(reset_token),
            "passwordResetExpires": utcnow() + PASSWORD_RESET_TTL,
        }})

        try:
            await self.notifications.send_password_reset_email(email, user.get("user_nicename", ""), reset_token)
        except Exception:
            logger.exception("Failed to send password reset email to %s", email)

        return {"message": FORGOT_PASSWORD_MESSAGE}

    async def reset_password(self, token: str, new_password: str) -> dict:
        _check_strength(new_password)
        user = await self.users.find_one({
            "passwordResetToken": _digest(token),
            "passwordResetExpires": {"$gt": utcnow()},
        })
        if not user:
            raise BadRequestError("Invalid or expired reset token")

        await self.users.update_one({"_id": user["_id"]}, {
            "$set": {"user_pass": hash_password(new_password), "updatedAt": utcnow()},
            "$unset": {"passwordResetToken": "", "passwordResetExpires": ""},
        })
        logger.info("Password reset for %s", user["user_email"])
        return {"message": "Password reset successful"}

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> dict:
        user = await self._find_by_id(user_id)
        if not user:
            raise UnauthorizedError("User not found")

        if not await verify_and_upgrade_password(user["_id"], current_password, user.get("user_pass"), self.users):
            raise BadRequestError("Current password is incorrect")
        _check_strength(new_password)

        await self.users.update_one(
            {"_id": user["_id"]}, {"$set": {"user_pass": hash_password(new_password), "updatedAt": utcnow()}}
        )
        return {"message": "Password changed successfully"}

    async def verify_email(self, token: str) -> dict:
        user = await self.users.find_one({
            "emailVerificationToken": _digest(token),
            "emailVerificationExpires": {"$gt": utcnow()},
        })
        if not user:
            raise BadRequestError("Invalid or expired verification token")

        await self.users.update_one({"_id": user["_id"]}, {
            "$set": {"isEmailVerified": True, "updatedAt": utcnow()},
            "$unset": {"emailVerificationToken": "", "emailVerificationExpires": ""},
        })
        return {"message": "Email verified successfully"}

    # ------------------------
    # Used by the auth middleware
    # ------------------------
    async def get_active_user(self, user_id: str) -> dict:
        """Load the caller behind a token, minus private fields."""
        user = await self._find_by_id(user_id)
        if not user:
            raise UnauthorizedError("User belonging to this token no longer exists")
        if user.get("user_status", "active") != "active":
            raise ErrorResponses.inactive_account()
        return {k: v for k, v in user.items() if k not in PRIVATE_USER_FIELDS}
