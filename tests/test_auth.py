"""
Tests for registration, login, tokens and the password / email flows.
"""

import re
from datetime import timedelta

import pytest
from google.oauth2 import id_token
from passlib.hash import bcrypt

from conftest import GOOGLE_CLIENT_ID, USER_PASSWORD, insert_user
from guestpost.core.errors import BadRequestError, ConflictError, InternalServerError, UnauthorizedError
from guestpost.db.database import USERS
from guestpost.utils.auth_utils import GoogleTokenVerifier
from guestpost.utils.datetime_utils import utcnow

TOKEN_RE = re.compile(r"token=([0-9a-f]{64})")


def mailed_token(mailer) -> str:
    return TOKEN_RE.search(mailer.sent[-1]["body"]).group(1)


class TestRegisterAndLogin:
    async def test_register_returns_user_and_tokens(self, services, mailer):
        result = await services.auth.register({
            "user_nicename": "Carol", "user_email": "Carol@Example.com", "user_pass": "Str0ngPass",
        })

        assert result["user"]["user_email"] == "carol@example.com"
        assert result["user"]["role"] == "user"
        assert result["user"]["isEmailVerified"] is False
        assert set(result["tokens"]) == {"accessToken", "refreshToken"}
        assert mailer.subjects() == ["Verify Your Email Address - GuestPost Now"]

    async def test_duplicate_email_is_conflict(self, services, user):
        with pytest.raises(ConflictError):
            await services.auth.register({
                "user_nicename": "Alice 2", "user_email": "ALICE@example.com", "user_pass": "Str0ngPass",
            })

    async def test_weak_password_lists_every_problem(self, services):
        with pytest.raises(BadRequestError) as info:
            await services.auth.register({
                "user_nicename": "Dan", "user_email": "dan@example.com", "user_pass": "lowercase",
            })

        assert "uppercase" in info.value.message
        assert "number" in info.value.message

    async def test_verification_mail_failure_does_not_fail_register(self, db, services, failing_mailer):
        services.auth.notifications.mailer = failing_mailer

        result = await services.auth.register({
            "user_nicename": "Eve", "user_email": "eve@example.com", "user_pass": "Str0ngPass",
        })

        assert result["user"]["user_email"] == "eve@example.com"

    async def test_login_records_last_login(self, db, services, user):
        result = await services.auth.login({"user_email": "alice@example.com", "user_pass": USER_PASSWORD})

        assert result["user"]["ID"] == str(user["_id"])
        stored = await db[USERS].find_one({"_id": user["_id"]})
        assert stored["lastLogin"] is not None

    async def test_wrong_password_and_unknown_email_look_the_same(self, services, user):
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            await services.auth.login({"user_email": "alice@example.com", "user_pass": "Wrong1234"})
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            await services.auth.login({"user_email": "nobody@example.com", "user_pass": USER_PASSWORD})

    async def test_inactive_account_cannot_login(self, db, services):
        await insert_user(db, "frozen@example.com", status="inactive")

        with pytest.raises(UnauthorizedError, match="inactive"):
            await services.auth.login({"user_email": "frozen@example.com", "user_pass": USER_PASSWORD})

    async def test_legacy_bcrypt_hash_is_upgraded_on_login(self, db, services, user):
        await db[USERS].update_one({"_id": user["_id"]}, {"$set": {"user_pass": bcrypt.hash(USER_PASSWORD)}})

        await services.auth.login({"user_email": "alice@example.com", "user_pass": USER_PASSWORD})

        stored = await db[USERS].find_one({"_id": user["_id"]})
        assert stored["user_pass"].startswith("$argon2")


class TestTokens:
    async def test_refresh_issues_new_tokens(self, services, user):
        tokens = services.tokens.generate_tokens(str(user["_id"]), user["user_email"], "user")

        result = await services.auth.refresh_token(tokens["refreshToken"])

        assert result["user"]["user_email"] == "alice@example.com"
        assert "accessToken" in result["tokens"]

    async def test_access_token_is_not_a_refresh_token(self, services, user):
        tokens = services.tokens.generate_tokens(str(user["_id"]), user["user_email"], "user")

        with pytest.raises(UnauthorizedError, match="Invalid refresh token"):
            await services.auth.refresh_token(tokens["accessToken"])

    async def test_refresh_for_deleted_user_is_rejected(self, db, services, user):
        tokens = services.tokens.generate_tokens(str(user["_id"]), user["user_email"], "user")
        await db[USERS].delete_one({"_id": user["_id"]})

        with pytest.raises(UnauthorizedError):
            await services.auth.refresh_token(tokens["refreshToken"])

    async def test_expired_access_token(self, services, user):
        token = services.tokens.create_access_token({"userId": str(user["_id"])}, timedelta(seconds=-1))

        with pytest.raises(UnauthorizedError, match="expired"):
            services.tokens.decode_token(token)


class TestPasswordFlows:
    async def test_forgot_password_answers_the_same_for_unknown_email(self, services, mailer, user):
        unknown = await services.auth.forgot_password("nobody@example.com")
        known = await services.auth.forgot_password("alice@example.com")

        assert unknown == known
        assert len(mailer.sent) == 1

    async def test_reset_with_mailed_token(self, db, services, mailer, user):
        await services.auth.forgot_password("alice@example.com")
        token = mailed_token(mailer)

        await services.auth.reset_password(token, "N3wPassword")
        result = await services.auth.login({"user_email": "alice@example.com", "user_pass": "N3wPassword"})

        assert result["user"]["ID"] == str(user["_id"])
        stored = await db[USERS].find_one({"_id": user["_id"]})
        assert "passwordResetToken" not in stored
        with pytest.raises(BadRequestError, match="Invalid or expired reset token"):
            await services.auth.reset_password(token, "An0therPass")

    async def test_stored_reset_token_is_not_the_mailed_one(self, db, services, mailer, user):
        await services.auth.forgot_password("alice@example.com")

        stored = await db[USERS].find_one({"_id": user["_id"]})
        assert stored["passwordResetToken"] != mailed_token(mailer)

    async def test_expired_reset_token_is_rejected(self, db, services, mailer, user):
        await services.auth.forgot_password("alice@example.com")
        await db[USERS].update_one(
            {"_id": user["_id"]}, {"$set": {"passwordResetExpires": utcnow() - timedelta(minutes=1)}}
        )

        with pytest.raises(BadRequestError):
            await services.auth.reset_password(mailed_token(mailer), "N3wPassword")

    async def test_change_password_requires_current(self, services, user):
        with pytest.raises(BadRequestError, match="Current password is incorrect"):
            await services.auth.change_password(str(user["_id"]), "Wrong1234", "N3wPassword")

        await services.auth.change_password(str(user["_id"]), USER_PASSWORD, "N3wPassword")

        result = await services.auth.login({"user_email": "alice@example.com", "user_pass": "N3wPassword"})
        assert result["user"]["user_email"] == "alice@example.com"

    async def test_verify_email(self, db, services, mailer):
        result = await services.auth.register({
            "user_nicename": "Carol", "user_email": "carol@example.com", "user_pass": "Str0ngPass",
        })

        await services.auth.verify_email(mailed_token(mailer))

        me = await services.auth.get_me(result["user"]["ID"])
        assert me["isEmailVerified"] is True
        with pytest.raises(BadRequestError):
            await services.auth.verify_email(mailed_token(mailer))


@pytest.fixture
def google_tokens(monkeypatch) -> dict:
    """Google's token check, answering only for tokens registered here."""
    issued = {}

    def verify(token, request, audience):
        if audience != GOOGLE_CLIENT_ID or token not in issued:
            raise ValueError("Could not verify token signature.")
        return issued[token]

    monkeypatch.setattr(id_token, "verify_oauth2_token", verify)
    return issued


def google_claims(email, sub, **extra) -> dict:
    return {"iss": "https://accounts.google.com", "sub": sub, "email": email, "email_verified": True, **extra}


class TestGoogleAuth:
    async def test_new_google_user_is_verified(self, services, google_tokens):
        google_tokens["tok-gina"] = google_claims(
            "Gina@Example.com", "g-1", name="Gina", picture="https://img.example/g.png"
        )

        result = await services.auth.google_auth("tok-gina")

        me = await services.auth.get_me(result["user"]["ID"])
        assert me["user_email"] == "gina@example.com"
        assert me["user_nicename"] == "Gina"
        assert me["isEmailVerified"] is True
        assert me["avatar"] == "https://img.example/g.png"

    async def test_existing_user_is_linked(self, db, services, user, google_tokens):
        google_tokens["tok-alice"] = google_claims("alice@example.com", "g-2")

        result = await services.auth.google_auth("tok-alice")

        assert result["user"]["ID"] == str(user["_id"])
        stored = await db[USERS].find_one({"_id": user["_id"]})
        assert stored["googleId"] == "g-2"

    async def test_unverified_token_is_rejected(self, services, google_tokens):
        with pytest.raises(UnauthorizedError, match="Invalid Google token"):
            await services.auth.google_auth("forged")
        with pytest.raises(UnauthorizedError, match="required"):
            await services.auth.google_auth(None)

    async def test_unverified_google_email_is_rejected(self, services, google_tokens):
        google_tokens["tok"] = google_claims("gina@example.com", "g-1", email_verified=False)

        with pytest.raises(UnauthorizedError, match="not verified"):
            await services.auth.google_auth("tok")

    async def test_inactive_account_gets_no_tokens(self, db, services, google_tokens):
        await insert_user(db, "frozen@example.com", status="inactive")
        google_tokens["tok"] = google_claims("frozen@example.com", "g-3")

        with pytest.raises(UnauthorizedError, match="inactive"):
            await services.auth.google_auth("tok")

    async def test_account_linked_to_other_google_id(self, db, services, user, google_tokens):
        await db[USERS].update_one({"_id": user["_id"]}, {"$set": {"googleId": "g-original"}})
        google_tokens["tok"] = google_claims("alice@example.com", "g-other")

        with pytest.raises(UnauthorizedError, match="different Google account"):
            await services.auth.google_auth("tok")

    async def test_unconfigured_client_id_is_server_error(self, services):
        services.auth.google = GoogleTokenVerifier(None)

        with pytest.raises(InternalServerError, match="not configured"):
            await services.auth.google_auth("anything")


class TestAuthRoutes:
    async def test_register_route_is_201_with_envelope(self, client):
        res = await client.post("/api/v1/auth/register", json={
            "user_nicename": "Carol", "user_email": "carol@example.com", "user_pass": "Str0ngPass",
        })

        body = res.json()
        assert res.status_code == 201
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"]["user_email"] == "carol@example.com"

    async def test_register_bad_email_is_validation_envelope(self, client):
        res = await client.post("/api/v1/auth/register", json={
            "user_nicename": "Carol", "user_email": "not-an-email", "user_pass": "Str0ngPass",
        })

        body = res.json()
        assert res.status_code == 400
        assert body["success"] is False
        assert any("user_email" in error for error in body["data"]["errors"])

    async def test_login_wrong_password_is_401(self, client, user):
        res = await client.post("/api/v1/auth/login", json={"user_email": "alice@example.com", "user_pass": "x"})

        assert res.status_code == 401
        assert res.json()["message"] == "Invalid credentials"

    async def test_me_requires_token(self, client):
        res = await client.get("/api/v1/auth/me")

        assert res.status_code == 401
        assert res.json()["message"] == "Not authorized, no token provided"

    async def test_me_with_token(self, client, user, user_headers):
        res = await client.get("/api/v1/auth/me", headers=user_headers)

        data = res.json()["data"]
        assert res.status_code == 200
        assert data["ID"] == str(user["_id"])
        assert "user_pass" not in data

    async def test_garbage_token_is_401(self, client):
        res = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})

        assert res.status_code == 401
        assert res.json()["message"] == "Invalid token"

    async def test_change_password_route(self, client, user_headers):
        res = await client.put("/api/v1/auth/change-password", headers=user_headers, json={
            "currentPassword": USER_PASSWORD, "newPassword": "N3wPassword",
        })

        assert res.status_code == 200
        assert res.json()["message"] == "Password changed successfully"

    async def test_forgot_password_route_never_reveals_accounts(self, client):
        res = await client.post("/api/v1/auth/forgot-password", json={"user_email": "nobody@example.com"})

        assert res.status_code == 200
        assert res.json()["message"] == "If email exists, reset link has been sent"

    async def test_google_route_rejects_unsigned_claims(self, client, admin, google_tokens):
        forged = await client.post("/api/v1/auth/google", json={"idToken": "forged"})
        bare_claims = await client.post("/api/v1/auth/google", json={
            "email": "admin@example.com", "name": "x", "googleId": "anything",
        })

        assert forged.status_code == 401
        assert forged.json()["message"] == "Invalid Google token"
        assert bare_claims.status_code == 401
        assert bare_claims.json()["success"] is False

    async def test_google_route_signs_in_with_verified_token(self, client, user, google_tokens):
        google_tokens["tok-alice"] = google_claims("alice@example.com", "g-2")

        res = await client.post("/api/v1/auth/google", json={"idToken": "tok-alice"})

        assert res.status_code == 200
        assert res.json()["data"]["user"]["ID"] == str(user["_id"])
