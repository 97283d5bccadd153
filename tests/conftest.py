"""
Shared pytest fixtures for the GuestPost backend tests.

Every test gets a fresh in-memory MongoDB (mongomock-motor), a recording
mailer in place of SMTP and a throwaway upload directory. Route tests talk
to the FastAPI app through httpx's ASGI transport; the lifespan never runs,
so nothing reaches a real database, SMTP server or payment gateway.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.dependencies import Services
from app.main import create_app
from app.utils.file_utils import LocalFileStorage
from guestpost.core.config import Settings
from guestpost.db.database import USERS, ensure_indexes
from guestpost.models.user import User
from guestpost.service.notification_service import NotificationService
from guestpost.utils.hash_utils import hash_password

FRONTEND_URL = "http://frontend.test"
USER_PASSWORD = "Password123"
GOOGLE_CLIENT_ID = "guestpost-test.apps.googleusercontent.com"


class RecordingMailer:
    """Async mailer double that keeps every message it is asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def __call__(self, to_email, subject, body, html=None):
        if self.fail:
            raise RuntimeError("SMTP server unavailable")
        self.sent.append({"to": to_email, "subject": subject, "body": body, "html": html})
        return True

    def subjects(self):
        return [m["subject"] for m in self.sent]


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
async def db():
    """Fresh in-memory database with the production indexes."""
    database = AsyncMongoMockClient()["guestpost_test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def failing_mailer() -> RecordingMailer:
    """Mailer whose every send raises, for best-effort notification checks."""
    return RecordingMailer(fail=True)


@pytest.fixture
def notifications(mailer) -> NotificationService:
    return NotificationService(mailer, FRONTEND_URL)


@pytest.fixture
def upload_root(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def file_storage(upload_root) -> LocalFileStorage:
    return LocalFileStorage(str(upload_root))


@pytest.fixture
def test_settings(upload_root) -> Settings:
    return Settings(
        _env_file=None,
        JWT_SECRET_KEY="test-secret-key",
        FRONTEND_URL=FRONTEND_URL,
        UPLOAD_PATH=str(upload_root),
        STRIPE_PUBLISHABLE_KEY="pk_test_123",
        GOOGLE_CLIENT_ID=GOOGLE_CLIENT_ID,
        MESSAGE_POLL_INTERVAL=0.01,
    )


@pytest.fixture
def services(db, test_settings, mailer, file_storage) -> Services:
    return Services(db, test_settings, mailer=mailer, file_storage=file_storage)


@pytest.fixture
async def client(services):
    """httpx client bound to an app wired with the in-memory services."""
    app = create_app(services)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


# =============================================================================
# Users
# =============================================================================

async def insert_user(db, email, name="Test User", role="user", status="active", password=USER_PASSWORD):
    doc = User(
        user_nicename=name,
        user_email=email,
        user_pass=hash_password(password),
        role=role,
        user_status=status,
    ).model_dump(exclude_none=True)
    result = await db[USERS].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


@pytest.fixture
async def user(db) -> dict:
    """Regular active customer."""
    return await insert_user(db, "alice@example.com", name="Alice")


@pytest.fixture
async def other_user(db) -> dict:
    return await insert_user(db, "bob@example.com", name="Bob")


@pytest.fixture
async def admin(db) -> dict:
    return await insert_user(db, "admin@example.com", name="Admin", role="admin")


def bearer(services, user_doc) -> dict:
    tokens = services.tokens.generate_tokens(str(user_doc["_id"]), user_doc["user_email"], user_doc["role"])
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


@pytest.fixture
def user_headers(services, user) -> dict:
    return bearer(services, user)


@pytest.fixture
def other_user_headers(services, other_user) -> dict:
    return bearer(services, other_user)


@pytest.fixture
def admin_headers(services, admin) -> dict:
    return bearer(services, admin)
