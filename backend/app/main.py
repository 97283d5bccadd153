# app/main.py

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.dependencies import Services
from app.utils.email_utils import SMTPMailer
from app.utils.file_utils import LocalFileStorage

# Routers
from app.routes.auth import auth_router
from app.routes.files import file_router
from app.routes.messages import message_router
from app.routes.orders import order_router
from app.routes.payments import payment_router
from app.routes.services import service_package_router, service_router
from app.routes.site_submissions import site_submission_router

# Error Handlers
from guestpost.core.config import Settings, settings as default_settings
from guestpost.core.error_handlers import (
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from guestpost.core.logging_config import setup_logging
from guestpost.db.database import ensure_indexes, get_client, get_database, USERS
from guestpost.service.payment_service import create_paypal_api, create_stripe_client

logger = logging.getLogger(__name__)


# ------------------------
# Startup wiring
# ------------------------
async def _check_database(db):
    try:
        # 5-second timeout so a dead MongoDB does not block startup
        await asyncio.wait_for(db[USERS].find_one({}), timeout=5)
        logger.info("MongoDB connected successfully.")
    except Exception as e:
        logger.error("MongoDB connection failed: %s", e)
        return False
    return True


def build_services(settings: Settings, db) -> Services:
    mailer = SMTPMailer(
        settings.SMTP_SERVER,
        settings.SMTP_PORT,
        settings.SMTP_USER,
        settings.SMTP_PASSWORD,
        from_email=settings.EMAIL_FROM,
        from_name=settings.APP_TITLE,
    )
    if not mailer.configured:
        logger.warning("SMTP credentials not set, transactional emails will be skipped")

    stripe_client = create_stripe_client(settings.STRIPE_SECRET_KEY)
    paypal_api = create_paypal_api(settings.PAYPAL_CLIENT_ID, settings.PAYPAL_CLIENT_SECRET, settings.PAYPAL_MODE)
    logger.info("Payment providers: stripe=%s paypal=%s (%s)",
                "on" if stripe_client else "off", "on" if paypal_api else "off", settings.PAYPAL_MODE)

    return Services(
        db,
        settings,
        mailer=mailer,
        file_storage=LocalFileStorage(settings.UPLOAD_PATH),
        stripe_client=stripe_client,
        paypal_api=paypal_api,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "services", None) is not None:
        yield
        return

    settings = app.state.settings
    client = get_client(settings.MONGO_URL)
    db = get_database(client, settings.MONGO_DB_NAME)
    if await _check_database(db):
        await ensure_indexes(db)
    app.state.services = build_services(settings, db)
    try:
        yield
    finally:
        client.close()
        logger.info("MongoDB connection closed")


# ------------------------
# App init
# ------------------------
def create_app(services: Optional[Services] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or (services.settings if services else default_settings)
    setup_logging(settings.LOG_DIR, logging.DEBUG if settings.DEBUG else logging.INFO)

    app = FastAPI(title=f"{settings.APP_TITLE} API", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    # ------------------------
    # OAuth2 / Swagger Authorize
    # ------------------------
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=f"{settings.APP_TITLE} API",
            version="1.0.0",
            description="Orders, site submissions, support messages and payments",
            routes=app.routes,
        )
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "OAuth2Password": {
                "type": "oauth2",
                "flows": {"password": {"tokenUrl": f"{settings.API_PREFIX}/auth/login", "scopes": {}}},
            }
        }
        for path in openapi_schema["paths"].values():
            for method in path.values():
                method["security"] = [{"OAuth2Password": []}]
        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    # ------------------------
    # CORS
    # ------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------
    # Routes
    # ------------------------
    prefix = settings.API_PREFIX
    app.include_router(auth_router, prefix=f"{prefix}/auth")
    app.include_router(order_router, prefix=f"{prefix}/orders")
    app.include_router(site_submission_router, prefix=f"{prefix}/site-submissions")
    app.include_router(message_router, prefix=f"{prefix}/messages")
    app.include_router(payment_router, prefix=f"{prefix}/payments")
    app.include_router(service_router, prefix=f"{prefix}/services")
    app.include_router(service_package_router, prefix=f"{prefix}/service-packages")
    app.include_router(file_router, prefix=f"{prefix}/files")

    # ------------------------
    # Exception handlers
    # ------------------------
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ------------------------
    # Health & root
    # ------------------------
    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.APP_TITLE} API"}

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


app = create_app()
