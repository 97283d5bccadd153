# app/dependencies.py
from datetime import timedelta

from fastapi import Depends, Request

from guestpost.core.config import Settings
from guestpost.service.auth_service import AuthService
from guestpost.service.catalog_service import CatalogService, ServicePackageService
from guestpost.service.message_service import MessageService
from guestpost.service.notification_service import NotificationService
from guestpost.service.order_service import OrderService
from guestpost.service.payment_service import PaymentService
from guestpost.service.site_submission_service import SiteSubmissionService
from guestpost.utils.auth_utils import GoogleTokenVerifier, TokenManager


class Services:
    """Everything a request handler needs, built once per application."""

    def __init__(self, db, settings: Settings, mailer, file_storage, stripe_client=None, paypal_api=None):
        self.db = db
        self.settings = settings
        self.file_storage = file_storage

        self.tokens = TokenManager(
            settings.JWT_SECRET_KEY,
            settings.ALGORITHM,
            access_expires=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_expires=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        self.notifications = NotificationService(mailer, settings.FRONTEND_URL, brand=settings.APP_TITLE)

        self.auth = AuthService(db, self.tokens, self.notifications, GoogleTokenVerifier(settings.GOOGLE_CLIENT_ID))
        self.orders = OrderService(db, self.notifications)
        self.site_submissions = SiteSubmissionService(db, self.notifications, file_storage)
        self.messages = MessageService(db)
        self.payments = PaymentService(
            stripe_client,
            paypal_api,
            frontend_url=settings.FRONTEND_URL,
            stripe_publishable_key=settings.STRIPE_PUBLISHABLE_KEY,
            paypal_mode=settings.PAYPAL_MODE,
        )
        self.catalog = CatalogService(db)
        self.packages = ServicePackageService(db)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(services: Services = Depends(get_services)) -> Settings:
    return services.settings
