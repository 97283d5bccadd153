# guestpost/service/payment_service.py
import json
import logging
from typing import Optional

import paypalrestsdk
import stripe
from paypalrestsdk import exceptions as paypal_exceptions
from starlette.concurrency import run_in_threadpool

from guestpost.core.errors import AppError, BadRequestError, InternalServerError, PaymentGatewayAuthError

logger = logging.getLogger(__name__)


def create_stripe_client(secret_key: Optional[str]) -> Optional[stripe.StripeClient]:
    if not secret_key:
        logger.warning("Stripe secret key not set, Stripe payments disabled")
        return None
    return stripe.StripeClient(secret_key)


def create_paypal_api(client_id: Optional[str], client_secret: Optional[str], mode: str = "sandbox"):
    if not client_id or not client_secret:
        logger.warning("PayPal credentials not found, PayPal payments disabled")
        return None
    client_id = "".join(client_id.split())
    client_secret = "".join(client_secret.split())
    if len(client_id) < 20 or len(client_secret) < 20:
        logger.error("PayPal credentials appear to be invalid (too short), PayPal payments disabled")
        return None
    api = paypalrestsdk.Api({"mode": mode, "client_id": client_id, "client_secret": client_secret})
    logger.info("PayPal configured in %s mode", mode)
    if mode == "live":
        logger.warning("Using LIVE PayPal credentials, real payments will be processed")
    return api


def _paypal_error_content(error) -> dict:
    content = getattr(error, "content", None)
    if isinstance(content, bytes):
        content = content.decode("utf-8", "replace")
    if isinstance(content, str):
        try:
            return json.loads(content)
        except ValueError:
            return {"message": content}
    return content if isinstance(content, dict) else {}


def _paypal_auth_error(description: str) -> PaymentGatewayAuthError:
    return PaymentGatewayAuthError(
        f"PayPal authentication failed: {description}. "
        "Please verify your PayPal credentials match your PayPal Developer Dashboard and mode (sandbox/live)."
    )


class PaymentService:
    """Uniform facade over Stripe and PayPal; holds no state of its own."""

    def __init__(self, stripe_client=None, paypal_api=None, frontend_url: str = "http://localhost:3000",
                 stripe_publishable_key: Optional[str] = None, paypal_mode: str = "sandbox"):
        self.stripe = stripe_client
        self.paypal = paypal_api
        self.frontend_url = frontend_url.rstrip("/")
        self.stripe_publishable_key = stripe_publishable_key
        self.paypal_mode = paypal_mode

    # ------------------------
    # Stripe
    # ------------------------
    async def create_stripe_payment_intent(self, data: dict) -> dict:
        if self.stripe is None:
            raise InternalServerError("Stripe is not configured")

        params = {
            "amount": int(round(float(data["amount"]) * 100)),
            "currency": data.get("currency") or "usd",
            "metadata": {
                "userId": str(data["userId"]),
                "userEmail": data["userEmail"],
                "orderId": data.get("orderId") or "",
                **(data.get("metadata") or {}),
            },
            "automatic_payment_methods": {"enabled": True},
        }
        try:
            intent = await run_in_threadpool(self.stripe.v1.payment_intents.create, params=params)
        except stripe.StripeError as e:
            logger.error("Stripe payment intent creation error: %s", e)
            raise AppError(getattr(e, "user_message", None) or str(e) or "Failed to create payment intent", 500)

        return {"success": True, "paymentId": intent.id, "clientSecret": intent.client_secret}

    async def verify_stripe_payment(self, payment_intent_id: str) -> bool:
        if self.stripe is None:
            raise InternalServerError("Stripe is not configured")
        try:
            intent = await run_in_threadpool(self.stripe.v1.payment_intents.retrieve, payment_intent_id)
        except stripe.StripeError as e:
            logger.error("Stripe payment verification error: %s", e)
            return False
        return intent.status == "succeeded"

    def get_stripe_publishable_key(self) -> str:
        return self.stripe_publishable_key or ""

    # ------------------------
    # PayPal
    # ------------------------
    def _require_paypal(self):
        if self.paypal is None:
            raise InternalServerError("PayPal is not configured. Please check your PayPal credentials")

    async def create_paypal_payment(self, data: dict) -> dict:
        self._require_paypal()

        amount = f"{float(data['amount']):.2f}"
        currency = data.get("currency") or "USD"
        order_id = data.get("orderId") or ""
        payment = paypalrestsdk.Payment({
            "intent": "sale",
            "payer": {"payment_method": "paypal"},
            "redirect_urls": {
                "return_url": f"{self.frontend_url}/checkout/payment-success?payment_method=paypal",
                "cancel_url": f"{self.frontend_url}/checkout?canceled=true",
            },
            "transactions": [{
                "amount": {"total": amount, "currency": currency},
                "description": data.get("description") or "Order payment",
                "custom": order_id,
                "item_list": {"items": [{
                    "name": "Order Payment",
                    "sku": order_id or "order",
                    "price": amount,
                    "currency": currency,
                    "quantity": 1,
                }]},
            }],
        }, api=self.paypal)

        logger.info("PayPal payment request: mode=%s amount=%s currency=%s", self.paypal_mode, amount, currency)
        try:
            created = await run_in_threadpool(payment.create)
        except paypal_exceptions.UnauthorizedAccess as e:
            content = _paypal_error_content(e)
            logger.error("PayPal 401 on payment creation: %s", content or e)
            raise _paypal_auth_error(content.get("error_description") or str(e))
        except paypal_exceptions.ConnectionError as e:
            status_code = getattr(getattr(e, "response", None), "status_code", None) or 500
            content = _paypal_error_content(e)
            if status_code == 401 or content.get("error") == "invalid_client":
                raise _paypal_auth_error(content.get("error_description") or str(e))
            logger.error("PayPal payment creation error (%s): %s", status_code, content or e)
            raise AppError(content.get("message") or content.get("error_description") or str(e), status_code)

        if not created:
            error = payment.error or {}
            logger.error("PayPal payment creation failed: %s", error)
            if error.get("error") == "invalid_client":
                raise _paypal_auth_error(error.get("error_description") or "invalid client")
            raise AppError(
                error.get("message") or error.get("error_description") or "Failed to create PayPal payment",
                int(error.get("httpStatusCode") or 500),
            )

        result = payment.to_dict()
        approval = next((link for link in result.get("links") or [] if link.get("rel") == "approval_url"), None)
        if not result.get("links"):
            raise InternalServerError("Invalid PayPal payment response")
        if not approval:
            raise InternalServerError("PayPal approval URL not found")

        return {"success": True, "paymentId": result.get("id"), "approvalUrl": approval["href"]}

    async def execute_paypal_payment(self, payment_id: str, payer_id: str) -> dict:
        self._require_paypal()

        payment = paypalrestsdk.Payment({"id": payment_id}, api=self.paypal)
        try:
            executed = await run_in_threadpool(payment.execute, {"payer_id": payer_id})
        except paypal_exceptions.ConnectionError as e:
            logger.error("PayPal payment execution error: %s", e)
            raise AppError(str(e) or "Failed to execute PayPal payment", 500)

        if not executed:
            error = payment.error or {}
            logger.error("PayPal payment execution failed: %s", error)
            raise AppError(error.get("message") or "Failed to execute PayPal payment", 500)

        if payment.to_dict().get("state") != "approved":
            raise BadRequestError("Payment was not approved")
        return {"success": True, "paymentId": payment.to_dict().get("id") or payment_id}

    def paypal_credentials_status(self, client_id: Optional[str], client_secret: Optional[str]) -> dict:
        return {
            "mode": self.paypal_mode,
            "configured": self.paypal is not None,
            "clientIdSet": bool(client_id),
            "clientSecretSet": bool(client_secret),
        }
