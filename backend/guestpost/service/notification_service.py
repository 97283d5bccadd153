# guestpost/service/notification_service.py
"""
Transactional mail for orders, site submissions and account verification.

Every ``send_*`` coroutine formats one message and hands it to the injected
mailer (``async mailer(to_email, subject, body, html=None)``). Failures raise;
callers decide whether a failed notification matters. For order and
submission status changes it never does: those callers log and move on.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional

logger = logging.getLogger(__name__)

Mailer = Callable[..., Awaitable[object]]

STATUS_TITLES = {
    "processing": "Order Processing",
    "failed": "Order Failed",
    "cancelled": "Order Cancelled",
}


def _format_date(value: Optional[datetime]) -> str:
    if not value:
        return "N/A"
    return f"{value:%B} {value.day}, {value.year}"


def _format_amount(value) -> str:
    return f"${float(value or 0):,.2f}"


def _wrap_html(title: str, paragraphs: Iterable[str]) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs if p)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{title}</title></head>"
        "<body style=\"font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;\">"
        f"<h2>{title}</h2>{body}"
        "<p style=\"font-size: 12px; color: #999;\">This is an automated email. Please do not reply to this message.</p>"
        "</body></html>"
    )


class NotificationService:
    def __init__(self, mailer: Mailer, frontend_url: str, brand: str = "GuestPost Now"):
        self.mailer = mailer
        self.frontend_url = frontend_url.rstrip("/")
        self.brand = brand

    async def _send(self, to_email: str, subject: str, title: str, lines):
        lines = [line for line in lines if line is not None]
        text = "\n".join([title, ""] + lines + ["", "Best regards,", f"{self.brand} Team"])
        html = _wrap_html(title, lines + [f"Best regards,<br><strong>{self.brand} Team</strong>"])
        await self.mailer(to_email, subject, text, html=html)
        logger.info("Sent '%s' to %s", subject, to_email)

    # ------------------------
    # Orders
    # ------------------------
    def _order_lines(self, order: dict):
        return [
            f"Order ID: {order.get('id') or order.get('_id')}",
            f"Service: {order.get('item_name')}",
            f"Order Type: {order.get('type') or 'N/A'}",
            f"Amount: {_format_amount(order.get('price'))}",
            f"Order Date: {_format_date(order.get('date') or order.get('createdAt'))}",
        ]

    async def send_order_confirmation(self, order: dict):
        lines = [
            f"Dear {order.get('userName')},",
            "Thank you for your order! Your payment has been successfully processed.",
            *self._order_lines(order),
            "Order Status: Processing",
            "Your order is now being processed. We'll notify you once it's completed.",
            "You can track your order status from your dashboard at any time.",
        ]
        await self._send(order["userEmail"], f"Order Confirmed - {order.get('item_name')}",
                         "Order Confirmed - Payment Successful", lines)

    async def send_order_completion(self, order: dict):
        lines = [
            f"Dear {order.get('userName')},",
            "Great news! Your order has been completed.",
            *self._order_lines(order),
            f"Completed: {_format_date(order.get('completedAt'))}",
            f"Message: {order['completionMessage']}" if order.get("completionMessage") else None,
            f"Link: {order['completionLink']}" if order.get("completionLink") else None,
            "Thank you for choosing us.",
        ]
        await self._send(order["userEmail"], f"Order Completed - {order.get('item_name')}",
                         "Order Completed", lines)

    async def send_order_status_update(self, order: dict, message: Optional[str] = None):
        status = (order.get("status") or "").lower()
        title = STATUS_TITLES.get(status, "Order Status Updated")
        lines = [
            f"Dear {order.get('userName')},",
            "Your order status has been updated.",
            *self._order_lines(order),
            f"Status: {status}",
            f"Message: {message}" if message else None,
            "You can track your order status from your dashboard at any time.",
        ]
        await self._send(order["userEmail"], f"{title} - {order.get('item_name')}", title, lines)

    # ------------------------
    # Site submissions
    # ------------------------
    def _website_lines(self, websites):
        return [f"- {site}" for site in websites or []]

    async def send_site_submission_received(self, submission: dict):
        lines = [
            f"Thank you, {submission.get('userName')}!",
            "We've successfully received your site submission and our team is currently reviewing it.",
            "Submitted Websites:",
            *self._website_lines(submission.get("websites")),
            "You'll receive an email notification once the review is complete, typically within 24-48 hours.",
            f"Visit your dashboard: {self.frontend_url}/dashboard",
        ]
        await self._send(submission["userEmail"], f"Site Submission Received - {self.brand}",
                         "Site Submission Received", lines)

    async def send_site_submission_approved(self, submission: dict, admin_notes: Optional[str] = None):
        lines = [
            f"Dear {submission.get('userName')},",
            "Congratulations! Your site submission has been approved.",
            "Approved Websites:",
            *self._website_lines(submission.get("websites")),
            f"Notes from our team: {admin_notes}" if admin_notes else None,
            f"Visit your dashboard: {self.frontend_url}/dashboard",
        ]
        await self._send(submission["userEmail"], f"Your Site Submission Has Been Approved - {self.brand}",
                         "Site Submission Approved", lines)

    async def send_site_submission_rejected(self, submission: dict, admin_notes: Optional[str] = None):
        lines = [
            f"Dear {submission.get('userName')},",
            "Thank you for your interest. Unfortunately your site submission was not approved at this time.",
            "Reviewed Websites:",
            *self._website_lines(submission.get("websites")),
            f"Reason: {admin_notes}" if admin_notes else None,
            "You are welcome to submit again once the points above are addressed.",
        ]
        await self._send(submission["userEmail"], f"Site Submission Status Update - {self.brand}",
                         "Site Submission Update", lines)

    # ------------------------
    # Account
    # ------------------------
    async def send_verification_email(self, user_email: str, user_name: str, token: str):
        url = f"{self.frontend_url}/verify-email?token={token}"
        lines = [
            f"Hello {user_name},",
            "Thanks for signing up. Please confirm your email address by opening the link below:",
            url,
            "This link expires in 24 hours.",
        ]
        await self._send(user_email, f"Verify Your Email Address - {self.brand}", "Verify Your Email", lines)

    async def send_password_reset_email(self, user_email: str, user_name: str, token: str):
        url = f"{self.frontend_url}/reset-password?token={token}"
        lines = [
            f"Hello {user_name},",
            "You requested to reset your password. Open the link below to choose a new one:",
            url,
            "This link expires in 1 hour. If you did not request it, ignore this email.",
        ]
        await self._send(user_email, f"Password Reset Request - {self.brand}", "Password Reset", lines)
