import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class SMTPMailer:
    """Blocking SMTP transport, exposed to the services as an async callable."""

    def __init__(self, server: str, port: int, user: Optional[str], password: Optional[str],
                 from_email: Optional[str] = None, from_name: str = "GuestPost Now"):
        self.server = server
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email or user
        self.from_name = from_name

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def send_email(self, to_email: str, subject: str, body: str, html: Optional[str] = None) -> bool:
        if not self.configured:
            logger.warning("SMTP not configured, skipping email '%s' to %s", subject, to_email)
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.set_content(body)
        if html:
            msg.add_alternative(html, subtype="html")

        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.server, self.port) as smtp:
                    smtp.login(self.user, self.password)
                    smtp.send_message(msg)
            else:
                with smtplib.SMTP(self.server, self.port) as smtp:
                    smtp.starttls()
                    smtp.login(self.user, self.password)
                    smtp.send_message(msg)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            raise

        logger.info("Email sent to %s", to_email)
        return True

    async def __call__(self, to_email: str, subject: str, body: str, html: Optional[str] = None) -> bool:
        return await run_in_threadpool(self.send_email, to_email, subject, body, html)
