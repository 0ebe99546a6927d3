# digital_menu/emailer.py
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

import resend
from fastapi import Request
from fastapi.concurrency import run_in_threadpool

from .config import Settings

logger = logging.getLogger(__name__)

SUBJECT = "Digital Menu - Verification Code"


def _text_body(code: str, ttl_minutes: int) -> str:
    return f"Your verification code is: {code}. This code will expire in {ttl_minutes} minutes."


def _html_body(code: str, ttl_minutes: int) -> str:
    return (
        "<h2>Verify Your Email</h2>"
        "<p>Your verification code is:</p>"
        f'<h1 style="color: #2563eb; font-family: monospace; letter-spacing: 2px;">{code}</h1>'
        f"<p>This code will expire in {ttl_minutes} minutes.</p>"
        "<p>If you didn't request this code, please ignore this email.</p>"
    )


class EmailSender(Protocol):
    async def send_verification_code(self, to_email: str, code: str) -> bool:
        ...


class ResendEmailSender:
    def __init__(self, api_key: str, from_email: str, ttl_minutes: int = 30):
        resend.api_key = api_key
        self.from_email = from_email
        self.ttl_minutes = ttl_minutes

    async def send_verification_code(self, to_email: str, code: str) -> bool:
        params = {
            "from": self.from_email,
            "to": [to_email],
            "subject": SUBJECT,
            "html": _html_body(code, self.ttl_minutes),
            "text": _text_body(code, self.ttl_minutes),
        }
        try:
            # Emails.send is SYNC; run it in threadpool so we can await safely
            await run_in_threadpool(resend.Emails.send, params)
        except Exception:
            logger.exception("Failed to send verification email to %s via Resend", to_email)
            return False
        return True


class SmtpEmailSender:
    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        username: str | None = None,
        password: str | None = None,
        ttl_minutes: int = 30,
    ):
        self.host = host
        self.port = port
        self.from_email = from_email
        self.username = username
        self.password = password
        self.ttl_minutes = ttl_minutes

    def _build_message(self, to_email: str, code: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = SUBJECT
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.set_content(_text_body(code, self.ttl_minutes))
        msg.add_alternative(_html_body(code, self.ttl_minutes), subtype="html")
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(msg)

    async def send_verification_code(self, to_email: str, code: str) -> bool:
        try:
            await run_in_threadpool(self._send, self._build_message(to_email, code))
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send verification email to %s via SMTP", to_email)
            return False
        return True


class ConsoleEmailSender:
    """Development sender: writes the code to the log instead of mailing it."""

    async def send_verification_code(self, to_email: str, code: str) -> bool:
        logger.info("[VERIFICATION] Email: %s Code: %s", to_email, code)
        return True


def build_email_sender(settings: Settings) -> EmailSender:
    ttl = settings.VERIFICATION_CODE_TTL_MINUTES
    if settings.EMAIL_BACKEND == "resend":
        if not settings.RESEND_API_KEY:
            raise RuntimeError("EMAIL_BACKEND=resend requires RESEND_API_KEY")
        return ResendEmailSender(settings.RESEND_API_KEY, settings.SMTP_FROM, ttl)
    if settings.EMAIL_BACKEND == "console":
        return ConsoleEmailSender()
    return SmtpEmailSender(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        from_email=settings.SMTP_FROM,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        ttl_minutes=ttl,
    )


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender
