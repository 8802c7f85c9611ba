"""Outbound email for pickup passes."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.errors import HeaderParseError
from email.message import EmailMessage
from typing import Optional

logger = logging.getLogger(__name__)


class Mailer:
    """Send HTML emails through an SMTP relay (Mailgun, Mailjet, ...).

    The connection upgrades to TLS when the server offers STARTTLS and logs
    in when a user is configured. ``send`` never raises: failures are logged
    and reported through the return value.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._sender = sender or user or f"no-reply@{host}"
        self._timeout = timeout

    def _build(self, to_address: str, subject: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to_address
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html_body, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            if self._user:
                smtp.login(self._user, self._password or "")
            smtp.send_message(msg)

    async def send(self, to_address: str, subject: str, html_body: str) -> bool:
        try:
            msg = self._build(to_address, subject, html_body)
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError, ValueError, HeaderParseError) as exc:
            logger.error("Email to %r failed: %s", to_address, exc)
            return False
        logger.info("Email sent to %s (%s)", to_address, subject)
        return True


def pass_email(order_id: str, code_url: str) -> tuple[str, str]:
    """Return the subject and HTML body of the pass email."""
    subject = f"Your QR code for order #{order_id}"
    html_body = (
        "<h2>Thank you for your order!</h2>\n"
        "<p>Here is the QR code to collect your product:</p>\n"
        f'<img src="{code_url}" alt="QR Code">\n'
        "<p>Show this code at the pickup point.</p>\n"
    )
    return subject, html_body
