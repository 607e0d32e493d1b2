"""Outbound email over SMTP."""
from __future__ import annotations

import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import List, Optional, Protocol, Sequence

from ..config import Settings
from ..errors import DeliveryError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


@dataclass(frozen=True)
class MailMessage:
    to: Sequence[str]
    subject: str
    html: str
    reply_to: Optional[str] = None
    attachments: Sequence[Attachment] = field(default_factory=tuple)


class Mailer(Protocol):
    def send(self, message: MailMessage) -> None: ...


def build_email(message: MailMessage, sender: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(message.to)
    msg["Subject"] = message.subject
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid()
    if message.reply_to:
        msg["Reply-To"] = message.reply_to
    msg.set_content("This message requires an HTML-capable email client.")
    msg.add_alternative(message.html, subtype="html")
    for att in message.attachments:
        maintype, _, subtype = att.mime_type.partition("/")
        msg.add_attachment(att.content, maintype=maintype, subtype=subtype or "octet-stream",
                           filename=att.filename)
    return msg


class SmtpMailer:
    """Sends messages through the SMTP server configured in Settings."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.SMTP_SECURE:
            return smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT,
                                    context=ssl.create_default_context())
        server = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT)
        try:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def send(self, message: MailMessage) -> None:
        recipients: List[str] = [r for r in message.to if r]
        if not self.enabled:
            raise DeliveryError("mail", "SMTP_HOST is not configured")
        if not recipients:
            raise DeliveryError("mail", f"no recipients for {message.subject!r}")
        email = build_email(message, self.settings.FROM_EMAIL)
        try:
            with self._connect() as server:
                if self.settings.SMTP_USER:
                    server.login(self.settings.SMTP_USER, self.settings.SMTP_PASS or "")
                server.send_message(email, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError("mail", f"send to {', '.join(recipients)} failed: {exc}", exc) from exc
        logger.info("Sent %r to %d recipient(s)", message.subject, len(recipients))
