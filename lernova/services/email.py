from __future__ import annotations

import logging
import re
import time
from email.header import Header
from email.utils import formatdate

from lernova.config import Settings, settings
from lernova.schemas.errors import MailDeliveryError
from lernova.schemas.mail import MailEnvelope, MailMessage, SmtpCredentials
from lernova.services.smtp import SmtpTransport

LOGGER = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"<[^>]*>")


def strip_tags(html: str) -> str:
    return _TAG_PATTERN.sub("", html)


def _encode_subject(subject: str) -> str:
    if subject.isascii():
        return subject
    return Header(subject, "utf-8").encode()


def compose_message(
    sender_name: str, sender: str, message: MailMessage, multipart: bool = True
) -> str:
    headers = [
        f"From: {sender_name} <{sender}>",
        f"To: {message.recipient}",
        f"Subject: {_encode_subject(message.subject)}",
        f"Date: {formatdate(localtime=False)}",
        "MIME-Version: 1.0",
    ]
    if not multipart:
        lines = headers + [
            "Content-Type: text/html; charset=utf-8",
            "",
            message.html_body,
        ]
        return "\r\n".join(lines)

    boundary = f"boundary_{int(time.time() * 1000)}"
    text_body = message.text_body or strip_tags(message.html_body)
    lines = headers + [
        f'Content-Type: multipart/alternative; boundary="{boundary}"',
        "",
        f"--{boundary}",
        "Content-Type: text/plain; charset=utf-8",
        "",
        text_body,
        "",
        f"--{boundary}",
        "Content-Type: text/html; charset=utf-8",
        "",
        message.html_body,
        "",
        f"--{boundary}--",
    ]
    return "\r\n".join(lines)


class MailDispatcher:
    def __init__(self, settings: Settings, transport: SmtpTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport or SmtpTransport(
            timeout=settings.smtp_timeout_seconds,
            local_name=settings.smtp_local_name,
        )

    @property
    def sender_name(self) -> str:
        return self._settings.mail_sender_name

    def dispatch(self, message: MailMessage, multipart: bool = True) -> None:
        sender = self._settings.gmail_user
        password = self._settings.gmail_app_password
        if not sender or not password:
            raise MailDeliveryError("Mail credentials not configured", step="configure")

        raw_message = compose_message(
            self._settings.mail_sender_name, sender, message, multipart=multipart
        )
        try:
            self._transport.deliver(
                self._settings.smtp_host,
                self._settings.smtp_port,
                SmtpCredentials(username=sender, password=password),
                MailEnvelope(sender=sender, recipient=message.recipient, message=raw_message),
            )
        except MailDeliveryError as exc:
            LOGGER.error(
                "Mail to %s failed at step=%s response=%s",
                message.recipient,
                exc.step,
                exc.response,
            )
            raise
        LOGGER.info("Email sent successfully to: %s", message.recipient)


mail_dispatcher = MailDispatcher(settings)
