from __future__ import annotations

import base64
import logging
import socket
import ssl
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Optional

from lernova.schemas.errors import AuthenticationFailed, MailDeliveryError
from lernova.schemas.mail import MailEnvelope, SmtpCredentials

LOGGER = logging.getLogger(__name__)

AUTH_SUCCESS_CODE = "235"
_MAX_LINE = 8192


@dataclass(frozen=True)
class SmtpStep:
    name: str
    # None means the step only waits for the server (greeting).
    payload: Optional[bytes]


def _b64(value: str) -> bytes:
    return base64.b64encode(value.encode("utf-8"))


def encode_data_payload(message: str) -> bytes:
    """Normalise line endings, dot-stuff and append the end-of-data marker."""
    lines = message.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    stuffed = ["." + line if line.startswith(".") else line for line in lines]
    return ("\r\n".join(stuffed) + "\r\n.").encode("utf-8")


def reply_code(reply: str) -> str:
    last_line = reply.rsplit("\n", 1)[-1]
    return last_line[:3]


def _close_quietly(stream) -> None:
    try:
        stream.close()
    except OSError as exc:
        LOGGER.debug("Closing SMTP stream failed: %s", exc)


class SmtpTransport:
    def __init__(
        self,
        timeout: float = 10.0,
        local_name: str = "localhost",
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._timeout = timeout
        self._local_name = local_name
        self._ssl_context = ssl_context or ssl.create_default_context()

    def deliver(
        self,
        relay_host: str,
        relay_port: int,
        credentials: SmtpCredentials,
        envelope: MailEnvelope,
    ) -> None:
        steps = self.build_steps(credentials, envelope)
        with ExitStack() as stack:
            try:
                connection = self._open_connection(relay_host, relay_port)
            except OSError as exc:
                raise MailDeliveryError(
                    f"Could not connect to SMTP relay {relay_host}:{relay_port}",
                    step="connect",
                ) from exc
            stack.enter_context(connection)
            reader = stack.enter_context(connection.makefile("rb"))
            writer = connection.makefile("wb")
            stack.callback(_close_quietly, writer)

            for step in steps:
                reply = self._exchange(reader, writer, step)
                if step.name == "auth" and reply_code(reply) != AUTH_SUCCESS_CODE:
                    raise AuthenticationFailed(reply)

            try:
                self._write(writer, b"QUIT")
            except OSError as exc:
                LOGGER.warning("SMTP QUIT to %s failed: %s", relay_host, exc)

        LOGGER.info("SMTP relay %s accepted message for %s", relay_host, envelope.recipient)

    def build_steps(
        self, credentials: SmtpCredentials, envelope: MailEnvelope
    ) -> list[SmtpStep]:
        return [
            SmtpStep("greeting", None),
            SmtpStep("ehlo", f"EHLO {self._local_name}".encode("ascii")),
            SmtpStep("auth_login", b"AUTH LOGIN"),
            SmtpStep("auth_username", _b64(credentials.username)),
            SmtpStep("auth", _b64(credentials.password)),
            SmtpStep("mail_from", f"MAIL FROM:<{envelope.sender}>".encode("utf-8")),
            SmtpStep("rcpt_to", f"RCPT TO:<{envelope.recipient}>".encode("utf-8")),
            SmtpStep("data", b"DATA"),
            SmtpStep("message", encode_data_payload(envelope.message)),
        ]

    def _open_connection(self, relay_host: str, relay_port: int):
        raw_socket = socket.create_connection(
            (relay_host, relay_port), timeout=self._timeout
        )
        try:
            return self._ssl_context.wrap_socket(raw_socket, server_hostname=relay_host)
        except Exception:
            raw_socket.close()
            raise

    def _exchange(self, reader, writer, step: SmtpStep) -> str:
        try:
            if step.payload is not None:
                self._write(writer, step.payload)
            reply = self._read_reply(reader)
        except OSError as exc:
            raise MailDeliveryError(
                f"SMTP {step.name} step failed: {exc}", step=step.name
            ) from exc
        if not reply:
            raise MailDeliveryError(
                f"SMTP relay closed the connection during {step.name}",
                step=step.name,
            )
        LOGGER.debug("SMTP %s -> %s", step.name, reply_code(reply))
        return reply

    @staticmethod
    def _write(writer, payload: bytes) -> None:
        writer.write(payload + b"\r\n")
        writer.flush()

    @staticmethod
    def _read_reply(reader) -> str:
        lines = []
        while True:
            raw_line = reader.readline(_MAX_LINE)
            if not raw_line:
                break
            line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
            lines.append(line)
            # "250-..." continues a multi-line reply, "250 ..." ends it.
            if len(line) < 4 or line[3] != "-":
                break
        return "\n".join(lines)
