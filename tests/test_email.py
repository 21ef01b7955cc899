import pytest

from lernova.config import Settings
from lernova.schemas.errors import AuthenticationFailed, MailDeliveryError
from lernova.schemas.mail import MailMessage
from lernova.services.email import MailDispatcher, compose_message, strip_tags
from lernova.services.templates import render_contact_reply, render_otp_email

MESSAGE = MailMessage(
    recipient="ada@example.com",
    subject="Welcome",
    html_body="<h1>Hello</h1><p>Ada</p>",
)


class FakeTransport:
    def __init__(self, error=None):
        self.calls = []
        self._error = error

    def deliver(self, relay_host, relay_port, credentials, envelope):
        self.calls.append((relay_host, relay_port, credentials, envelope))
        if self._error is not None:
            raise self._error


def _settings(**overrides):
    values = dict(
        smtp_host="relay.lernova.test",
        smtp_port=465,
        gmail_user="noreply@lernova.test",
        gmail_app_password="app-password",
        mail_sender_name="Lernova",
    )
    values.update(overrides)
    return Settings(**values)


def test_strip_tags_removes_markup():
    assert strip_tags("<p>Hello <b>Ada</b></p>") == "Hello Ada"


def test_single_part_message_is_html_only():
    raw = compose_message("Lernova", "noreply@lernova.test", MESSAGE, multipart=False)

    assert raw.startswith("From: Lernova <noreply@lernova.test>\r\nTo: ada@example.com\r\n")
    assert "Content-Type: text/html; charset=utf-8" in raw
    assert "multipart" not in raw
    assert raw.endswith(MESSAGE.html_body)


def test_multipart_message_derives_plain_text_from_html():
    raw = compose_message("Lernova", "noreply@lernova.test", MESSAGE)

    assert 'Content-Type: multipart/alternative; boundary="boundary_' in raw
    boundary = raw.split('boundary="', 1)[1].split('"', 1)[0]
    assert raw.count(f"--{boundary}\r\n") == 2
    assert raw.rstrip().endswith(f"--{boundary}--")
    plain_part = raw.split("Content-Type: text/plain; charset=utf-8\r\n\r\n", 1)[1]
    assert plain_part.startswith("HelloAda\r\n")


def test_multipart_message_prefers_caller_text():
    message = MailMessage(
        recipient="ada@example.com",
        subject="Welcome",
        html_body="<p>Hi</p>",
        text_body="Plain hi",
    )

    raw = compose_message("Lernova", "noreply@lernova.test", message)

    assert "Content-Type: text/plain; charset=utf-8\r\n\r\nPlain hi\r\n" in raw


def test_non_ascii_subject_is_encoded():
    message = MailMessage(recipient="ada@example.com", subject="Namaste 🙏", html_body="x")

    raw = compose_message("Lernova", "noreply@lernova.test", message, multipart=False)

    assert "Subject: =?utf-8?" in raw


def test_dispatch_hands_composed_message_to_transport():
    transport = FakeTransport()
    dispatcher = MailDispatcher(_settings(), transport)

    dispatcher.dispatch(MESSAGE, multipart=False)

    [(host, port, credentials, envelope)] = transport.calls
    assert (host, port) == ("relay.lernova.test", 465)
    assert credentials.username == "noreply@lernova.test"
    assert credentials.password == "app-password"
    assert envelope.sender == "noreply@lernova.test"
    assert envelope.recipient == "ada@example.com"
    assert "<h1>Hello</h1>" in envelope.message


def test_dispatch_requires_credentials():
    transport = FakeTransport()
    dispatcher = MailDispatcher(_settings(gmail_app_password=""), transport)

    with pytest.raises(MailDeliveryError) as excinfo:
        dispatcher.dispatch(MESSAGE)

    assert excinfo.value.step == "configure"
    assert transport.calls == []


def test_dispatch_propagates_transport_failures():
    dispatcher = MailDispatcher(_settings(), FakeTransport(AuthenticationFailed("535 no")))

    with pytest.raises(AuthenticationFailed):
        dispatcher.dispatch(MESSAGE)


def test_otp_template_contains_code_and_escaped_name():
    html = render_otp_email("482913", "<Ada>", ttl_minutes=10)

    assert "482913" in html
    assert "Hello &lt;Ada&gt;!" in html
    assert "expire in 10 minutes" in html


def test_contact_reply_template_escapes_user_text():
    html = render_contact_reply("Ada", "<script>x</script>", "Thanks!")

    assert "&lt;script&gt;x&lt;/script&gt;" in html
    assert "<script>" not in html
    assert "Thanks!" in html
