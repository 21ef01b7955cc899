from datetime import datetime, timedelta, timezone
import logging
import secrets
from typing import Callable, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from lernova.config import settings
from lernova.database import session_scope
from lernova.models.db_operation import _delete_records, _select_one_or_none
from lernova.models.schema.otp import EmailVerificationEntry
from lernova.schemas.errors import Expired, InvalidCode, OtpStorageError
from lernova.schemas.mail import MailMessage
from lernova.schemas.otp import OtpRecord, normalize_email
from lernova.services.email import MailDispatcher, mail_dispatcher
from lernova.services.templates import render_otp_email

LOGGER = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_code() -> str:
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OtpStore:
    def replace(self, record: OtpRecord, now: datetime) -> None:
        try:
            with session_scope() as session:
                session.execute(
                    delete(EmailVerificationEntry).where(
                        EmailVerificationEntry.email == record.email
                    )
                )
                session.add(
                    EmailVerificationEntry(
                        email=record.email,
                        otp_code=record.code,
                        expires_at=record.expires_at,
                        verified=False,
                        created_at=now,
                    )
                )
        except SQLAlchemyError as exc:
            LOGGER.error("Error storing OTP for %s: %s", record.email, exc)
            raise OtpStorageError() from exc

    def find(self, email: str, code: str) -> Optional[EmailVerificationEntry]:
        return _select_one_or_none("otp", email=email, otp_code=code)

    def consume(self, entry_id: str) -> bool:
        return _delete_records("otp", id=entry_id) > 0


class OtpManager:
    """Issues, mails and single-use verifies email passcodes."""

    def __init__(
        self,
        store: OtpStore,
        dispatcher: MailDispatcher,
        ttl_seconds: int,
        subject: str,
        brand: str = "Lernova",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._ttl_seconds = ttl_seconds
        self._subject = subject
        self._brand = brand
        self._clock = clock

    def issue(self, email: str, display_name: Optional[str] = None) -> OtpRecord:
        now = self._clock()
        record = OtpRecord(
            email=normalize_email(email),
            code=generate_code(),
            expires_at=now + timedelta(seconds=self._ttl_seconds),
        )
        self._store.replace(record, now)
        LOGGER.info("OTP stored for %s, expires at %s", record.email, record.expires_at)

        html = render_otp_email(
            record.code,
            display_name,
            ttl_minutes=max(1, self._ttl_seconds // 60),
            brand=self._brand,
        )
        self._dispatcher.dispatch(
            MailMessage(recipient=record.email, subject=self._subject, html_body=html),
            multipart=False,
        )
        return record

    def verify(self, email: str, code: str) -> None:
        normalized = normalize_email(email)
        entry = self._store.find(normalized, code.strip())
        if entry is None:
            raise InvalidCode()
        if self._clock() > _as_utc(entry.expires_at):
            raise Expired()
        if not self._store.consume(entry.id):
            raise InvalidCode()
        LOGGER.info("OTP verified successfully for: %s", normalized)


otp_manager = OtpManager(
    OtpStore(),
    mail_dispatcher,
    ttl_seconds=settings.otp_ttl_seconds,
    subject=settings.otp_email_subject,
    brand=settings.mail_sender_name,
)
