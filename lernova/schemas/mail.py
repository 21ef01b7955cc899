from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, field_validator


@dataclass(frozen=True)
class MailMessage:
    recipient: str
    subject: str
    html_body: str
    text_body: Optional[str] = None


@dataclass(frozen=True)
class SmtpCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class MailEnvelope:
    sender: str
    recipient: str
    message: str


def _normalize_address(value: str) -> str:
    cleaned = value.strip()
    if "@" not in cleaned or any(ch in cleaned for ch in "\r\n<>"):
        raise ValueError("A valid email address is required")
    return cleaned


class SendEmailRequest(BaseModel):
    to: str = Field(min_length=3, max_length=255)
    subject: str = Field(min_length=1, max_length=255)
    html: str = Field(min_length=1)
    text: Optional[str] = None

    @field_validator("to")
    @classmethod
    def normalize_to(cls, value: str) -> str:
        return _normalize_address(value)

    @field_validator("subject")
    @classmethod
    def single_line_subject(cls, value: str) -> str:
        if "\r" in value or "\n" in value:
            raise ValueError("Subject must be a single line")
        return value


class ContactReplyRequest(BaseModel):
    to: str = Field(min_length=3, max_length=255)
    name: str = Field(min_length=1, max_length=255)
    original_message: str = Field(alias="originalMessage", min_length=1)
    reply: str = Field(min_length=1)

    @field_validator("to")
    @classmethod
    def normalize_to(cls, value: str) -> str:
        return _normalize_address(value)


class MailResponse(BaseModel):
    success: bool
    message: str
