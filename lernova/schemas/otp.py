from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

OTP_LENGTH = 6


def normalize_email(value: str) -> str:
    cleaned = value.strip().lower()
    if "@" not in cleaned or any(ch in cleaned for ch in "\r\n<>"):
        raise ValueError("Email is required")
    return cleaned


class OtpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3, max_length=255)
    full_name: Optional[str] = Field(default=None, alias="fullName", max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class OtpVerifyRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    otp: str = Field(min_length=OTP_LENGTH, max_length=OTP_LENGTH)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("otp")
    @classmethod
    def strip_code(cls, value: str) -> str:
        return value.strip()


class OtpResponse(BaseModel):
    success: bool
    message: str


@dataclass(frozen=True)
class OtpRecord:
    email: str
    code: str
    expires_at: datetime
