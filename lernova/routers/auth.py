from fastapi import APIRouter, HTTPException, status

from lernova.schemas.errors import (
    Expired,
    InvalidCode,
    MailDeliveryError,
    OtpStorageError,
)
from lernova.schemas.otp import OtpRequest, OtpResponse, OtpVerifyRequest
from lernova.services import otp

router = APIRouter(prefix="/otp", tags=["otp"])


@router.post("/send", response_model=OtpResponse)
def send_otp(payload: OtpRequest) -> OtpResponse:
    try:
        otp.otp_manager.issue(payload.email, payload.full_name)
    except MailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=exc.message,
        ) from exc
    except OtpStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.message,
        ) from exc
    return OtpResponse(success=True, message="OTP sent successfully")


@router.post("/verify", response_model=OtpResponse)
def verify_otp(payload: OtpVerifyRequest) -> OtpResponse:
    try:
        otp.otp_manager.verify(payload.email, payload.otp)
    except (InvalidCode, Expired) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc
    return OtpResponse(success=True, message="Email verified successfully")
