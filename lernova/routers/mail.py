from fastapi import APIRouter, HTTPException, status

from lernova.schemas.errors import MailDeliveryError
from lernova.schemas.mail import (
    ContactReplyRequest,
    MailMessage,
    MailResponse,
    SendEmailRequest,
)
from lernova.services import email
from lernova.services.templates import contact_reply_subject, render_contact_reply

router = APIRouter(prefix="/email", tags=["email"])


def _dispatch(message: MailMessage, multipart: bool) -> None:
    try:
        email.mail_dispatcher.dispatch(message, multipart=multipart)
    except MailDeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=exc.message,
        ) from exc


@router.post("/send", response_model=MailResponse)
def send_email(payload: SendEmailRequest) -> MailResponse:
    _dispatch(
        MailMessage(
            recipient=payload.to,
            subject=payload.subject,
            html_body=payload.html,
            text_body=payload.text,
        ),
        multipart=True,
    )
    return MailResponse(success=True, message="Email sent successfully")


@router.post("/contact-reply", response_model=MailResponse)
def send_contact_reply(payload: ContactReplyRequest) -> MailResponse:
    brand = email.mail_dispatcher.sender_name
    html = render_contact_reply(
        payload.name, payload.original_message, payload.reply, brand=brand
    )
    _dispatch(
        MailMessage(
            recipient=payload.to,
            subject=contact_reply_subject(brand),
            html_body=html,
        ),
        multipart=False,
    )
    return MailResponse(success=True, message="Reply sent successfully")
