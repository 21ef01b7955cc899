from fastapi import APIRouter, Depends, Header, HTTPException, status

from lernova.schemas.errors import (
    BatchError,
    ConfigurationError,
    GatewayError,
    IntegrationError,
    InvalidPaymentRequest,
)
from lernova.schemas.payments import (
    EsewaInitiationResponse,
    KhaltiInitiationResponse,
    PaymentInitiation,
    PaymentRequest,
)
from lernova.schemas.tokens import CustomerIdentity, TokenError
from lernova.services import payments
from lernova.services.payments import PaymentGateway
from lernova.services.tokens import decode_access_token, parse_bearer

router = APIRouter(prefix="/payments", tags=["payments"])

_ERROR_STATUS = (
    (InvalidPaymentRequest, status.HTTP_400_BAD_REQUEST),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
    (BatchError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def get_customer(authorization: str | None = Header(default=None)) -> CustomerIdentity:
    try:
        return decode_access_token(parse_bearer(authorization))
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


def _initiate(
    gateway: PaymentGateway, customer: CustomerIdentity, payload: PaymentRequest
) -> PaymentInitiation:
    try:
        return gateway.initiate(customer, payload)
    except IntegrationError as exc:
        code = next(
            (code for kind, code in _ERROR_STATUS if isinstance(exc, kind)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        raise HTTPException(status_code=code, detail=exc.message) from exc


@router.post("/esewa/initiate", response_model=EsewaInitiationResponse)
def initiate_esewa_payment(
    payload: PaymentRequest, customer: CustomerIdentity = Depends(get_customer)
) -> EsewaInitiationResponse:
    result = _initiate(payments.esewa_gateway, customer, payload)
    return EsewaInitiationResponse(
        order_ids=list(result.order_ids),
        payment_url=result.payment_url,
        form_data=result.form_data or {},
    )


@router.post("/khalti/initiate", response_model=KhaltiInitiationResponse)
def initiate_khalti_payment(
    payload: PaymentRequest, customer: CustomerIdentity = Depends(get_customer)
) -> KhaltiInitiationResponse:
    result = _initiate(payments.khalti_gateway, customer, payload)
    return KhaltiInitiationResponse(
        order_id=result.order_ids[0],
        order_ids=list(result.order_ids),
        payment_url=result.payment_url,
        pidx=result.correlation_token,
    )
