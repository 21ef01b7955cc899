from __future__ import annotations

from decimal import Decimal
import http.client
import json
import logging
from typing import Any, Optional, Sequence
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from lernova.config import settings
from lernova.schemas.errors import (
    ConfigurationError,
    GatewayUnavailable,
    InvalidPaymentRequest,
    MalformedGatewayResponse,
)
from lernova.schemas.orders import OrderBatch, OrderItem, PaymentMethod
from lernova.schemas.payments import PaymentInitiation, PaymentRequest
from lernova.schemas.tokens import CustomerIdentity
from lernova.services.orders import OrderBatchManager, order_batch_manager
from lernova.services.signing import (
    esewa_signature,
    format_amount,
    key_authorization_header,
    to_subunits,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CUSTOMER_PHONE = "9800000000"


def _check_declared_total(items: Sequence[OrderItem], total: Decimal) -> None:
    item_sum = sum((item.price for item in items), Decimal("0"))
    if item_sum != total:
        LOGGER.warning(
            "Declared total %s differs from sum of course prices %s", total, item_sum
        )


class PaymentGateway:
    method: PaymentMethod
    persists_correlation_token = False

    def __init__(self, batch_manager: OrderBatchManager, site_url: str) -> None:
        self._batch_manager = batch_manager
        self._site_url = site_url.rstrip("/")

    def initiate(
        self, customer: CustomerIdentity, request: PaymentRequest
    ) -> PaymentInitiation:
        self.validate(customer)
        items = request.order_items()
        total = request.payable_total()
        _check_declared_total(items, total)

        batch = self._batch_manager.create_batch(customer.user_id, self.method, items)
        payload = self.build_payload(customer, request, batch, total)
        credentials = self.authenticate(payload)
        response = self.call(payload, credentials)
        token = self.extract_correlation_token(response)

        if self.persists_correlation_token:
            self._batch_manager.backfill_reference(batch.order_ids, token)

        LOGGER.info(
            "%s payment initiated: batch=%s orders=%d",
            self.method.value,
            batch.batch_id,
            len(batch.order_ids),
        )
        return PaymentInitiation(
            batch_id=batch.batch_id,
            order_ids=batch.order_ids,
            payment_url=response["payment_url"],
            correlation_token=token,
            form_data=response.get("form_data"),
        )

    def validate(self, customer: CustomerIdentity) -> None:
        pass

    def build_payload(
        self,
        customer: CustomerIdentity,
        request: PaymentRequest,
        batch: OrderBatch,
        total: Decimal,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def authenticate(self, payload: dict[str, Any]) -> dict[str, str]:
        raise NotImplementedError

    def call(self, payload: dict[str, Any], credentials: dict[str, str]) -> dict[str, Any]:
        raise NotImplementedError

    def extract_correlation_token(self, response: dict[str, Any]) -> str:
        raise NotImplementedError


class EsewaGateway(PaymentGateway):
    """HMAC-signed form handed back to the browser, which posts it to eSewa."""

    method = PaymentMethod.ESEWA

    def __init__(
        self,
        batch_manager: OrderBatchManager,
        site_url: str,
        secret_key: str,
        product_code: str,
        payment_url: str,
    ) -> None:
        super().__init__(batch_manager, site_url)
        self._secret_key = secret_key
        self._product_code = product_code
        self._payment_url = payment_url

    def validate(self, customer: CustomerIdentity) -> None:
        if not self._secret_key:
            raise ConfigurationError("eSewa secret key is not configured")

    def build_payload(self, customer, request, batch, total):
        total_amount = format_amount(total)
        return {
            "amount": total_amount,
            "tax_amount": "0",
            "total_amount": total_amount,
            "transaction_uuid": batch.batch_id,
            "product_code": self._product_code,
            "product_service_charge": "0",
            "product_delivery_charge": "0",
            "success_url": request.success_url
            or f"{self._site_url}/payment/success?method=esewa",
            "failure_url": request.failure_url
            or f"{self._site_url}/payment/failure?method=esewa",
        }

    def authenticate(self, payload):
        signed = esewa_signature(
            payload["total_amount"],
            payload["transaction_uuid"],
            payload["product_code"],
            self._secret_key,
        )
        return {
            "signed_field_names": signed.signed_field_names,
            "signature": signed.signature,
        }

    def call(self, payload, credentials):
        return {"payment_url": self._payment_url, "form_data": {**payload, **credentials}}

    def extract_correlation_token(self, response):
        token = response.get("form_data", {}).get("transaction_uuid")
        if not token:
            raise MalformedGatewayResponse("eSewa form is missing transaction_uuid")
        return token


class KhaltiGateway(PaymentGateway):
    """Server-to-server ``epayment/initiate`` call authenticated with ``Key``."""

    method = PaymentMethod.KHALTI
    persists_correlation_token = True

    def __init__(
        self,
        batch_manager: OrderBatchManager,
        site_url: str,
        secret_key: str,
        base_url: str,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(batch_manager, site_url)
        self._secret_key = secret_key
        self._initiate_url = f"{base_url.rstrip('/')}/epayment/initiate/"
        self._timeout = timeout

    def validate(self, customer: CustomerIdentity) -> None:
        if not self._secret_key:
            raise ConfigurationError("Khalti secret key is not configured")
        if not customer.email:
            raise InvalidPaymentRequest("Email is required for Khalti payment")

    def build_payload(self, customer, request, batch, total):
        return {
            "return_url": request.success_url or f"{self._site_url}/payment/success",
            "website_url": self._site_url,
            "amount": to_subunits(total),
            "purchase_order_id": batch.batch_id,
            "purchase_order_name": request.course_name or "Course Purchase",
            "customer_info": {
                "name": customer.full_name or customer.email.split("@")[0],
                "email": customer.email,
                "phone": customer.phone or DEFAULT_CUSTOMER_PHONE,
            },
        }

    def authenticate(self, payload):
        return key_authorization_header(self._secret_key)

    def call(self, payload, credentials):
        request = Request(
            self._initiate_url,
            data=json.dumps(payload).encode("utf-8"),
            headers={**credentials, "Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urlopen(request, timeout=self._timeout) as response:
                raw_body = response.read()
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("Khalti API error status=%s response=%s", exc.code, error_body)
            raise GatewayUnavailable(_error_detail(error_body)) from exc
        except http.client.HTTPException as exc:
            LOGGER.error("Khalti API returned a broken HTTP response: %r", exc)
            raise GatewayUnavailable() from exc
        except OSError as exc:
            LOGGER.error("Failed to reach Khalti API: %s", exc)
            raise GatewayUnavailable() from exc

        try:
            data = json.loads(raw_body.decode("utf-8"))
        except ValueError as exc:
            raise MalformedGatewayResponse("Khalti returned an unreadable response") from exc
        if not isinstance(data, dict):
            raise MalformedGatewayResponse("Khalti returned an unexpected response")
        return data

    def extract_correlation_token(self, response):
        pidx = response.get("pidx")
        if not pidx:
            LOGGER.error("No pidx in Khalti response: %s", response)
            raise MalformedGatewayResponse("Khalti did not return a payment ID (pidx)")
        if not response.get("payment_url"):
            raise MalformedGatewayResponse("Khalti did not return a payment URL")
        return pidx


def _error_detail(body: str) -> Optional[str]:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("detail"), str):
        return data["detail"]
    return None


esewa_gateway = EsewaGateway(
    order_batch_manager,
    settings.site_url,
    secret_key=settings.esewa_secret_key,
    product_code=settings.esewa_product_code,
    payment_url=settings.esewa_payment_url,
)
khalti_gateway = KhaltiGateway(
    order_batch_manager,
    settings.site_url,
    secret_key=settings.khalti_secret_key,
    base_url=settings.khalti_base_url,
    timeout=settings.khalti_timeout_seconds,
)
