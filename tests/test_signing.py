import base64
from decimal import Decimal
import hashlib
import hmac

import pytest

from lernova.services.signing import (
    ESEWA_SIGNED_FIELD_NAMES,
    build_signature_message,
    esewa_signature,
    format_amount,
    key_authorization_header,
    sign_fields,
    to_subunits,
)

SECRET = "8gBm/:&EnhH.1/q"


def _reference_signature(message: str) -> str:
    digest = hmac.new(SECRET.encode(), message.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def test_esewa_signature_signs_fields_in_declared_order():
    signed = esewa_signature("800", "T1", "EPAYTEST", SECRET)

    assert signed.signed_field_names == "total_amount,transaction_uuid,product_code"
    assert signed.signature == _reference_signature(
        "total_amount=800,transaction_uuid=T1,product_code=EPAYTEST"
    )


def test_esewa_signature_is_deterministic():
    first = esewa_signature("800", "T1", "EPAYTEST", SECRET)
    second = esewa_signature("800", "T1", "EPAYTEST", SECRET)

    assert first == second


@pytest.mark.parametrize(
    "total_amount, transaction_uuid, product_code, secret",
    [
        ("801", "T1", "EPAYTEST", SECRET),
        ("800", "T2", "EPAYTEST", SECRET),
        ("800", "T1", "EPAYLIVE", SECRET),
        ("800", "T1", "EPAYTEST", "other-secret"),
    ],
)
def test_changing_any_input_changes_the_signature(
    total_amount, transaction_uuid, product_code, secret
):
    baseline = esewa_signature("800", "T1", "EPAYTEST", SECRET).signature

    changed = esewa_signature(total_amount, transaction_uuid, product_code, secret)

    assert changed.signature != baseline


def test_signature_ignores_unsigned_fields():
    fields = {
        "total_amount": "800",
        "transaction_uuid": "T1",
        "product_code": "EPAYTEST",
        "success_url": "http://localhost:8080/payment/success",
    }

    signed = sign_fields(fields, SECRET)

    assert signed == esewa_signature("800", "T1", "EPAYTEST", SECRET)


def test_build_signature_message_requires_every_signed_field():
    with pytest.raises(KeyError):
        build_signature_message({"total_amount": "800"}, ESEWA_SIGNED_FIELD_NAMES)


def test_key_authorization_header():
    assert key_authorization_header("abc") == {"Authorization": "Key abc"}


@pytest.mark.parametrize(
    "amount, expected",
    [
        (199.5, 19950),
        (Decimal("10.125"), 1013),
        ("0.005", 1),
        (500, 50000),
    ],
)
def test_to_subunits_rounds_half_up(amount, expected):
    assert to_subunits(amount) == expected


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("800.00"), "800"),
        (Decimal("199.50"), "199.5"),
        (800, "800"),
        (Decimal("1000"), "1000"),
    ],
)
def test_format_amount(amount, expected):
    assert format_amount(amount) == expected
