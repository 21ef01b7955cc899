import base64
import hashlib
import hmac
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence, Union

ESEWA_SIGNED_FIELD_NAMES = ("total_amount", "transaction_uuid", "product_code")

Amount = Union[int, float, str, Decimal]


@dataclass(frozen=True)
class FormSignature:
    signed_field_names: str
    signature: str


def build_signature_message(fields: Mapping[str, str], names: Sequence[str]) -> str:
    """Join ``name=value`` pairs with commas, in the order of ``names``."""
    missing = [name for name in names if name not in fields]
    if missing:
        raise KeyError(f"Missing signed fields: {', '.join(missing)}")
    return ",".join(f"{name}={fields[name]}" for name in names)


def sign_message(message: str, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign_fields(
    fields: Mapping[str, str], secret: str, names: Sequence[str] = ESEWA_SIGNED_FIELD_NAMES
) -> FormSignature:
    return FormSignature(
        signed_field_names=",".join(names),
        signature=sign_message(build_signature_message(fields, names), secret),
    )


def esewa_signature(
    total_amount: str, transaction_uuid: str, product_code: str, secret: str
) -> FormSignature:
    return sign_fields(
        {
            "total_amount": total_amount,
            "transaction_uuid": transaction_uuid,
            "product_code": product_code,
        },
        secret,
    )


def key_authorization_header(secret: str) -> dict[str, str]:
    return {"Authorization": f"Key {secret}"}


def to_subunits(amount: Amount) -> int:
    """Convert a base-currency amount to its smallest unit (x100, half-up)."""
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount: Amount) -> str:
    """Render an amount the way the storefront sends it: ``800`` not ``800.00``."""
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return str(value.normalize())
