from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PaymentMethod(str, Enum):
    ESEWA = "esewa"
    KHALTI = "khalti"


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class OrderItem:
    course_id: str
    price: Decimal


@dataclass(frozen=True)
class OrderBatch:
    batch_id: str
    order_ids: tuple[str, ...]
