from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lernova.schemas.orders import OrderItem


class CourseLine(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    price: Decimal = Field(ge=0)


class PaymentRequest(BaseModel):
    """Checkout request, either one ``courseId``/``amount`` or a ``courses`` list."""

    model_config = ConfigDict(populate_by_name=True)

    course_id: Optional[str] = Field(default=None, alias="courseId", max_length=64)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    courses: Optional[list[CourseLine]] = None
    total_amount: Optional[Decimal] = Field(default=None, alias="totalAmount", gt=0)
    course_name: Optional[str] = Field(default=None, alias="courseName", max_length=255)
    success_url: Optional[str] = Field(default=None, alias="successUrl")
    failure_url: Optional[str] = Field(default=None, alias="failureUrl")

    @model_validator(mode="after")
    def require_items_and_total(self) -> "PaymentRequest":
        if not self.courses and not self.course_id:
            raise ValueError("Missing required fields")
        if self.payable_total() is None:
            raise ValueError("Missing required fields")
        return self

    def order_items(self) -> list[OrderItem]:
        if self.courses:
            return [OrderItem(course_id=line.id, price=line.price) for line in self.courses]
        return [OrderItem(course_id=self.course_id, price=self.amount or Decimal("0"))]

    def payable_total(self) -> Optional[Decimal]:
        return self.total_amount or self.amount


@dataclass(frozen=True)
class PaymentInitiation:
    batch_id: str
    order_ids: tuple[str, ...]
    payment_url: str
    correlation_token: str
    form_data: Optional[dict[str, str]] = None


class EsewaInitiationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    order_ids: list[str] = Field(alias="orderIds")
    payment_url: str = Field(alias="paymentUrl")
    form_data: dict[str, str] = Field(alias="formData")


class KhaltiInitiationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    order_id: str = Field(alias="orderId")
    order_ids: list[str] = Field(alias="orderIds")
    payment_url: str = Field(alias="paymentUrl")
    pidx: str
