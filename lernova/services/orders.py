from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
import logging
import time
from typing import Callable, Iterable, Sequence, TypeVar
import uuid

from lernova.config import settings
from lernova.models.db_operation import _add_record, _update_records
from lernova.schemas.errors import BatchError
from lernova.schemas.orders import OrderBatch, OrderItem, OrderStatus, PaymentMethod

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def generate_batch_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class OrderStore:
    def insert_order(
        self,
        *,
        user_id: str,
        course_id: str,
        amount,
        payment_method: PaymentMethod,
        transaction_uuid: str,
    ) -> str:
        now = datetime.now(timezone.utc)
        entry = _add_record(
            "order",
            user_id=user_id,
            course_id=course_id,
            amount=amount,
            payment_method=payment_method.value,
            status=OrderStatus.PENDING.value,
            transaction_uuid=transaction_uuid,
            created_at=now,
            updated_at=now,
        )
        return entry.id

    def set_payment_reference(self, order_id: str, reference: str) -> bool:
        updated = _update_records(
            "order",
            values={
                "payment_reference": reference,
                "updated_at": datetime.now(timezone.utc),
            },
            id=order_id,
        )
        return updated > 0


class OrderBatchManager:
    """Creates the pending orders of one checkout attempt."""

    def __init__(self, store: OrderStore, max_workers: int = 8) -> None:
        self._store = store
        self._max_workers = max(1, max_workers)

    def create_batch(
        self, user_id: str, payment_method: PaymentMethod, items: Sequence[OrderItem]
    ) -> OrderBatch:
        if not items:
            raise BatchError("At least one course is required")
        batch_id = generate_batch_id()

        def insert(item: OrderItem) -> str:
            return self._store.insert_order(
                user_id=user_id,
                course_id=item.course_id,
                amount=item.price,
                payment_method=payment_method,
                transaction_uuid=batch_id,
            )

        order_ids, errors = self._fan_out(insert, items)
        if errors:
            LOGGER.error(
                "Order creation failed for batch %s (%d of %d); orphaned orders: %s",
                batch_id,
                len(errors),
                len(items),
                order_ids,
            )
            raise BatchError("Failed to create order", tuple(order_ids)) from errors[0]

        LOGGER.info("Created orders for batch %s: %s", batch_id, order_ids)
        return OrderBatch(batch_id=batch_id, order_ids=tuple(order_ids))

    def backfill_reference(self, order_ids: Sequence[str], reference: str) -> None:
        def update(order_id: str) -> str:
            if not self._store.set_payment_reference(order_id, reference):
                raise LookupError(f"Order {order_id} not found")
            return order_id

        updated, errors = self._fan_out(update, order_ids)
        if errors:
            LOGGER.error(
                "Failed to save payment reference on %d of %d orders",
                len(errors),
                len(order_ids),
            )
            raise BatchError("Failed to save payment reference", tuple(updated)) from errors[0]

    def _fan_out(
        self, func: Callable[[T], R], args: Iterable[T]
    ) -> tuple[list[R], list[BaseException]]:
        args = list(args)
        if not args:
            return [], []
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(args))) as pool:
            futures = [pool.submit(func, arg) for arg in args]
        results, errors = [], []
        for future in futures:
            error = future.exception()
            if error is None:
                results.append(future.result())
            else:
                errors.append(error)
        return results, errors


order_batch_manager = OrderBatchManager(OrderStore(), settings.order_fanout_workers)
