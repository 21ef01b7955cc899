from decimal import Decimal
import re

import pytest

from lernova.models.db_operation import _select_one_or_none
from lernova.schemas.errors import BatchError
from lernova.schemas.orders import OrderItem, PaymentMethod
from lernova.services.orders import OrderBatchManager, OrderStore, generate_batch_id

ITEMS = [
    OrderItem(course_id="course1", price=Decimal("500")),
    OrderItem(course_id="course2", price=Decimal("300")),
]


class FlakyStore(OrderStore):
    def __init__(self, failing_course):
        self._failing_course = failing_course

    def insert_order(self, **fields):
        if fields["course_id"] == self._failing_course:
            raise RuntimeError("insert rejected")
        return super().insert_order(**fields)


def test_batch_id_has_time_prefix_and_random_suffix():
    batch_id = generate_batch_id()

    assert re.fullmatch(r"\d{13}-[0-9a-f]{8}", batch_id)
    assert generate_batch_id() != batch_id


def test_create_batch_writes_one_pending_order_per_item(batch_orders):
    manager = OrderBatchManager(OrderStore(), max_workers=4)

    batch = manager.create_batch("user-1", PaymentMethod.ESEWA, ITEMS)

    assert len(batch.order_ids) == 2
    orders = batch_orders(batch.batch_id)
    assert {order.id for order in orders} == set(batch.order_ids)
    assert [(order.course_id, order.amount) for order in orders] == [
        ("course1", Decimal("500")),
        ("course2", Decimal("300")),
    ]
    for order in orders:
        assert order.user_id == "user-1"
        assert order.payment_method == "esewa"
        assert order.status == "pending"
        assert order.transaction_uuid == batch.batch_id
        assert order.payment_reference is None


def test_each_checkout_gets_its_own_batch():
    manager = OrderBatchManager(OrderStore())

    first = manager.create_batch("user-1", PaymentMethod.KHALTI, ITEMS[:1])
    second = manager.create_batch("user-1", PaymentMethod.KHALTI, ITEMS[:1])

    assert first.batch_id != second.batch_id


def test_failed_insert_fails_batch_and_leaves_siblings():
    manager = OrderBatchManager(FlakyStore("course2"))

    with pytest.raises(BatchError) as excinfo:
        manager.create_batch("user-1", PaymentMethod.ESEWA, ITEMS)

    [orphan_id] = excinfo.value.created_order_ids
    orphan = _select_one_or_none("order", id=orphan_id)
    assert orphan.course_id == "course1"
    assert orphan.status == "pending"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_empty_batch_is_rejected():
    with pytest.raises(BatchError):
        OrderBatchManager(OrderStore()).create_batch("user-1", PaymentMethod.ESEWA, [])


def test_backfill_reference_updates_every_order(batch_orders):
    manager = OrderBatchManager(OrderStore())
    batch = manager.create_batch("user-1", PaymentMethod.KHALTI, ITEMS)

    manager.backfill_reference(batch.order_ids, "pidx-123")

    assert {order.payment_reference for order in batch_orders(batch.batch_id)} == {
        "pidx-123"
    }


def test_backfill_reference_fails_for_unknown_order():
    manager = OrderBatchManager(OrderStore())
    batch = manager.create_batch("user-1", PaymentMethod.KHALTI, ITEMS[:1])

    with pytest.raises(BatchError) as excinfo:
        manager.backfill_reference([batch.order_ids[0], "missing-order"], "pidx-123")

    assert excinfo.value.created_order_ids == (batch.order_ids[0],)
