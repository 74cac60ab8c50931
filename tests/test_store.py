"""Order store adapter against in-memory SQLite."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from orderpay.common.errors import InvalidTransition, NotFound, StoreError
from orderpay.services.orders.store import SERVER_TIMESTAMP


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _new_order(user_id="u1", **overrides):
    fields = {
        "userId": user_id,
        "userEmail": f"{user_id}@example.com",
        "items": [{"sku": "X", "qty": 1}],
        "totalAmount": 100,
        "userDetails": {"name": "A"},
        "paymentMethod": "razorpay",
        "razorpayOrderId": "order_abc",
        "razorpayPaymentId": None,
        "razorpaySignature": None,
        "status": "pending",
    }
    fields.update(overrides)
    return fields


def test_create_assigns_id_and_timestamps(store):
    order_id = store.create(_new_order())

    order = store.get_by_id(order_id)
    assert order["id"] == order_id
    assert order["status"] == "pending"
    assert order["items"] == [{"sku": "X", "qty": 1}]
    assert order["userDetails"] == {"name": "A"}
    assert order["razorpayPaymentId"] is None
    assert order["createdAt"] == order["updatedAt"]
    assert "paidAt" not in order


def test_create_ignores_caller_timestamps_and_id(store):
    order_id = store.create(_new_order(id="chosen", createdAt="1999-01-01T00:00:00"))

    order = store.get_by_id(order_id)
    assert order_id != "chosen"
    assert not order["createdAt"].startswith("1999")


def test_get_missing_order_raises_not_found(store):
    with pytest.raises(NotFound):
        store.get_by_id("does-not-exist")


def test_update_merges_fields_and_advances_updated_at(store):
    order_id = store.create(_new_order())
    before = store.get_by_id(order_id)

    store.update_by_id(order_id, {"status": "paid", "paidAt": SERVER_TIMESTAMP, "courier": "bluedart"})

    after = store.get_by_id(order_id)
    assert after["status"] == "paid"
    assert after["courier"] == "bluedart"
    assert after["createdAt"] == before["createdAt"]
    assert _ts(after["updatedAt"]) > _ts(before["updatedAt"])
    assert _ts(after["paidAt"]) == _ts(after["updatedAt"])


def test_update_cannot_change_id_or_created_at(store):
    order_id = store.create(_new_order())
    created_at = store.get_by_id(order_id)["createdAt"]

    store.update_by_id(order_id, {"id": "hijacked", "createdAt": SERVER_TIMESTAMP, "status": "failed"})

    order = store.get_by_id(order_id)
    assert order["id"] == order_id
    assert order["createdAt"] == created_at
    with pytest.raises(NotFound):
        store.get_by_id("hijacked")


def test_update_missing_order_raises_not_found(store):
    with pytest.raises(NotFound):
        store.update_by_id("missing", {"status": "paid"})


def test_guarded_update_rejects_stale_status(store):
    order_id = store.create(_new_order(status="paid"))

    with pytest.raises(InvalidTransition):
        store.update_by_id(order_id, {"status": "failed"}, expected_status="pending")

    assert store.get_by_id(order_id)["status"] == "paid"


def test_query_by_user_is_newest_first(store):
    first = store.create(_new_order())
    second = store.create(_new_order())
    store.create(_new_order(user_id="someone-else"))
    third = store.create(_new_order())

    orders = store.query_by_user("u1")

    assert [o["id"] for o in orders] == [third, second, first]
    created = [_ts(o["createdAt"]) for o in orders]
    assert created == sorted(created, reverse=True)
    assert len(set(created)) == len(created)


def test_query_by_user_without_orders_is_empty(store):
    assert store.query_by_user("nobody") == []


def _backdate(store, order_id, column, value):
    """Write a raw timestamp the way SQLite stores it, bypassing the store."""

    with store.session_factory() as db:
        db.execute(
            text(f"UPDATE orders SET {column} = :value WHERE order_id = :order_id"),
            {"value": value, "order_id": order_id},
        )
        db.commit()


def test_timestamps_are_serialized_in_utc(store):
    order_id = store.create(_new_order())
    store.update_by_id(order_id, {"status": "paid", "paidAt": SERVER_TIMESTAMP})

    order = store.get_by_id(order_id)
    for field in ("createdAt", "updatedAt", "paidAt"):
        assert order[field].endswith("+00:00")
        assert _ts(order[field]).utcoffset() == timedelta(0)


def test_updated_at_moves_past_a_stored_value_ahead_of_the_database_clock(store):
    order_id = store.create(_new_order())
    _backdate(store, order_id, "updated_at", "2099-01-01 00:00:00.000")

    store.update_by_id(order_id, {"status": "failed"})

    order = store.get_by_id(order_id)
    assert _ts(order["updatedAt"]) == datetime(2099, 1, 1, 0, 0, 0, 1000, tzinfo=timezone.utc)


def test_paid_at_matches_updated_at_when_stamped_together(store):
    order_id = store.create(_new_order())
    _backdate(store, order_id, "updated_at", "2099-01-01 00:00:00.000")

    store.update_by_id(order_id, {"status": "paid", "paidAt": SERVER_TIMESTAMP})

    order = store.get_by_id(order_id)
    assert order["paidAt"] == order["updatedAt"]
    assert _ts(order["paidAt"]) > datetime(2099, 1, 1, tzinfo=timezone.utc)


def test_created_at_lands_after_the_users_latest_order(store):
    first = store.create(_new_order())
    _backdate(store, first, "created_at", "2099-01-01 00:00:00.000")
    other_user = store.create(_new_order(user_id="someone-else"))

    second = store.create(_new_order())

    assert _ts(store.get_by_id(second)["createdAt"]) == datetime(2099, 1, 1, 0, 0, 0, 1000, tzinfo=timezone.utc)
    assert _ts(store.get_by_id(other_user)["createdAt"]).year < 2099
    assert [o["id"] for o in store.query_by_user("u1")] == [second, first]


def test_database_failures_surface_as_store_error(store):
    with store.session_factory() as db:
        db.execute(text("DROP TABLE orders"))
        db.commit()

    with pytest.raises(StoreError):
        store.create(_new_order())
    with pytest.raises(StoreError):
        store.query_by_user("u1")


def test_store_error_message_does_not_leak_sql(store):
    with store.session_factory() as db:
        db.execute(text("DROP TABLE orders"))
        db.commit()

    with pytest.raises(StoreError) as exc_info:
        store.create(_new_order(userEmail="leak@example.com"))

    assert str(exc_info.value) == "Order store create failed"
    assert "INSERT" not in str(exc_info.value)
    assert "leak@example.com" not in str(exc_info.value)
