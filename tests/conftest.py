"""Shared fixtures: in-memory store, fake gateway, wired service."""

import pytest

from orderpay.common.config import CommonSettings
from orderpay.common.db import Base, make_engine, make_session_factory
from orderpay.common.errors import GatewayError
from orderpay.services.orders.gateway import RemoteOrder
from orderpay.services.orders.service import OrderService
from orderpay.services.orders.store import OrderStore


SECRET = "test_key_secret"


class FakeGateway:
    """Records calls and hands back a canned remote order."""

    def __init__(self, remote_order_id: str = "order_abc") -> None:
        self.remote_order_id = remote_order_id
        self.calls: list[dict] = []
        self.error: GatewayError | None = None

    def create_remote_order(self, amount_minor_units, currency=None, receipt="", metadata=None):
        self.calls.append(
            {
                "amount": amount_minor_units,
                "currency": currency,
                "receipt": receipt,
                "metadata": dict(metadata or {}),
            }
        )
        if self.error is not None:
            raise self.error
        return RemoteOrder(self.remote_order_id, amount_minor_units, currency or "INR")

    def close(self) -> None:
        pass


@pytest.fixture
def config():
    return CommonSettings(
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret=SECRET,
        database_url="sqlite://",
        default_currency="INR",
    )


@pytest.fixture
def store():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield OrderStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def service(store, gateway, config):
    return OrderService(store, gateway, config)


@pytest.fixture
def order_request():
    """The example checkout used across service and API tests."""

    return {
        "userId": "u1",
        "userEmail": "a@b.com",
        "items": [{"sku": "X", "qty": 1}],
        "totalAmount": 100,
        "userDetails": {"name": "A"},
        "amount": 10000,
    }
