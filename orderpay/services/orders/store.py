"""Order store adapter over the `orders` table.

Callers speak in wire field names (`userId`, `razorpayOrderId`, ...) and get
plain dicts back, so the service layer never touches ORM objects. Timestamps
are assigned by the database inside the write statement, never by callers:
pass `SERVER_TIMESTAMP` as a value to ask the store to stamp a field.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import timedelta
from typing import Any
from uuid import uuid4

from sqlalchemy import func, insert, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderpay.common.config import settings
from orderpay.common.errors import InvalidTransition, NotFound, StoreError
from orderpay.common.logging import logger
from orderpay.common.metrics import store_errors_total
from orderpay.services.orders.models import WIRE_FIELDS, Order, order_to_dict


SERVER_TIMESTAMP = object()

TIMESTAMP_FIELDS = {"createdAt", "updatedAt", "paidAt"}

# SQLite keeps DATETIME as text; this is the millisecond form SQLAlchemy reads back.
SQLITE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%f"


def db_now(dialect: str):
    """The database clock as a SQL expression."""

    if dialect == "sqlite":
        return func.strftime(SQLITE_TIMESTAMP_FORMAT, "now")
    return func.now()


def stamp_after(dialect: str, previous):
    """The database clock, pushed one tick past `previous` when it lags behind.

    `previous` is a SQL expression that may be NULL (first row of a user).
    """

    now = db_now(dialect)
    if dialect == "sqlite":
        nudged = func.strftime(SQLITE_TIMESTAMP_FORMAT, previous, "+0.001 seconds")
        return func.max(now, func.coalesce(nudged, now))
    nudged = previous + literal(timedelta(microseconds=1))
    return func.greatest(now, func.coalesce(nudged, now))


class OrderStore:
    """Create, fetch, update and query local orders."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with self.session_factory() as db:
                yield db
        except SQLAlchemyError as exc:
            store_errors_total.labels(service=settings.service_name, operation=operation).inc()
            logger.exception("order store %s failed: %s", operation, exc)
            # The driver message carries SQL and bound values; keep it in the log only.
            raise StoreError(f"Order store {operation} failed") from exc

    def _split(self, fields: Mapping[str, Any], stamp) -> tuple[dict[str, Any], dict[str, Any]]:
        """Route wire fields to columns; anything unknown lands in `extra_fields`."""

        columns: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for key, value in fields.items():
            if key == "id":
                continue
            if key in TIMESTAMP_FIELDS:
                # Only the store writes timestamps.
                if value is SERVER_TIMESTAMP and key != "createdAt":
                    columns[WIRE_FIELDS[key]] = stamp
                continue
            if key in WIRE_FIELDS:
                columns[WIRE_FIELDS[key]] = value
            else:
                extras[key] = value
        return columns, extras

    def create(self, fields: Mapping[str, Any]) -> str:
        """Insert a new order and return its generated id.

        `createdAt` lands after every earlier order of the same user, so a
        user's listing never has two orders with the same timestamp.
        """

        order_id = str(uuid4())
        with self._session("create") as db:
            dialect = db.get_bind().dialect.name
            latest = (
                select(func.max(Order.created_at))
                .where(Order.user_id == fields.get("userId"))
                .scalar_subquery()
            )
            stamp = stamp_after(dialect, latest)
            columns, extras = self._split(fields, stamp)
            columns.pop("updated_at", None)
            db.execute(
                insert(Order).values(
                    order_id=order_id,
                    **columns,
                    extra_fields=extras,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
            db.commit()
        return order_id

    def get_by_id(self, order_id: str) -> dict[str, Any]:
        with self._session("get") as db:
            order = db.get(Order, order_id)
            if order is None:
                raise NotFound("Order not found")
            return order_to_dict(order)

    def update_by_id(
        self,
        order_id: str,
        fields: Mapping[str, Any],
        expected_status: str | None = None,
    ) -> None:
        """Merge `fields` into one order and advance `updatedAt`.

        With `expected_status`, the write only lands if the row still has that
        status when the UPDATE runs; otherwise `InvalidTransition` is raised.
        """

        with self._session("update") as db:
            order = db.get(Order, order_id)
            if order is None:
                raise NotFound("Order not found")
            stamp = stamp_after(db.get_bind().dialect.name, Order.updated_at)
            columns, extras = self._split(fields, stamp)
            values = {**columns, "updated_at": stamp}
            if extras:
                values["extra_fields"] = {**(order.extra_fields or {}), **extras}

            stmt = update(Order).where(Order.order_id == order_id)
            if expected_status is not None:
                stmt = stmt.where(Order.status == expected_status)
            result = db.execute(stmt.values(**values).execution_options(synchronize_session=False))
            if result.rowcount != 1:
                db.rollback()
                raise InvalidTransition(
                    f"Order {order_id} is no longer {expected_status}"
                )
            db.commit()

    def query_by_user(self, user_id: str) -> list[dict[str, Any]]:
        """All orders of one user, newest first."""

        with self._session("query") as db:
            rows = db.execute(
                select(Order)
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.order_id.desc())
            ).scalars()
            return [order_to_dict(order) for order in rows]
