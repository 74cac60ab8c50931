"""Order database model.

One row per checkout attempt. This table is the system of record for local
order state; the gateway keeps its own record keyed by `gateway_order_id`.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from orderpay.common.db import Base


class Order(Base):
    """Local order record."""

    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_user_id_created_at", "user_id", "created_at"),)

    order_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String, index=True)
    user_email: Mapped[str] = mapped_column(String)
    items: Mapped[list] = mapped_column(JSON)
    total_amount: Mapped[float] = mapped_column(Float)
    user_details: Mapped[dict] = mapped_column(JSON)
    payment_method: Mapped[str] = mapped_column(String, default="razorpay")
    gateway_order_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String, nullable=True)
    gateway_signature: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, index=True)
    # Fields merged in by the administrative status update that have no column.
    extra_fields: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# Wire (JSON) name -> column attribute.
WIRE_FIELDS: dict[str, str] = {
    "userId": "user_id",
    "userEmail": "user_email",
    "items": "items",
    "totalAmount": "total_amount",
    "userDetails": "user_details",
    "paymentMethod": "payment_method",
    "razorpayOrderId": "gateway_order_id",
    "razorpayPaymentId": "gateway_payment_id",
    "razorpaySignature": "gateway_signature",
    "status": "status",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "paidAt": "paid_at",
}


def _iso(value: datetime | None) -> str | None:
    """ISO-8601 in UTC; SQLite hands back naive values that are already UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()


def order_to_dict(order: Order) -> dict[str, Any]:
    """Serialize an order the way API clients see it."""

    data: dict[str, Any] = dict(order.extra_fields or {})
    data.update(
        {
            "id": order.order_id,
            "userId": order.user_id,
            "userEmail": order.user_email,
            "items": order.items,
            "totalAmount": order.total_amount,
            "userDetails": order.user_details,
            "paymentMethod": order.payment_method,
            "razorpayOrderId": order.gateway_order_id,
            "razorpayPaymentId": order.gateway_payment_id,
            "razorpaySignature": order.gateway_signature,
            "status": order.status,
            "createdAt": _iso(order.created_at),
            "updatedAt": _iso(order.updated_at),
        }
    )
    if order.paid_at is not None:
        data["paidAt"] = _iso(order.paid_at)
    return data
