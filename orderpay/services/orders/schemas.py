"""API request/response schemas for the order endpoints.

Request fields are optional at the schema level so that missing fields reach
the service and come back as a 400 envelope instead of FastAPI's 422.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class CreateOrderRequest(BaseModel):
    """Payload accepted by `POST /api/create-order`. `amount` is in paise."""

    model_config = ConfigDict(extra="ignore")

    userId: str | None = None
    userEmail: str | None = None
    items: list[Any] | None = None
    totalAmount: float | None = None
    userDetails: dict[str, Any] | None = None
    amount: int | None = None


class VerifyPaymentRequest(BaseModel):
    """Checkout callback fields forwarded by the client."""

    model_config = ConfigDict(extra="ignore")

    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None
    firebaseOrderId: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    firebaseOrderId: str | None = None
    status: str | None = None
    paymentDetails: dict[str, Any] | None = None


class CreateOrderResponse(BaseModel):
    success: bool = True
    razorpayOrderId: str
    firebaseOrderId: str
    amount: int
    currency: str


class MessageResponse(BaseModel):
    success: bool
    message: str


class OrderResponse(BaseModel):
    success: bool = True
    order: dict[str, Any]


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[dict[str, Any]]


class HealthResponse(BaseModel):
    success: bool = True
    message: str = "Server is running"
    timestamp: str
