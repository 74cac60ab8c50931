"""Order service: composes the gateway, the store and signature checks.

Every operation is a single request/response against the two collaborators.
Nothing is retried. If the store write in `create_order` fails after the
gateway accepted the order, the remote order is left orphaned; its id is
logged so it can be reconciled against the gateway's order listing.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from orderpay.common.config import CommonSettings
from orderpay.common.errors import StoreError, ValidationError
from orderpay.common.logging import logger, order_id_ctx
from orderpay.common.metrics import orders_created_total, payment_verifications_total
from orderpay.common.signature import verify_signature
from orderpay.common.state_machine import FAILED, PAID, PENDING, validate_transition
from orderpay.services.orders.store import SERVER_TIMESTAMP


PAYMENT_METHOD = "razorpay"


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    message: str


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class OrderService:
    """Order lifecycle: create, verify, update and read."""

    def __init__(self, store, gateway, config: CommonSettings) -> None:
        self.store = store
        self.gateway = gateway
        self.config = config

    def create_order(
        self,
        user_id: str | None,
        user_email: str | None,
        items: list | None,
        total_amount: float | None,
        user_details: Mapping[str, Any] | None,
        amount: int | None,
    ) -> dict[str, Any]:
        """Create the gateway order, then the local pending order.

        Validation runs before any side effect.
        """

        inputs = {
            "userId": user_id,
            "userEmail": user_email,
            "items": items,
            "totalAmount": total_amount,
            "userDetails": user_details,
            "amount": amount,
        }
        missing = [name for name, value in inputs.items() if _is_blank(value)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("amount must be a positive integer in the smallest currency unit")

        remote = self.gateway.create_remote_order(
            amount,
            self.config.default_currency,
            receipt=str(user_id),
            metadata={"userId": user_id, "userEmail": user_email},
        )
        logger.info("gateway order created remote_order_id=%s", remote.remote_order_id)

        try:
            local_id = self.store.create(
                {
                    "userId": user_id,
                    "userEmail": user_email,
                    "items": items,
                    "totalAmount": total_amount,
                    "userDetails": user_details,
                    "paymentMethod": PAYMENT_METHOD,
                    "razorpayOrderId": remote.remote_order_id,
                    "razorpayPaymentId": None,
                    "razorpaySignature": None,
                    "status": PENDING,
                }
            )
        except StoreError:
            logger.error(
                "orphaned gateway order remote_order_id=%s user_id=%s",
                remote.remote_order_id,
                user_id,
            )
            raise

        order_id_ctx.set(local_id)
        orders_created_total.labels(service=self.config.service_name).inc()
        return {
            "razorpayOrderId": remote.remote_order_id,
            "firebaseOrderId": local_id,
            "amount": remote.amount,
            "currency": remote.currency,
        }

    def verify_payment(
        self,
        razorpay_order_id: str | None,
        razorpay_payment_id: str | None,
        razorpay_signature: str | None,
        firebase_order_id: str | None,
    ) -> VerificationResult:
        """Check the checkout signature and record the outcome on the order."""

        if _is_blank(firebase_order_id):
            raise ValidationError("Missing required fields: firebaseOrderId")
        order_id_ctx.set(firebase_order_id)

        order = self.store.get_by_id(firebase_order_id)
        authentic = verify_signature(
            razorpay_order_id,
            razorpay_payment_id,
            self.config.razorpay_key_secret,
            razorpay_signature,
        )
        # A valid signature only proves payment of the gateway order it names.
        bound = razorpay_order_id == order["razorpayOrderId"]
        if authentic and not bound:
            logger.warning(
                "gateway order mismatch razorpay_order_id=%s expected=%s",
                razorpay_order_id,
                order["razorpayOrderId"],
            )
        authentic = authentic and bound
        target = PAID if authentic else FAILED
        validate_transition(order["status"], target)

        if authentic:
            fields = {
                "razorpayPaymentId": razorpay_payment_id,
                "razorpaySignature": razorpay_signature,
                "status": PAID,
                "paidAt": SERVER_TIMESTAMP,
            }
        else:
            fields = {"status": FAILED}
        self.store.update_by_id(firebase_order_id, fields, expected_status=order["status"])

        payment_verifications_total.labels(
            service=self.config.service_name, outcome="verified" if authentic else "rejected"
        ).inc()
        if not authentic:
            logger.warning("payment signature mismatch razorpay_order_id=%s", razorpay_order_id)
            return VerificationResult(False, "Payment verification failed")
        logger.info("payment verified razorpay_payment_id=%s", razorpay_payment_id)
        return VerificationResult(True, "Payment verified successfully")

    def update_order_status(
        self,
        firebase_order_id: str | None,
        status: str | None,
        payment_details: Mapping[str, Any] | None = None,
    ) -> None:
        """Overwrite status and merge arbitrary fields. No transition checks."""

        missing = [
            name
            for name, value in (("firebaseOrderId", firebase_order_id), ("status", status))
            if _is_blank(value)
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if payment_details is not None and not isinstance(payment_details, Mapping):
            raise ValidationError("paymentDetails must be an object")

        order_id_ctx.set(firebase_order_id)
        fields: dict[str, Any] = {"status": status}
        if payment_details:
            fields.update(payment_details)
        self.store.update_by_id(firebase_order_id, fields)
        logger.info("order status overwritten status=%s", status)

    def get_order(self, order_id: str) -> dict[str, Any]:
        return self.store.get_by_id(order_id)

    def list_orders_for_user(self, user_id: str) -> list[dict[str, Any]]:
        return self.store.query_by_user(user_id)
