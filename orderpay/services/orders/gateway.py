"""Razorpay Orders API adapter.

Creates remote orders over the REST API with a bounded timeout. Failures are
surfaced as `GatewayError` and never retried here.
"""

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from orderpay.common.config import CommonSettings, settings
from orderpay.common.errors import GatewayError
from orderpay.common.logging import logger
from orderpay.common.metrics import gateway_errors_total, gateway_request_seconds


@dataclass(frozen=True)
class RemoteOrder:
    """Subset of the gateway order echoed back to clients."""

    remote_order_id: str
    amount: int
    currency: str


class RazorpayGateway:
    """Thin client for `POST /orders` on the Razorpay API."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        default_currency: str = "INR",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.default_currency = default_currency
        self._client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, config: CommonSettings = settings) -> "RazorpayGateway":
        return cls(
            key_id=config.razorpay_key_id,
            key_secret=config.razorpay_key_secret,
            base_url=config.razorpay_base_url,
            timeout=config.gateway_timeout_seconds,
            default_currency=config.default_currency,
        )

    def create_remote_order(
        self,
        amount_minor_units: int,
        currency: str | None = None,
        receipt: str = "",
        metadata: Mapping[str, str] | None = None,
    ) -> RemoteOrder:
        """Create a gateway order for `amount_minor_units` (paise, cents, ...)."""

        if (
            isinstance(amount_minor_units, bool)
            or not isinstance(amount_minor_units, int)
            or amount_minor_units <= 0
        ):
            raise GatewayError("amount must be a positive integer in the smallest currency unit")

        payload = {
            "amount": amount_minor_units,
            "currency": (currency or self.default_currency).upper(),
            "receipt": receipt,
            "notes": dict(metadata or {}),
        }
        try:
            with gateway_request_seconds.labels(
                service=settings.service_name, operation="create_order"
            ).time():
                resp = self._client.post("/orders", json=payload)
        except httpx.HTTPError as exc:
            gateway_errors_total.labels(service=settings.service_name, operation="create_order").inc()
            logger.error("gateway create_order transport error: %s", exc)
            raise GatewayError(f"Payment gateway unreachable: {exc}") from exc

        if resp.status_code >= 400:
            gateway_errors_total.labels(service=settings.service_name, operation="create_order").inc()
            message = _error_description(resp)
            logger.error("gateway rejected create_order status=%s error=%s", resp.status_code, message)
            raise GatewayError(message)

        try:
            body = resp.json()
            return RemoteOrder(
                remote_order_id=body["id"],
                amount=body.get("amount", amount_minor_units),
                currency=body.get("currency", payload["currency"]),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise GatewayError("Malformed payment gateway response") from exc

    def close(self) -> None:
        self._client.close()


def _error_description(resp: httpx.Response) -> str:
    # Razorpay errors look like {"error": {"code": ..., "description": ...}}
    try:
        error = resp.json().get("error") or {}
        description = error.get("description")
    except (ValueError, AttributeError):
        description = None
    return description or f"Payment gateway error (HTTP {resp.status_code})"
