"""Razorpay checkout signature helpers."""

import hashlib
import hmac


def compute_signature(order_ref: str, payment_ref: str, secret: str) -> str:
    """Hex HMAC-SHA256 of `order_ref|payment_ref` keyed with `secret`."""

    message = f"{order_ref}|{payment_ref}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(order_ref, payment_ref, secret, candidate) -> bool:
    """Return True only when `candidate` matches the expected signature.

    Fails closed: missing refs or a malformed candidate yield False instead of
    raising.
    """

    if not all(isinstance(value, str) for value in (order_ref, payment_ref, secret, candidate)):
        return False
    if not candidate:
        return False
    expected = compute_signature(order_ref, payment_ref, secret)
    try:
        return hmac.compare_digest(expected, candidate)
    except TypeError:
        # compare_digest rejects non-ASCII str input
        return False
