"""Compute a checkout signature and optionally submit it for verification.

Useful for exercising `/api/verify-payment` without a real checkout.
"""

import argparse
import json
import os

import httpx

from orderpay.common.signature import compute_signature


def main() -> None:
    """Parse CLI args, print the signature, optionally POST it."""

    parser = argparse.ArgumentParser(description="Sign a gateway order/payment pair.")
    parser.add_argument("--order-id", required=True, help="Gateway order id (order_...)")
    parser.add_argument("--payment-id", required=True, help="Gateway payment id (pay_...)")
    parser.add_argument("--secret", default=os.getenv("RAZORPAY_KEY_SECRET"))
    parser.add_argument("--local-order-id", default=None, help="Submit to the API for this local order")
    parser.add_argument("--base-url", default="http://localhost:8080")
    parser.add_argument("--tamper", action="store_true", help="Flip the last hex digit before sending")
    args = parser.parse_args()

    if not args.secret:
        raise SystemExit("Provide --secret or set RAZORPAY_KEY_SECRET")

    signature = compute_signature(args.order_id, args.payment_id, args.secret)
    if args.tamper:
        signature = signature[:-1] + ("0" if signature[-1] != "0" else "1")
    print(signature)

    if args.local_order_id is None:
        return

    resp = httpx.post(
        f"{args.base_url}/api/verify-payment",
        json={
            "razorpay_order_id": args.order_id,
            "razorpay_payment_id": args.payment_id,
            "razorpay_signature": signature,
            "firebaseOrderId": args.local_order_id,
        },
        timeout=10.0,
    )
    print(f"status={resp.status_code}")
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
