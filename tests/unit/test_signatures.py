from __future__ import annotations

import hashlib
import hmac

from payments.services.razorpay import (
    compute_payment_signature,
    compute_webhook_signature,
    verify_payment_signature,
    verify_webhook_signature,
)

SECRET = "rzp_test_secret"


def test_payment_signature_is_hmac_sha256_of_order_and_payment_ids():
    expected = hmac.new(SECRET.encode(), b"order_ABC|pay_XYZ", hashlib.sha256).hexdigest()

    assert compute_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", secret=SECRET) == expected


def test_verify_payment_signature_accepts_genuine_callback():
    sig = compute_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", secret=SECRET)

    assert verify_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", signature=sig, secret=SECRET)


def test_verify_payment_signature_rejects_tampering():
    sig = compute_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", secret=SECRET)

    assert not verify_payment_signature(order_id="order_ABC", payment_id="pay_OTHER", signature=sig, secret=SECRET)
    assert not verify_payment_signature(order_id="order_OTHER", payment_id="pay_XYZ", signature=sig, secret=SECRET)
    assert not verify_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", signature=sig, secret="wrong")
    assert not verify_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", signature=sig[:-1] + "0", secret=SECRET)


def test_verify_payment_signature_fails_closed_on_missing_input():
    assert not verify_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", signature="", secret=SECRET)
    assert not verify_payment_signature(order_id="order_ABC", payment_id="pay_XYZ", signature="abc", secret="")


def test_webhook_signature_covers_raw_body():
    body = b'{"event":"payment.captured"}'
    sig = compute_webhook_signature(body=body, secret="whsec")

    assert verify_webhook_signature(body=body, signature=sig, secret="whsec")
    assert not verify_webhook_signature(body=body + b" ", signature=sig, secret="whsec")
    assert not verify_webhook_signature(body=body, signature=sig, secret="")
