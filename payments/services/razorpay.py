from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any

import requests
from django.conf import settings


RAZORPAY_API_BASE_URL_DEFAULT = "https://api.razorpay.com/v1"


@dataclass(frozen=True)
class RazorpayConfig:
    key_id: str
    key_secret: str
    webhook_secret: str = ""
    base_url: str = RAZORPAY_API_BASE_URL_DEFAULT
    timeout: int = 20

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)


class RazorpayApiError(RuntimeError):
    pass


class RazorpayNotConfigured(RazorpayApiError):
    pass


def get_razorpay_config() -> RazorpayConfig:
    base_url = str(
        getattr(settings, "RAZORPAY_API_BASE_URL", "") or RAZORPAY_API_BASE_URL_DEFAULT
    ).strip().rstrip("/")
    return RazorpayConfig(
        key_id=str(getattr(settings, "RAZORPAY_KEY_ID", "") or "").strip(),
        key_secret=str(getattr(settings, "RAZORPAY_KEY_SECRET", "") or "").strip(),
        webhook_secret=str(getattr(settings, "RAZORPAY_WEBHOOK_SECRET", "") or "").strip(),
        base_url=base_url,
        timeout=int(getattr(settings, "RAZORPAY_TIMEOUT_SECONDS", 20) or 20),
    )


def compute_payment_signature(*, order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(*, order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    if not (order_id and payment_id and signature and secret):
        return False
    expected = compute_payment_signature(order_id=order_id, payment_id=payment_id, secret=secret)
    return hmac.compare_digest(expected, str(signature).strip())


def compute_webhook_signature(*, body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(*, body: bytes, signature: str, secret: str) -> bool:
    if not (signature and secret):
        return False
    expected = compute_webhook_signature(body=body or b"", secret=secret)
    return hmac.compare_digest(expected, str(signature).strip())


class RazorpayClient:
    def __init__(self, cfg: RazorpayConfig | None = None) -> None:
        self.cfg = cfg or get_razorpay_config()

    @property
    def key_id(self) -> str:
        return self.cfg.key_id

    def create_order(
        self,
        *,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.cfg.is_configured:
            raise RazorpayNotConfigured("Razorpay credentials are not configured")

        url = f"{self.cfg.base_url}/orders"
        payload = {
            "amount": int(amount_minor),
            "currency": currency,
            "receipt": receipt,
            "notes": {str(k): str(v) for k, v in (notes or {}).items()},
        }
        try:
            r = requests.post(
                url,
                json=payload,
                auth=(self.cfg.key_id, self.cfg.key_secret),
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            raise RazorpayApiError(f"Razorpay order create failed: {e}") from e

        if r.status_code >= 400:
            raise RazorpayApiError(
                f"Razorpay order create failed: {r.status_code} {r.text[:300]}"
            )
        try:
            data = r.json()
        except ValueError as e:
            raise RazorpayApiError("Razorpay order create: invalid JSON") from e
        if not isinstance(data, dict) or not data.get("id"):
            raise RazorpayApiError("Razorpay order create: unexpected response")
        return data
