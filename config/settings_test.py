from __future__ import annotations

from .settings_base import *  # noqa: F403

DEBUG = False
SECRET_KEY = "test-secret-key-for-the-print-shop-suite"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "rzp_test_secret"
RAZORPAY_WEBHOOK_SECRET = "rzp_webhook_secret"

CHECKOUT_CURRENCY = "INR"
CHECKOUT_SHIPPING_FEE = "0.00"
CHECKOUT_FREE_SHIPPING_THRESHOLD = ""
CHECKOUT_TAX_RATE = "0"

LOGGING["root"]["level"] = "WARNING"  # type: ignore[name-defined]  # noqa: F405
