from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models


class PaymentAttempt(models.Model):
    """Bookkeeping for one gateway order; becomes an Order only after verification."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        SUCCESS = "success", "Success"
        FAILED = "failed", "Failed"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payment_attempts",
    )

    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.PENDING)
    failure_reason = models.CharField(max_length=255, blank=True, default="")

    # Null until the gateway has accepted the order.
    gateway_order_id = models.CharField(max_length=80, unique=True, null=True, blank=True)
    gateway_payment_id = models.CharField(max_length=80, blank=True, default="")

    currency = models.CharField(max_length=3, default="INR")
    subtotal = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount_minor = models.PositiveBigIntegerField(default=0)

    address = models.ForeignKey(
        "accounts.UserAddress",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payment_attempts",
    )
    address_snapshot = models.JSONField(default=dict, blank=True)

    coupon = models.ForeignKey(
        "promotions.Coupon",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payment_attempts",
    )
    coupon_code = models.CharField(max_length=40, blank=True, default="")

    # Authorized cart lines: [{item_id, product_id, variant_id, qty, unit_price}]
    lines = models.JSONField(default=list, blank=True)

    order = models.OneToOneField(
        "checkout.Order",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payment_attempt",
    )

    raw_response = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="payments_pa_user_id_5d8e2f_idx"),
            models.Index(fields=["status", "-created_at"], name="payments_pa_status_c41a97_idx"),
        ]

    def __str__(self) -> str:
        return f"attempt:{self.id} {self.gateway_order_id or '-'} {self.status}"
