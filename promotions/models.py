from __future__ import annotations

from decimal import Decimal

from django.db import models


def normalize_coupon_code(code: str | None) -> str:
    return (code or "").strip().upper()


class Coupon(models.Model):
    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED = "fixed", "Fixed amount"

    class Scope(models.TextChoices):
        ALL = "all", "All products"
        CATEGORY = "category", "Selected categories"
        PRODUCT = "product", "Selected products"

    code = models.CharField(max_length=40, unique=True)
    name = models.CharField(max_length=150, blank=True, default="")
    description = models.TextField(blank=True, default="")

    discount_type = models.CharField(
        max_length=20, choices=DiscountType.choices, default=DiscountType.PERCENTAGE
    )
    # Percent (10 == 10%) or a fixed amount, depending on discount_type.
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    min_purchase_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    max_discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )

    applicable_to = models.CharField(max_length=20, choices=Scope.choices, default=Scope.ALL)
    categories = models.ManyToManyField(
        "catalog.Category",
        blank=True,
        related_name="coupons",
        help_text="Used when applicable_to=category.",
    )
    products = models.ManyToManyField(
        "catalog.Product",
        blank=True,
        related_name="coupons",
        help_text="Used when applicable_to=product.",
    )

    # Usage limits count materialized (paid) orders only.
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    usage_limit_per_user = models.PositiveIntegerField(null=True, blank=True, default=1)
    times_redeemed = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:
        return self.code

    def save(self, *args, **kwargs):
        self.code = normalize_coupon_code(self.code)
        super().save(*args, **kwargs)

    def is_valid_now(self, *, now=None) -> bool:
        from django.utils import timezone

        now = now or timezone.now()
        if not self.is_active:
            return False
        if self.valid_from and now < self.valid_from:
            return False
        if self.valid_until and now > self.valid_until:
            return False
        return True

    def get_discount_for(self, *, eligible_amount: Decimal) -> Decimal:
        eligible_amount = Decimal(eligible_amount or 0)
        if eligible_amount <= 0:
            return Decimal("0.00")

        value = Decimal(self.discount_value or 0)
        if value <= 0:
            return Decimal("0.00")

        if self.discount_type == self.DiscountType.PERCENTAGE:
            pct = max(Decimal(0), min(Decimal(100), value))
            discount = eligible_amount * pct / Decimal(100)
        else:
            discount = value

        if self.max_discount_amount is not None:
            discount = min(discount, Decimal(self.max_discount_amount))

        return min(discount, eligible_amount)


class CouponRedemption(models.Model):
    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name="redemptions")
    user = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="coupon_redemptions",
    )
    order = models.OneToOneField(
        "checkout.Order",
        on_delete=models.CASCADE,
        related_name="coupon_redemption",
    )
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["coupon", "user"], name="promotions__coupon__6c1f2a_idx"),
            models.Index(fields=["coupon", "-created_at"], name="promotions__coupon__b84e0d_idx"),
        ]

    def __str__(self) -> str:
        return f"coupon:{self.coupon_id} order:{self.order_id} user:{self.user_id}"
