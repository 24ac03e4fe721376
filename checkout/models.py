from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models


class Cart(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"cart:user:{self.user_id}"


class CartItem(models.Model):
    cart = models.ForeignKey(
        Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "catalog.Product", on_delete=models.CASCADE, related_name="cart_items"
    )
    variant = models.ForeignKey(
        "catalog.Variant",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    qty = models.PositiveIntegerField(default=1)

    # Opaque identifiers of uploaded artwork (object storage keys or URLs).
    custom_design_refs = models.JSONField(default=list, blank=True)
    custom_text = models.CharField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product", "variant"],
                condition=models.Q(variant__isnull=False),
                name="uniq_cart_product_variant",
            ),
            models.UniqueConstraint(
                fields=["cart", "product"],
                condition=models.Q(variant__isnull=True),
                name="uniq_cart_product_no_variant",
            ),
        ]
        ordering = ["id"]

    def __str__(self) -> str:
        return f"cart:{self.cart_id} product:{self.product_id} variant:{self.variant_id} x{self.qty}"


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING_REVIEW = "pending_review", "Pending review"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"
        PROCESSING = "processing", "Processing"
        SHIPPED = "shipped", "Shipped"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        SUCCESS = "success", "Success"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    status = models.CharField(
        max_length=32, choices=Status.choices, default=Status.PENDING_REVIEW)
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)

    currency = models.CharField(max_length=3, default="INR")

    subtotal = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))

    coupon = models.ForeignKey(
        "promotions.Coupon",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="orders",
    )
    coupon_code = models.CharField(max_length=40, blank=True, default="")

    gateway_order_id = models.CharField(max_length=80, unique=True)
    gateway_payment_id = models.CharField(max_length=80, blank=True, default="")

    # Shipping address snapshot (copied from accounts.UserAddress)
    shipping_full_name = models.CharField(max_length=200, blank=True, default="")
    shipping_phone = models.CharField(max_length=32, blank=True, default="")
    shipping_street = models.CharField(max_length=255, blank=True, default="")
    shipping_city = models.CharField(max_length=120, blank=True, default="")
    shipping_state = models.CharField(max_length=120, blank=True, default="")
    shipping_zip_code = models.CharField(max_length=32, blank=True, default="")
    shipping_country = models.CharField(max_length=2, blank=True, default="")

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "-created_at"], name="checkout_or_user_id_7a21c4_idx"),
            models.Index(fields=["status", "-created_at"], name="checkout_or_status_3e90b1_idx"),
        ]
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"order:{self.id} user:{self.user_id} {self.status}"

    def set_shipping_address(self, snapshot: dict) -> None:
        self.shipping_full_name = snapshot.get("full_name", "")
        self.shipping_phone = snapshot.get("phone", "")
        self.shipping_street = snapshot.get("street", "")
        self.shipping_city = snapshot.get("city", "")
        self.shipping_state = snapshot.get("state", "")
        self.shipping_zip_code = snapshot.get("zip_code", "")
        self.shipping_country = snapshot.get("country", "")


class OrderItem(models.Model):
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "catalog.Product",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="order_items",
    )
    variant = models.ForeignKey(
        "catalog.Variant",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="order_items",
    )

    # Snapshots; later catalog edits must not change a placed order.
    product_name = models.CharField(max_length=255)
    variant_name = models.CharField(max_length=255, blank=True, default="")
    sku = models.CharField(max_length=64, blank=True, default="")

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    qty = models.PositiveIntegerField(default=1)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    custom_design_refs = models.JSONField(default=list, blank=True)
    custom_text = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["id"]

    def save(self, *args, **kwargs):
        if self.line_total is None:
            self.line_total = (Decimal(self.unit_price) * int(self.qty)).quantize(Decimal("0.01"))
        return super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"order:{self.order_id} {self.product_name} x{self.qty}"


class OrderStatusHistory(models.Model):
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=32, choices=Order.Status.choices)
    comment = models.CharField(max_length=255, blank=True, default="")
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name_plural = "order status history"

    def __str__(self) -> str:
        return f"order:{self.order_id} {self.status}"
