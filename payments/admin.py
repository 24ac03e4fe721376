from __future__ import annotations

from django.contrib import admin

from .models import PaymentAttempt


@admin.register(PaymentAttempt)
class PaymentAttemptAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "gateway_order_id",
        "gateway_payment_id",
        "status",
        "amount",
        "currency",
        "order",
        "created_at",
    )
    list_filter = ("status", "currency")
    search_fields = ("gateway_order_id", "gateway_payment_id", "user__email", "coupon_code")
    raw_id_fields = ("user", "address", "coupon", "order")
    ordering = ("-created_at", "-id")

    fieldsets = (
        (None, {"fields": ("user", "status", "failure_reason", "order")}),
        ("Gateway", {"fields": ("gateway_order_id", "gateway_payment_id", "raw_response")}),
        (
            "Amounts",
            {"fields": ("currency", "subtotal", "discount", "shipping", "tax", "amount", "amount_minor")},
        ),
        ("Checkout", {"fields": ("address", "address_snapshot", "coupon", "coupon_code", "lines")}),
        ("Meta", {"fields": ("created_at", "updated_at")}),
    )

    readonly_fields = (
        "gateway_order_id",
        "gateway_payment_id",
        "raw_response",
        "currency",
        "subtotal",
        "discount",
        "shipping",
        "tax",
        "amount",
        "amount_minor",
        "address_snapshot",
        "lines",
        "created_at",
        "updated_at",
    )
