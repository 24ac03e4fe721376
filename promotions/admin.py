from __future__ import annotations

from django.contrib import admin

from .models import Coupon, CouponRedemption


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "is_active",
        "discount_type",
        "discount_value",
        "min_purchase_amount",
        "max_discount_amount",
        "applicable_to",
        "usage_limit",
        "usage_limit_per_user",
        "times_redeemed",
        "valid_from",
        "valid_until",
    )

    search_fields = ("code", "name")
    list_filter = ("is_active", "discount_type", "applicable_to")
    readonly_fields = ("times_redeemed", "created_at", "updated_at")
    filter_horizontal = ("categories", "products")
    fieldsets = (
        (None, {"fields": ("code", "name", "description", "is_active", "valid_from", "valid_until")}),
        (
            "Discount",
            {
                "fields": (
                    "discount_type",
                    "discount_value",
                    "min_purchase_amount",
                    "max_discount_amount",
                )
            },
        ),
        ("Applies to", {"fields": ("applicable_to", "categories", "products")}),
        (
            "Usage limits",
            {
                "fields": (
                    "usage_limit",
                    "usage_limit_per_user",
                    "times_redeemed",
                )
            },
        ),
        ("Meta", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(CouponRedemption)
class CouponRedemptionAdmin(admin.ModelAdmin):
    list_display = ("id", "coupon", "user", "order", "discount_amount", "created_at")
    search_fields = ("coupon__code", "user__email")
    raw_id_fields = ("coupon", "user", "order")
    readonly_fields = ("created_at",)
