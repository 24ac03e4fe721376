from __future__ import annotations

from django.contrib import admin

from .models import Cart, CartItem, Order, OrderItem, OrderStatusHistory
from .services import record_status_change


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    raw_id_fields = ("product", "variant")


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "updated_at")
    search_fields = ("user__email",)
    inlines = (CartItemInline,)


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "cart", "product", "variant", "qty", "updated_at")
    search_fields = ("cart__user__email", "product__name", "variant__sku")
    raw_id_fields = ("cart", "product", "variant")


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = (
        "product_name",
        "variant_name",
        "sku",
        "unit_price",
        "qty",
        "line_total",
        "custom_design_refs",
        "custom_text",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ("status", "comment", "changed_by", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "status",
        "payment_status",
        "total",
        "currency",
        "coupon_code",
        "created_at",
    )
    list_filter = ("status", "payment_status")
    search_fields = ("id", "user__email", "gateway_order_id", "gateway_payment_id")
    inlines = (OrderItemInline, OrderStatusHistoryInline)

    fieldsets = (
        (None, {"fields": ("user", "status", "payment_status", "notes")}),
        (
            "Amounts",
            {"fields": ("currency", "subtotal", "discount", "shipping", "tax", "total", "coupon", "coupon_code")},
        ),
        ("Payment", {"fields": ("gateway_order_id", "gateway_payment_id")}),
        (
            "Shipping address",
            {
                "fields": (
                    "shipping_full_name",
                    "shipping_phone",
                    "shipping_street",
                    "shipping_city",
                    "shipping_state",
                    "shipping_zip_code",
                    "shipping_country",
                )
            },
        ),
        ("Meta", {"fields": ("created_at", "updated_at")}),
    )

    # Amounts and payment references are what the customer paid; never edited by hand.
    readonly_fields = (
        "user",
        "currency",
        "subtotal",
        "discount",
        "shipping",
        "tax",
        "total",
        "coupon",
        "coupon_code",
        "gateway_order_id",
        "gateway_payment_id",
        "created_at",
        "updated_at",
    )

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if change and "status" in form.changed_data:
            record_status_change(
                order=obj,
                status=obj.status,
                comment="Status changed in admin",
                changed_by=request.user,
            )
