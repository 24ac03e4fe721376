from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ninja import Schema


class CartItemAddIn(Schema):
    product_id: int
    variant_id: int | None = None
    qty: int = 1
    custom_design_refs: list[str] | str | None = None
    custom_text: str | None = None


class CartItemUpdateIn(Schema):
    qty: int | None = None
    custom_design_refs: list[str] | str | None = None
    custom_text: str | None = None


class CartItemOut(Schema):
    id: int
    product_id: int
    product_name: str
    variant_id: int | None = None
    variant_name: str = ""
    sku: str = ""
    qty: int
    unit_price: Decimal
    mrp_price: Decimal
    line_total: Decimal
    custom_design_refs: list[str] = []
    custom_text: str = ""


class CartOut(Schema):
    currency: str
    items: list[CartItemOut]
    item_count: int
    subtotal: Decimal
    mrp_total: Decimal
    savings: Decimal


class CheckoutPreviewIn(Schema):
    item_ids: list[int] | None = None
    coupon_code: str | None = None


class IneligibleItemOut(Schema):
    item_id: int
    product_name: str
    reason: str


class CouponResultOut(Schema):
    code: str
    status: str
    message: str
    is_valid: bool
    discount_amount: Decimal
    eligible_item_ids: list[int] = []
    ineligible_items: list[IneligibleItemOut] = []


class CheckoutPreviewOut(Schema):
    currency: str
    items: list[CartItemOut]
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    coupon: CouponResultOut | None = None


class OrderItemOut(Schema):
    id: int
    product_id: int | None = None
    variant_id: int | None = None
    product_name: str
    variant_name: str = ""
    sku: str = ""
    unit_price: Decimal
    qty: int
    line_total: Decimal
    custom_design_refs: list[str] = []
    custom_text: str = ""


class OrderStatusOut(Schema):
    status: str
    comment: str = ""
    created_at: datetime


class ShippingAddressOut(Schema):
    full_name: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""


class OrderOut(Schema):
    id: int
    status: str
    status_label: str = ""
    payment_status: str
    currency: str
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    coupon_code: str = ""
    gateway_order_id: str
    gateway_payment_id: str = ""
    shipping_address: ShippingAddressOut
    items: list[OrderItemOut]
    status_history: list[OrderStatusOut] = []
    created_at: datetime

    @staticmethod
    def resolve_status_label(obj):
        return str(obj.get_status_display())

    @staticmethod
    def resolve_shipping_address(obj):
        return {
            "full_name": obj.shipping_full_name,
            "phone": obj.shipping_phone,
            "street": obj.shipping_street,
            "city": obj.shipping_city,
            "state": obj.shipping_state,
            "zip_code": obj.shipping_zip_code,
            "country": obj.shipping_country,
        }
