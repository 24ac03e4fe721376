from __future__ import annotations

from decimal import Decimal

from ninja import Schema


class CouponOut(Schema):
    code: str
    name: str = ""
    description: str = ""
    discount_type: str
    discount_value: Decimal
    min_purchase_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    applicable_to: str
    valid_until: str | None = None


class CouponValidateIn(Schema):
    code: str
    item_ids: list[int] | None = None


class IneligibleItemOut(Schema):
    item_id: int
    product_name: str
    reason: str


class CouponValidationFlagsOut(Schema):
    is_valid: bool
    is_fully_valid: bool
    is_partially_valid: bool


class CouponValidateOut(Schema):
    code: str
    status: str
    message: str
    discount_amount: Decimal
    subtotal: Decimal
    eligible_subtotal: Decimal
    final_amount: Decimal
    eligible_item_ids: list[int] = []
    ineligible_items: list[IneligibleItemOut] = []
    validation: CouponValidationFlagsOut
    coupon: CouponOut | None = None


class RedemptionOut(Schema):
    code: str
    order_id: int
    discount_amount: Decimal
    created_at: str
