from __future__ import annotations

from decimal import Decimal

from ninja import Schema


class CreateOrderIn(Schema):
    address_id: int | None = None
    amount: Decimal
    item_ids: list[int] | None = None
    coupon_code: str | None = None


class CreateOrderOut(Schema):
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key: str


class VerifyIn(Schema):
    gateway_order_id: str = ""
    gateway_payment_id: str = ""
    signature: str = ""


class VerifyOut(Schema):
    verified: bool
    order_id: int


class WebhookOut(Schema):
    status: str
