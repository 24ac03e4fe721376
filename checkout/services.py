from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from django.db import transaction

from pricing.services import CheckoutTotals, compute_totals, quantize_money
from promotions.services import CouponStatus, CouponValidation, validate_coupon

from .cart import CartLine, CartService, CartSummary
from .exceptions import CheckoutValidationError, NotFoundError
from .models import Order, OrderItem, OrderStatusHistory


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutQuote:
    cart: CartSummary
    totals: CheckoutTotals
    coupon: CouponValidation | None = None

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self.cart.lines


def build_quote(
    *,
    user,
    item_ids: Iterable[int] | None = None,
    coupon_code: str | None = None,
    cart_service: CartService | None = None,
) -> CheckoutQuote:
    """Aggregate the selected cart lines and price them, with an optional coupon.

    An invalid coupon is reported on the quote, not raised; callers that must
    refuse it check ``quote.coupon.status``.
    """
    cart_service = cart_service or CartService(user)
    summary = cart_service.summary(item_ids)

    if summary.missing_ids:
        raise NotFoundError("Cart item not found")
    if summary.is_empty:
        raise CheckoutValidationError("Cart is empty")

    validation = None
    discount = Decimal("0.00")
    if (coupon_code or "").strip():
        validation = validate_coupon(
            code=coupon_code,
            lines=summary.lines,
            subtotal=summary.subtotal,
            user=user,
        )
        if validation.status != CouponStatus.INVALID:
            discount = validation.discount_amount

    totals = compute_totals(subtotal=summary.subtotal, discount=discount)
    return CheckoutQuote(cart=summary, totals=totals, coupon=validation)


@dataclass(frozen=True)
class AuthorizedLine:
    """A cart line exactly as it was priced when the payment was started."""

    item_id: int
    product_id: int
    variant_id: int | None
    qty: int
    unit_price: Decimal

    @classmethod
    def from_cart_line(cls, line: CartLine) -> "AuthorizedLine":
        return cls(
            item_id=line.id,
            product_id=line.product_id,
            variant_id=line.variant_id,
            qty=line.qty,
            unit_price=line.unit_price,
        )

    @classmethod
    def from_snapshot(cls, data: dict) -> "AuthorizedLine":
        variant_id = data.get("variant_id")
        return cls(
            item_id=int(data["item_id"]),
            product_id=int(data["product_id"]),
            variant_id=int(variant_id) if variant_id is not None else None,
            qty=int(data["qty"]),
            unit_price=Decimal(str(data["unit_price"])),
        )

    def snapshot(self) -> dict:
        return {
            "item_id": self.item_id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "qty": self.qty,
            "unit_price": str(self.unit_price),
        }


def place_order(
    *,
    user,
    authorized: Sequence[AuthorizedLine],
    live: dict[int, CartLine],
    address_snapshot: dict,
    subtotal: Decimal,
    discount: Decimal,
    shipping: Decimal,
    tax: Decimal,
    total: Decimal,
    currency: str,
    gateway_order_id: str,
    gateway_payment_id: str,
    coupon=None,
) -> Order:
    """Persist a paid order from reconciled cart lines. Must run inside a transaction."""
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("place_order must run inside transaction.atomic()")

    order = Order(
        user=user,
        status=Order.Status.PENDING_REVIEW,
        payment_status=Order.PaymentStatus.SUCCESS,
        currency=currency,
        subtotal=quantize_money(subtotal),
        discount=quantize_money(discount),
        shipping=quantize_money(shipping),
        tax=quantize_money(tax),
        total=quantize_money(total),
        coupon=coupon,
        coupon_code=coupon.code if coupon else "",
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
    )
    order.set_shipping_address(address_snapshot)
    order.save()

    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product_id=a.product_id,
                variant_id=a.variant_id,
                product_name=live[a.item_id].product_name,
                variant_name=live[a.item_id].variant_name,
                sku=live[a.item_id].sku,
                unit_price=a.unit_price,
                qty=a.qty,
                line_total=quantize_money(a.unit_price * a.qty),
                custom_design_refs=list(live[a.item_id].design_refs),
                custom_text=live[a.item_id].custom_text,
            )
            for a in authorized
        ]
    )

    OrderStatusHistory.objects.create(
        order=order,
        status=order.status,
        comment="Order created",
    )
    return order


def record_status_change(*, order: Order, status: str, comment: str = "", changed_by=None) -> OrderStatusHistory:
    if status not in Order.Status.values:
        raise CheckoutValidationError("Invalid order status")
    return OrderStatusHistory.objects.create(
        order=order,
        status=status,
        comment=(comment or "").strip()[:255],
        changed_by=changed_by,
    )


def orders_for(user):
    return (
        Order.objects.filter(user=user)
        .prefetch_related("items", "status_history")
        .order_by("-created_at", "-id")
    )
