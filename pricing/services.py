from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings


MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Amount in paise (or cents) as the gateway expects it."""
    return int((Decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def unit_price_for(product, variant=None) -> Decimal:
    """Live unit price of a product, optionally a specific variant of it."""
    base = product.selling_price if product.selling_price is not None else product.base_price
    modifier = ZERO
    if variant is not None:
        if variant.price_override is not None:
            base = variant.price_override
        modifier = Decimal(variant.price_modifier or 0)
    return quantize_money(Decimal(base) + modifier)


def mrp_price_for(product, variant=None) -> Decimal:
    modifier = Decimal(variant.price_modifier or 0) if variant is not None else ZERO
    return quantize_money(Decimal(product.base_price) + modifier)


def _setting_decimal(name: str, default: str) -> Decimal | None:
    raw = str(getattr(settings, name, default) or "").strip()
    if not raw:
        return None
    try:
        return Decimal(raw)
    except InvalidOperation as e:
        raise ValueError(f"{name} is not a valid decimal: {raw!r}") from e


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    currency: str

    @property
    def discounted_subtotal(self) -> Decimal:
        return quantize_money(self.subtotal - self.discount)


def compute_totals(*, subtotal: Decimal, discount: Decimal = ZERO) -> CheckoutTotals:
    subtotal_q = quantize_money(subtotal)
    discount_q = min(quantize_money(discount), subtotal_q)
    if discount_q < 0:
        discount_q = ZERO
    discounted = subtotal_q - discount_q

    shipping = quantize_money(_setting_decimal("CHECKOUT_SHIPPING_FEE", "0") or ZERO)
    threshold = _setting_decimal("CHECKOUT_FREE_SHIPPING_THRESHOLD", "")
    if threshold is not None and discounted >= threshold:
        shipping = ZERO
    if subtotal_q <= 0:
        shipping = ZERO

    rate = _setting_decimal("CHECKOUT_TAX_RATE", "0") or Decimal("0")
    tax = quantize_money(discounted * rate)

    total = quantize_money(discounted + shipping + tax)
    currency = (getattr(settings, "CHECKOUT_CURRENCY", "INR") or "INR").upper()

    return CheckoutTotals(
        subtotal=subtotal_q,
        discount=discount_q,
        shipping=shipping,
        tax=tax,
        total=total,
        currency=currency,
    )


def discount_percent(*, mrp: Decimal, selling: Decimal) -> int | None:
    if mrp <= 0 or selling >= mrp:
        return None
    pct = int(((mrp - selling) / mrp * Decimal(100)).quantize(Decimal("1")))
    return max(0, min(100, pct))


def price_summary(product, variant=None) -> dict:
    """Storefront price block: MRP, selling price and the rounded saving."""
    mrp = mrp_price_for(product, variant)
    selling = unit_price_for(product, variant)
    return {
        "currency": (getattr(settings, "CHECKOUT_CURRENCY", "INR") or "INR").upper(),
        "mrp": mrp,
        "selling": selling,
        "discount_percent": discount_percent(mrp=mrp, selling=selling),
    }
