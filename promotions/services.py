from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Sequence

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from pricing.services import ZERO, quantize_money

from .models import Coupon, CouponRedemption, normalize_coupon_code

if TYPE_CHECKING:
    from checkout.cart import CartLine


logger = logging.getLogger(__name__)


class CouponStatus(str, Enum):
    FULLY_VALID = "fully_valid"
    PARTIALLY_VALID = "partially_valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class CouponScope:
    """Which cart lines a coupon may discount."""

    kind: str
    ids: frozenset[int] = frozenset()

    @classmethod
    def for_coupon(cls, coupon: Coupon) -> "CouponScope":
        if coupon.applicable_to == Coupon.Scope.CATEGORY:
            ids = coupon.categories.values_list("id", flat=True)
        elif coupon.applicable_to == Coupon.Scope.PRODUCT:
            ids = coupon.products.values_list("id", flat=True)
        else:
            return cls(kind=Coupon.Scope.ALL)
        return cls(kind=str(coupon.applicable_to), ids=frozenset(int(i) for i in ids))

    def exclusion_reason(self, line: "CartLine") -> str | None:
        if self.kind == Coupon.Scope.CATEGORY:
            if line.category_id is None or int(line.category_id) not in self.ids:
                return f"{line.product_name} is not in a category covered by this coupon"
            return None
        if self.kind == Coupon.Scope.PRODUCT:
            if int(line.product_id) not in self.ids:
                return f"{line.product_name} is not covered by this coupon"
            return None
        return None


@dataclass(frozen=True)
class IneligibleLine:
    line: "CartLine"
    reason: str


@dataclass(frozen=True)
class CouponValidation:
    status: CouponStatus
    message: str
    coupon: Coupon | None = None
    discount_amount: Decimal = ZERO
    eligible_lines: tuple = ()
    ineligible_lines: tuple = ()
    eligible_subtotal: Decimal = ZERO
    final_amount: Decimal = ZERO

    @property
    def is_valid(self) -> bool:
        return self.status != CouponStatus.INVALID

    @property
    def is_fully_valid(self) -> bool:
        return self.status == CouponStatus.FULLY_VALID

    @property
    def is_partially_valid(self) -> bool:
        return self.status == CouponStatus.PARTIALLY_VALID


def _invalid(message: str, *, subtotal: Decimal, coupon: Coupon | None = None, ineligible=()) -> CouponValidation:
    return CouponValidation(
        status=CouponStatus.INVALID,
        message=message,
        coupon=coupon,
        ineligible_lines=tuple(ineligible),
        final_amount=quantize_money(subtotal),
    )


def user_redemption_count(coupon: Coupon, user) -> int:
    return CouponRedemption.objects.filter(coupon=coupon, user=user).count()


def _usage_exhausted_message(coupon: Coupon, *, user=None) -> str | None:
    if coupon.usage_limit is not None and int(coupon.times_redeemed) >= int(coupon.usage_limit):
        return "Coupon usage limit has been reached"

    if user is not None and coupon.usage_limit_per_user is not None:
        if user_redemption_count(coupon, user) >= int(coupon.usage_limit_per_user):
            return "You have already used this coupon the maximum number of times"

    return None


def validate_coupon(
    *,
    code: str,
    lines: Sequence["CartLine"],
    subtotal: Decimal,
    user=None,
    now=None,
) -> CouponValidation:
    """Check a coupon code against cart lines.

    Ordinary ineligibility (unknown code, expired, minimum not met, no line in
    scope) is reported through the result status, never raised.
    """
    subtotal = quantize_money(Decimal(subtotal or 0))
    code = normalize_coupon_code(code)
    if not code:
        return _invalid("Coupon code is required", subtotal=subtotal)

    coupon = Coupon.objects.filter(code=code).first()
    if not coupon:
        return _invalid("Invalid coupon code", subtotal=subtotal)

    if not coupon.is_active:
        return _invalid("This coupon is no longer active", subtotal=subtotal, coupon=coupon)

    if not coupon.is_valid_now(now=now):
        return _invalid("Coupon has expired or is not yet valid", subtotal=subtotal, coupon=coupon)

    if coupon.min_purchase_amount is not None and subtotal < Decimal(coupon.min_purchase_amount):
        return _invalid(
            f"Minimum purchase of {quantize_money(coupon.min_purchase_amount)} required for this coupon",
            subtotal=subtotal,
            coupon=coupon,
        )

    exhausted = _usage_exhausted_message(coupon, user=user)
    if exhausted:
        return _invalid(exhausted, subtotal=subtotal, coupon=coupon)

    scope = CouponScope.for_coupon(coupon)
    eligible: list = []
    ineligible: list[IneligibleLine] = []
    for line in lines:
        reason = scope.exclusion_reason(line)
        if reason:
            ineligible.append(IneligibleLine(line=line, reason=reason))
        else:
            eligible.append(line)

    if not eligible:
        return _invalid(
            "Coupon is not applicable to any item in your cart",
            subtotal=subtotal,
            coupon=coupon,
            ineligible=ineligible,
        )

    eligible_subtotal = quantize_money(sum((line.line_total for line in eligible), ZERO))
    discount = quantize_money(coupon.get_discount_for(eligible_amount=eligible_subtotal))

    if ineligible:
        status = CouponStatus.PARTIALLY_VALID
        message = f"Coupon applied to {len(eligible)} of {len(eligible) + len(ineligible)} items"
    else:
        status = CouponStatus.FULLY_VALID
        message = "Coupon applied successfully"

    return CouponValidation(
        status=status,
        message=message,
        coupon=coupon,
        discount_amount=discount,
        eligible_lines=tuple(eligible),
        ineligible_lines=tuple(ineligible),
        eligible_subtotal=eligible_subtotal,
        final_amount=quantize_money(subtotal - discount),
    )


def available_coupons(*, now=None) -> list[Coupon]:
    now = now or timezone.now()
    qs = (
        Coupon.objects.filter(is_active=True)
        .filter(Q(valid_from__isnull=True) | Q(valid_from__lte=now))
        .filter(Q(valid_until__isnull=True) | Q(valid_until__gte=now))
        .filter(Q(usage_limit__isnull=True) | Q(times_redeemed__lt=F("usage_limit")))
        .order_by("code")
    )
    return list(qs)


def redeem_coupon(*, coupon: Coupon, user, order, discount_amount: Decimal) -> CouponRedemption:
    """Record a coupon use for a materialized order.

    The order is already paid for with the discount applied, so a limit that
    was exhausted concurrently is logged instead of refused.
    """
    with transaction.atomic():
        locked = Coupon.objects.select_for_update().get(id=coupon.id)

        redemption, created = CouponRedemption.objects.get_or_create(
            order=order,
            defaults={
                "coupon": locked,
                "user": user,
                "discount_amount": quantize_money(discount_amount),
            },
        )
        if not created:
            return redemption

        if locked.usage_limit is not None and int(locked.times_redeemed) >= int(locked.usage_limit):
            logger.warning(
                "Coupon redeemed past its usage limit",
                extra={"coupon": locked.code, "order_id": order.id},
            )
        if user is not None and locked.usage_limit_per_user is not None:
            # Count includes the redemption just created.
            if user_redemption_count(locked, user) > int(locked.usage_limit_per_user):
                logger.warning(
                    "Coupon redeemed past its per-user limit",
                    extra={"coupon": locked.code, "order_id": order.id, "user_id": user.id},
                )

        Coupon.objects.filter(id=locked.id).update(times_redeemed=F("times_redeemed") + 1)
        return redemption


def redemptions_for(user) -> Iterable[CouponRedemption]:
    return (
        CouponRedemption.objects.filter(user=user)
        .select_related("coupon", "order")
        .order_by("-created_at", "-id")
    )
