from __future__ import annotations

from ninja import Router
from ninja.errors import HttpError

from accounts.auth import JWTAuth
from checkout.cart import CartService
from checkout.exceptions import NotFoundError

from .models import Coupon, normalize_coupon_code
from .schemas import CouponOut, CouponValidateIn, CouponValidateOut, RedemptionOut
from .services import available_coupons, redemptions_for, validate_coupon


router = Router(tags=["coupons"])
_auth = JWTAuth()


def _coupon_out(c: Coupon) -> dict:
    return {
        "code": c.code,
        "name": c.name,
        "description": c.description,
        "discount_type": c.discount_type,
        "discount_value": c.discount_value,
        "min_purchase_amount": c.min_purchase_amount,
        "max_discount_amount": c.max_discount_amount,
        "applicable_to": c.applicable_to,
        "valid_until": c.valid_until.isoformat() if c.valid_until else None,
    }


@router.get("/available", response=list[CouponOut])
def list_available(request):
    return [_coupon_out(c) for c in available_coupons()]


@router.post("/validate", response=CouponValidateOut, auth=_auth)
def validate(request, payload: CouponValidateIn):
    user = request.auth
    code = normalize_coupon_code(payload.code)
    if not code:
        raise HttpError(400, "Coupon code is required")

    # Always priced from the server-side cart, never from client totals.
    summary = CartService(user).summary(payload.item_ids)
    if summary.missing_ids:
        raise NotFoundError("Cart item not found")
    v = validate_coupon(code=code, lines=summary.lines, subtotal=summary.subtotal, user=user)

    return {
        "code": code,
        "status": v.status.value,
        "message": v.message,
        "discount_amount": v.discount_amount,
        "subtotal": summary.subtotal,
        "eligible_subtotal": v.eligible_subtotal,
        "final_amount": v.final_amount,
        "eligible_item_ids": [ln.id for ln in v.eligible_lines],
        "ineligible_items": [
            {"item_id": il.line.id, "product_name": il.line.product_name, "reason": il.reason}
            for il in v.ineligible_lines
        ],
        "validation": {
            "is_valid": v.is_valid,
            "is_fully_valid": v.is_fully_valid,
            "is_partially_valid": v.is_partially_valid,
        },
        "coupon": _coupon_out(v.coupon) if v.coupon is not None and v.is_valid else None,
    }


@router.get("/mine", response=list[RedemptionOut], auth=_auth)
def my_redemptions(request):
    return [
        {
            "code": r.coupon.code,
            "order_id": r.order_id,
            "discount_amount": r.discount_amount,
            "created_at": r.created_at.isoformat(),
        }
        for r in redemptions_for(request.auth)
    ]
