from __future__ import annotations

from ninja import Router
from ninja.errors import HttpError
from ninja.pagination import PageNumberPagination, paginate

from accounts.auth import JWTAuth

from .cart import CartLine, CartService, CartSummary
from .exceptions import NotFoundError
from .schemas import (
    CartItemAddIn,
    CartItemOut,
    CartItemUpdateIn,
    CartOut,
    CheckoutPreviewIn,
    CheckoutPreviewOut,
    OrderOut,
)
from .services import build_quote, orders_for


router = Router(tags=["checkout"])
_auth = JWTAuth()


def _require_user(request):
    user = getattr(request, "auth", None)
    if not user or not getattr(user, "is_authenticated", False):
        raise HttpError(401, "Unauthorized")
    return user


def _line_out(ln: CartLine) -> dict:
    return {
        "id": ln.id,
        "product_id": ln.product_id,
        "product_name": ln.product_name,
        "variant_id": ln.variant_id,
        "variant_name": ln.variant_name,
        "sku": ln.sku,
        "qty": ln.qty,
        "unit_price": ln.unit_price,
        "mrp_price": ln.mrp_price,
        "line_total": ln.line_total,
        "custom_design_refs": list(ln.design_refs),
        "custom_text": ln.custom_text,
    }


def _cart_out(summary: CartSummary) -> dict:
    return {
        "currency": summary.currency,
        "items": [_line_out(ln) for ln in summary.lines],
        "item_count": summary.item_count,
        "subtotal": summary.subtotal,
        "mrp_total": summary.mrp_total,
        "savings": summary.savings,
    }


@router.get("/cart", response=CartOut, auth=_auth)
def get_cart(request):
    user = _require_user(request)
    return _cart_out(CartService(user).summary())


@router.post("/cart/items", response=CartOut, auth=_auth)
def add_cart_item(request, payload: CartItemAddIn):
    user = _require_user(request)
    cart = CartService(user)
    cart.add(
        product_id=payload.product_id,
        variant_id=payload.variant_id,
        qty=payload.qty,
        design_refs=payload.custom_design_refs,
        custom_text=payload.custom_text,
    )
    return _cart_out(cart.summary())


@router.patch("/cart/items/{item_id}", response=CartOut, auth=_auth)
def update_cart_item(request, item_id: int, payload: CartItemUpdateIn):
    user = _require_user(request)
    cart = CartService(user)
    cart.update(
        item_id=item_id,
        qty=payload.qty,
        design_refs=payload.custom_design_refs,
        custom_text=payload.custom_text,
    )
    return _cart_out(cart.summary())


@router.delete("/cart/items/{item_id}", response=CartOut, auth=_auth)
def delete_cart_item(request, item_id: int):
    user = _require_user(request)
    cart = CartService(user)
    cart.remove(item_id=item_id)
    return _cart_out(cart.summary())


@router.delete("/cart", response=CartOut, auth=_auth)
def clear_cart(request):
    user = _require_user(request)
    cart = CartService(user)
    cart.clear()
    return _cart_out(cart.summary())


@router.post("/preview", response=CheckoutPreviewOut, auth=_auth)
def checkout_preview(request, payload: CheckoutPreviewIn):
    user = _require_user(request)
    quote = build_quote(user=user, item_ids=payload.item_ids, coupon_code=payload.coupon_code)

    coupon_out = None
    v = quote.coupon
    if v is not None:
        coupon_out = {
            "code": (payload.coupon_code or "").strip().upper(),
            "status": v.status.value,
            "message": v.message,
            "is_valid": v.is_valid,
            "discount_amount": v.discount_amount,
            "eligible_item_ids": [ln.id for ln in v.eligible_lines],
            "ineligible_items": [
                {"item_id": il.line.id, "product_name": il.line.product_name, "reason": il.reason}
                for il in v.ineligible_lines
            ],
        }

    t = quote.totals
    return {
        "currency": t.currency,
        "items": [_line_out(ln) for ln in quote.lines],
        "subtotal": t.subtotal,
        "discount": t.discount,
        "shipping": t.shipping,
        "tax": t.tax,
        "total": t.total,
        "coupon": coupon_out,
    }


class OrderPagination(PageNumberPagination):
    page_size = 10
    max_page_size = 50


@router.get("/orders", response=list[OrderOut], auth=_auth)
@paginate(OrderPagination)
def list_orders(request):
    user = _require_user(request)
    return orders_for(user)


@router.get("/orders/{order_id}", response=OrderOut, auth=_auth)
def get_order(request, order_id: int):
    user = _require_user(request)
    order = orders_for(user).filter(id=order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order
