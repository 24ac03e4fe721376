from __future__ import annotations

import logging

from ninja import Router

from accounts.auth import JWTAuth

from .schemas import CreateOrderIn, CreateOrderOut, VerifyIn, VerifyOut, WebhookOut
from .services import handle_webhook, initiate_payment, verify_payment


router = Router(tags=["payments"])
_auth = JWTAuth()

logger = logging.getLogger(__name__)


@router.post("/create-order", response=CreateOrderOut, auth=_auth)
def create_order(request, payload: CreateOrderIn):
    handle = initiate_payment(
        user=request.auth,
        address_id=payload.address_id,
        expected_amount=payload.amount,
        item_ids=payload.item_ids,
        coupon_code=payload.coupon_code,
    )
    return {
        "gateway_order_id": handle.gateway_order_id,
        "amount": handle.amount,
        "amount_minor": handle.amount_minor,
        "currency": handle.currency,
        "key": handle.key,
    }


@router.post("/verify", response=VerifyOut, auth=_auth)
def verify(request, payload: VerifyIn):
    result = verify_payment(
        user=request.auth,
        gateway_order_id=payload.gateway_order_id,
        gateway_payment_id=payload.gateway_payment_id,
        signature=payload.signature,
    )
    return {"verified": result.verified, "order_id": result.order.id}


@router.post("/webhooks/razorpay", response=WebhookOut)
def razorpay_webhook(request):
    signature = (request.headers.get("X-Razorpay-Signature") or "").strip()
    return handle_webhook(body=request.body, signature=signature)
