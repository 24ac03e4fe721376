from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Protocol

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounts.models import UserAddress
from checkout.cart import CartLine, CartService
from checkout.exceptions import (
    CheckoutValidationError,
    GatewayError,
    NotFoundError,
    ReconciliationError,
    VerificationError,
)
from checkout.models import Order
from checkout.services import AuthorizedLine, build_quote, place_order
from pricing.services import quantize_money, to_minor_units
from promotions.models import Coupon
from promotions.services import CouponStatus, redeem_coupon, user_redemption_count

from ..models import PaymentAttempt
from .razorpay import (
    RazorpayApiError,
    RazorpayClient,
    RazorpayNotConfigured,
    get_razorpay_config,
    verify_payment_signature,
    verify_webhook_signature,
)


logger = logging.getLogger(__name__)


class GatewayClient(Protocol):
    def create_order(
        self, *, amount_minor: int, currency: str, receipt: str, notes: dict[str, Any] | None = None
    ) -> dict[str, Any]: ...


@dataclass(frozen=True)
class PaymentOrderHandle:
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key: str


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    order: Order


def _parse_amount(value) -> Decimal:
    try:
        return quantize_money(Decimal(str(value)))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise CheckoutValidationError("Invalid amount") from e


def _hold_window() -> timedelta:
    return timedelta(minutes=int(getattr(settings, "PAYMENT_ATTEMPT_HOLD_MINUTES", 30) or 0))


def _check_coupon_holds(*, user, coupon: Coupon) -> None:
    """Unpaid attempts count toward the per-user limit until the hold window lapses.

    Must run inside a transaction; the coupon row is locked so two concurrent
    initiations cannot both pass.
    """
    locked = Coupon.objects.select_for_update().get(id=coupon.id)
    if locked.usage_limit_per_user is None:
        return

    pending = PaymentAttempt.objects.filter(
        user=user,
        coupon=locked,
        status=PaymentAttempt.Status.PENDING,
        created_at__gte=timezone.now() - _hold_window(),
    ).count()
    if user_redemption_count(locked, user) + pending >= int(locked.usage_limit_per_user):
        logger.info(
            "Coupon held by an unpaid attempt",
            extra={"coupon": locked.code, "user_id": user.id, "pending": pending},
        )
        raise CheckoutValidationError(
            "A payment with this coupon is already in progress. Complete it or try again later."
        )


def initiate_payment(
    *,
    user,
    address_id: int | None,
    expected_amount,
    item_ids: Iterable[int] | None = None,
    coupon_code: str | None = None,
    gateway: GatewayClient | None = None,
) -> PaymentOrderHandle:
    if not address_id:
        raise CheckoutValidationError("Shipping address is required")

    address = UserAddress.objects.filter(user=user, id=int(address_id)).first()
    if not address:
        raise NotFoundError("Address not found")

    item_ids = None if item_ids is None else [int(i) for i in item_ids]
    if item_ids is not None and not item_ids:
        raise CheckoutValidationError("Cart is empty")

    quote = build_quote(user=user, item_ids=item_ids, coupon_code=coupon_code)
    if quote.coupon is not None and quote.coupon.status == CouponStatus.INVALID:
        raise CheckoutValidationError(quote.coupon.message)

    totals = quote.totals
    if _parse_amount(expected_amount) != totals.total:
        raise CheckoutValidationError("Amount mismatch. Please refresh your cart and try again.")
    if totals.total <= 0:
        raise CheckoutValidationError("Order total must be greater than zero")

    coupon = quote.coupon.coupon if quote.coupon is not None else None
    gateway = gateway or RazorpayClient()
    amount_minor = to_minor_units(totals.total)

    with transaction.atomic():
        if coupon is not None:
            _check_coupon_holds(user=user, coupon=coupon)
        attempt = PaymentAttempt.objects.create(
            user=user,
            currency=totals.currency,
            subtotal=totals.subtotal,
            discount=totals.discount,
            shipping=totals.shipping,
            tax=totals.tax,
            amount=totals.total,
            amount_minor=amount_minor,
            address=address,
            address_snapshot=address.snapshot(),
            coupon=coupon,
            coupon_code=coupon.code if coupon else "",
            lines=[AuthorizedLine.from_cart_line(ln).snapshot() for ln in quote.lines],
        )

    # No transaction is held open across the gateway round trip; the attempt
    # is discarded if the gateway does not accept the order.
    try:
        data = gateway.create_order(
            amount_minor=amount_minor,
            currency=totals.currency,
            receipt=f"att_{attempt.id}",
            notes={"user_id": user.id, "attempt_id": attempt.id},
        )
    except RazorpayNotConfigured as e:
        logger.error("Razorpay is not configured")
        attempt.delete()
        raise GatewayError("Payment gateway is not configured") from e
    except RazorpayApiError as e:
        logger.exception("Razorpay order create failed", extra={"attempt_id": attempt.id})
        attempt.delete()
        raise GatewayError() from e

    gateway_order_id = str(data.get("id") or "").strip()
    if not gateway_order_id:
        logger.error("Razorpay order create returned no id", extra={"attempt_id": attempt.id})
        attempt.delete()
        raise GatewayError()

    attempt.gateway_order_id = gateway_order_id
    attempt.raw_response = {"order": data}
    attempt.save(update_fields=["gateway_order_id", "raw_response", "updated_at"])

    logger.info(
        "Razorpay order created",
        extra={"attempt_id": attempt.id, "gateway_order_id": gateway_order_id, "amount": str(totals.total)},
    )

    return PaymentOrderHandle(
        gateway_order_id=gateway_order_id,
        amount=totals.total,
        amount_minor=amount_minor,
        currency=totals.currency,
        key=get_razorpay_config().key_id,
    )


def _mark_failed(*, attempt_id: int, reason: str, gateway_payment_id: str = "") -> None:
    with transaction.atomic():
        attempt = PaymentAttempt.objects.select_for_update().filter(id=attempt_id).first()
        if not attempt or attempt.status != PaymentAttempt.Status.PENDING:
            return
        attempt.status = PaymentAttempt.Status.FAILED
        attempt.failure_reason = reason[:255]
        if gateway_payment_id:
            attempt.gateway_payment_id = gateway_payment_id
        attempt.save(update_fields=["status", "failure_reason", "gateway_payment_id", "updated_at"])


def _reconcile(authorized: list[AuthorizedLine], live: dict[int, CartLine]) -> None:
    """Refuse when an authorized line is gone or no longer the same item and quantity."""
    for a in authorized:
        line = live.get(a.item_id)
        if line is None:
            raise ReconciliationError("An item in your order is no longer in your cart.")
        if line.product_id != a.product_id or line.variant_id != a.variant_id:
            raise ReconciliationError("An item in your cart was changed after the payment was started.")
        if line.qty != a.qty:
            raise ReconciliationError("Item quantities changed after the payment was started.")
        if line.unit_price != a.unit_price:
            logger.info(
                "Price changed since payment start; keeping authorized price",
                extra={"cart_item_id": a.item_id, "authorized": str(a.unit_price), "live": str(line.unit_price)},
            )


def materialize_attempt(*, attempt_id: int, gateway_payment_id: str) -> Order:
    """Turn a verified attempt into an Order. Idempotent per attempt."""
    try:
        with transaction.atomic():
            attempt = (
                PaymentAttempt.objects.select_for_update(of=("self",))
                .select_related("user", "coupon", "order")
                .get(id=attempt_id)
            )
            if attempt.status == PaymentAttempt.Status.SUCCESS and attempt.order_id:
                return attempt.order
            if attempt.status == PaymentAttempt.Status.FAILED:
                raise VerificationError("This payment attempt has already failed.")

            authorized = [AuthorizedLine.from_snapshot(d) for d in (attempt.lines or [])]
            if not authorized:
                raise ReconciliationError("No items were authorized for this payment.")

            cart = CartService(attempt.user)
            live = {
                ln.id: ln
                for ln in cart.lines([a.item_id for a in authorized], for_update=True)
            }
            _reconcile(authorized, live)

            order = place_order(
                user=attempt.user,
                authorized=authorized,
                live=live,
                address_snapshot=attempt.address_snapshot or {},
                subtotal=attempt.subtotal,
                discount=attempt.discount,
                shipping=attempt.shipping,
                tax=attempt.tax,
                total=attempt.amount,
                currency=attempt.currency,
                gateway_order_id=attempt.gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                coupon=attempt.coupon,
            )
            if attempt.coupon is not None:
                redeem_coupon(
                    coupon=attempt.coupon,
                    user=attempt.user,
                    order=order,
                    discount_amount=attempt.discount,
                )

            cart.remove_lines(live.keys())

            attempt.status = PaymentAttempt.Status.SUCCESS
            attempt.gateway_payment_id = gateway_payment_id
            attempt.order = order
            attempt.failure_reason = ""
            attempt.save(
                update_fields=["status", "gateway_payment_id", "order", "failure_reason", "updated_at"]
            )
    except ReconciliationError as e:
        logger.warning(
            "Refusing to materialize order: cart changed after payment start",
            extra={"attempt_id": attempt_id, "reason": e.message},
        )
        _mark_failed(attempt_id=attempt_id, reason=f"reconciliation: {e.message}", gateway_payment_id=gateway_payment_id)
        raise

    logger.info(
        "Order materialized",
        extra={"order_id": order.id, "attempt_id": attempt_id, "gateway_order_id": order.gateway_order_id},
    )
    return order


def verify_payment(
    *,
    user,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
) -> VerificationResult:
    gateway_order_id = (gateway_order_id or "").strip()
    gateway_payment_id = (gateway_payment_id or "").strip()
    signature = (signature or "").strip()
    if not (gateway_order_id and gateway_payment_id and signature):
        raise CheckoutValidationError("Missing payment verification details")

    attempt = (
        PaymentAttempt.objects.select_related("order")
        .filter(user=user, gateway_order_id=gateway_order_id)
        .first()
    )
    if not attempt:
        raise NotFoundError("Payment not found")

    if attempt.status == PaymentAttempt.Status.SUCCESS and attempt.order_id:
        return VerificationResult(verified=True, order=attempt.order)
    if attempt.status == PaymentAttempt.Status.FAILED:
        raise VerificationError("This payment attempt has already failed.")

    cfg = get_razorpay_config()
    if not verify_payment_signature(
        order_id=gateway_order_id,
        payment_id=gateway_payment_id,
        signature=signature,
        secret=cfg.key_secret,
    ):
        logger.warning(
            "Razorpay payment signature mismatch",
            extra={"attempt_id": attempt.id, "gateway_order_id": gateway_order_id},
        )
        _mark_failed(attempt_id=attempt.id, reason="signature mismatch", gateway_payment_id=gateway_payment_id)
        raise VerificationError()

    order = materialize_attempt(attempt_id=attempt.id, gateway_payment_id=gateway_payment_id)
    return VerificationResult(verified=True, order=order)


def _record_capture_after_failure(*, attempt_id: int, event: str, gateway_order_id: str, gateway_payment_id: str) -> None:
    """Keep the gateway's proof of a charge on an attempt that will never become an order."""
    with transaction.atomic():
        attempt = PaymentAttempt.objects.select_for_update().get(id=attempt_id)
        raw = dict(attempt.raw_response or {})
        raw["captured"] = {
            "event": event,
            "gateway_payment_id": gateway_payment_id,
            "received_at": timezone.now().isoformat(),
        }
        attempt.raw_response = raw
        attempt.save(update_fields=["raw_response", "updated_at"])

    logger.warning(
        "Payment captured for a failed attempt; refund or manual review needed",
        extra={
            "attempt_id": attempt_id,
            "gateway_order_id": gateway_order_id,
            "gateway_payment_id": gateway_payment_id,
        },
    )


def _entity(payload: dict, name: str) -> dict:
    node = (payload.get("payload") or {}).get(name) or {}
    entity = node.get("entity") if isinstance(node, dict) else None
    return entity if isinstance(entity, dict) else {}


def handle_webhook(*, body: bytes, signature: str) -> dict[str, str]:
    cfg = get_razorpay_config()
    if not verify_webhook_signature(body=body, signature=signature, secret=cfg.webhook_secret):
        logger.warning("Razorpay webhook signature mismatch")
        raise CheckoutValidationError("Invalid webhook signature")

    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise CheckoutValidationError("Invalid webhook payload") from e
    if not isinstance(data, dict):
        raise CheckoutValidationError("Invalid webhook payload")

    event = str(data.get("event") or "").strip()
    payment = _entity(data, "payment")
    order_entity = _entity(data, "order")
    gateway_order_id = str(payment.get("order_id") or order_entity.get("id") or "").strip()
    gateway_payment_id = str(payment.get("id") or "").strip()

    if event not in {"payment.captured", "payment.failed", "order.paid"}:
        logger.info("Unhandled Razorpay webhook event", extra={"event": event})
        return {"status": "ignored"}

    attempt = (
        PaymentAttempt.objects.filter(gateway_order_id=gateway_order_id).first()
        if gateway_order_id
        else None
    )
    if not attempt:
        logger.info(
            "Razorpay webhook for unknown order",
            extra={"event": event, "gateway_order_id": gateway_order_id},
        )
        return {"status": "ignored"}

    if attempt.status == PaymentAttempt.Status.FAILED:
        if event != "payment.failed":
            _record_capture_after_failure(
                attempt_id=attempt.id,
                event=event,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
            )
        return {"status": "ok"}
    if attempt.status != PaymentAttempt.Status.PENDING:
        return {"status": "ok"}

    if event == "payment.failed":
        reason = str(payment.get("error_description") or "payment failed")
        _mark_failed(attempt_id=attempt.id, reason=reason, gateway_payment_id=gateway_payment_id)
        logger.info("Payment failed", extra={"attempt_id": attempt.id, "gateway_order_id": gateway_order_id})
        return {"status": "ok"}

    try:
        materialize_attempt(attempt_id=attempt.id, gateway_payment_id=gateway_payment_id)
    except VerificationError:
        # Covers reconciliation refusals. The gateway must not retry; the
        # captured payment is kept on the failed attempt for a refund.
        _record_capture_after_failure(
            attempt_id=attempt.id,
            event=event,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
        )
    return {"status": "ok"}
