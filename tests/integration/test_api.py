from __future__ import annotations

import json
from decimal import Decimal

import pytest
from django.conf import settings

from checkout.models import Order
from checkout.services import record_status_change
from payments.services import initiate_payment
from payments.services.razorpay import compute_webhook_signature
from promotions.models import Coupon

from ..fakes import FakeGateway, sign


pytestmark = pytest.mark.django_db


def _post(client, url, data=None, **extra):
    return client.post(url, data=json.dumps(data or {}), content_type="application/json", **extra)


def _patch(client, url, data):
    return client.patch(url, data=json.dumps(data), content_type="application/json")


def _money(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
def gateway(monkeypatch):
    fake = FakeGateway()
    monkeypatch.setattr("payments.services.orders.RazorpayClient", lambda: fake)
    return fake


def test_health(api_client):
    r = api_client.get("/api/health")

    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_login_sets_http_only_cookie(api_client, user):
    r = _post(api_client, "/api/auth/login", {"email": "buyer@example.com", "password": "pass-12345"})

    assert r.status_code == 200
    cookie = r.cookies[settings.AUTH_COOKIE_ACCESS_NAME]
    assert cookie["httponly"]

    # the client now carries the cookie
    assert api_client.get("/api/checkout/cart").status_code == 200


def test_login_rejects_bad_password(api_client, user):
    r = _post(api_client, "/api/auth/login", {"email": "buyer@example.com", "password": "nope"})

    assert r.status_code == 401


def test_cart_requires_authentication(api_client):
    assert api_client.get("/api/checkout/cart").status_code == 401
    assert _post(api_client, "/api/payments/create-order", {"amount": "1.00"}).status_code == 401


def test_catalog_lists_prices(api_client, product_a, product_b):
    r = api_client.get("/api/catalog/products")

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    tee = next(p for p in body["items"] if p["slug"] == "classic-tee")
    assert _money(tee["price"]["selling"]) == Decimal("100.00")
    assert _money(tee["price"]["mrp"]) == Decimal("120.00")
    assert tee["price"]["discount_percent"] == 17


def test_product_detail_and_missing_product(api_client, product_a, variant_xl):
    r = api_client.get("/api/catalog/products/classic-tee")

    assert r.status_code == 200
    [variant] = r.json()["variants"]
    assert _money(variant["price"]["selling"]) == Decimal("115.00")

    assert api_client.get("/api/catalog/products/nope").status_code == 404


def test_cart_endpoints(auth_client, product_a, product_b):
    r = _post(
        auth_client,
        "/api/checkout/cart/items",
        {"product_id": product_a.id, "qty": 2, "custom_design_refs": "uploads/front.png"},
    )
    assert r.status_code == 200
    body = r.json()
    assert _money(body["subtotal"]) == Decimal("200.00")
    assert body["items"][0]["custom_design_refs"] == ["uploads/front.png"]
    item_id = body["items"][0]["id"]

    r = _patch(auth_client, f"/api/checkout/cart/items/{item_id}", {"qty": 3})
    assert _money(r.json()["subtotal"]) == Decimal("300.00")

    r = _post(auth_client, "/api/checkout/cart/items", {"product_id": product_b.id, "qty": 999})
    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"

    r = auth_client.delete(f"/api/checkout/cart/items/{item_id}")
    assert r.json()["items"] == []


def test_unknown_cart_item_returns_structured_404(auth_client):
    r = auth_client.delete("/api/checkout/cart/items/424242")

    assert r.status_code == 404
    assert r.json() == {"detail": "Cart item not found", "code": "not_found"}


def test_preview_with_partially_valid_coupon(auth_client, cart, tees):
    c = Coupon.objects.create(
        code="TEES20",
        discount_value=Decimal("20"),
        applicable_to=Coupon.Scope.CATEGORY,
    )
    c.categories.add(tees)

    r = _post(auth_client, "/api/checkout/preview", {"coupon_code": "tees20"})

    assert r.status_code == 200
    body = r.json()
    assert _money(body["discount"]) == Decimal("40.00")
    assert _money(body["total"]) == Decimal("210.00")
    assert body["coupon"]["status"] == "partially_valid"
    assert body["coupon"]["ineligible_items"][0]["product_name"] == "Photo Mug"


def test_validate_coupon_endpoint(auth_client, cart, save10):
    r = _post(auth_client, "/api/coupons/validate", {"code": "save10"})

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "fully_valid"
    assert _money(body["discount_amount"]) == Decimal("25.00")
    assert _money(body["final_amount"]) == Decimal("225.00")
    assert body["validation"]["is_fully_valid"] is True


def test_validate_coupon_with_unknown_item_is_a_404(auth_client, cart, save10):
    r = _post(auth_client, "/api/coupons/validate", {"code": "save10", "item_ids": [424242]})

    assert r.status_code == 404
    assert r.json() == {"detail": "Cart item not found", "code": "not_found"}


def test_available_coupons_is_public(api_client, save10):
    r = api_client.get("/api/coupons/available")

    assert [c["code"] for c in r.json()] == ["SAVE10"]


def test_payment_round_trip(auth_client, user, address, cart, save10, gateway):
    r = _post(
        auth_client,
        "/api/payments/create-order",
        {"address_id": address.id, "amount": "225.00", "coupon_code": "SAVE10"},
    )
    assert r.status_code == 200
    handle = r.json()
    assert handle["gateway_order_id"] == "order_TEST0001"
    assert handle["amount_minor"] == 22500
    assert handle["key"] == "rzp_test_key"

    r = _post(
        auth_client,
        "/api/payments/verify",
        {
            "gateway_order_id": handle["gateway_order_id"],
            "gateway_payment_id": "pay_TEST0001",
            "signature": sign(handle["gateway_order_id"], "pay_TEST0001"),
        },
    )
    assert r.status_code == 200
    order_id = r.json()["order_id"]
    assert r.json()["verified"] is True

    r = auth_client.get("/api/checkout/orders")
    assert r.json()["count"] == 1
    assert r.json()["items"][0]["id"] == order_id

    r = auth_client.get(f"/api/checkout/orders/{order_id}")
    body = r.json()
    assert _money(body["total"]) == Decimal("225.00")
    assert body["status"] == "pending_review"
    assert len(body["items"]) == 2

    assert [m["code"] for m in auth_client.get("/api/coupons/mine").json()] == ["SAVE10"]


def test_orders_are_paginated_in_the_database(auth_client, user, other_user):
    for n in range(12):
        order = Order.objects.create(
            user=user,
            gateway_order_id=f"order_PAGE{n:02d}",
            total=Decimal("10.00"),
            shipping_city="Pune",
        )
        record_status_change(order=order, status=Order.Status.PENDING_REVIEW, comment="Order created")
    Order.objects.create(user=other_user, gateway_order_id="order_OTHER")

    first = auth_client.get("/api/checkout/orders").json()
    assert first["count"] == 12
    assert len(first["items"]) == 10
    assert first["items"][0]["gateway_order_id"] == "order_PAGE11"

    second = auth_client.get("/api/checkout/orders?page=2").json()
    assert [o["gateway_order_id"] for o in second["items"]] == ["order_PAGE01", "order_PAGE00"]

    body = second["items"][0]
    assert body["status_label"] == "Pending review"
    assert body["shipping_address"]["city"] == "Pune"
    assert [h["comment"] for h in body["status_history"]] == ["Order created"]
    assert body["items"] == []
    assert body["created_at"]


def test_amount_mismatch_is_a_400(auth_client, address, cart, gateway):
    r = _post(auth_client, "/api/payments/create-order", {"address_id": address.id, "amount": "1.00"})

    assert r.status_code == 400
    assert r.json()["detail"] == "Amount mismatch. Please refresh your cart and try again."
    assert gateway.calls == []


def test_gateway_failure_is_a_502(monkeypatch, auth_client, address, cart, failing_gateway):
    monkeypatch.setattr("payments.services.orders.RazorpayClient", lambda: failing_gateway)

    r = _post(auth_client, "/api/payments/create-order", {"address_id": address.id, "amount": "250.00"})

    assert r.status_code == 502
    assert r.json()["code"] == "gateway_error"


def test_tampered_verification_is_refused(auth_client, address, cart, gateway):
    _post(auth_client, "/api/payments/create-order", {"address_id": address.id, "amount": "250.00"})

    r = _post(
        auth_client,
        "/api/payments/verify",
        {"gateway_order_id": "order_TEST0001", "gateway_payment_id": "pay_1", "signature": "f" * 64},
    )

    assert r.status_code == 400
    assert r.json()["code"] == "verification_failed"
    assert "contact support" in r.json()["detail"]
    assert Order.objects.count() == 0


def test_reconciliation_failure_is_a_409(auth_client, address, cart, gateway):
    _post(auth_client, "/api/payments/create-order", {"address_id": address.id, "amount": "250.00"})
    cart.update(item_id=cart.lines()[0].id, qty=1)

    r = _post(
        auth_client,
        "/api/payments/verify",
        {
            "gateway_order_id": "order_TEST0001",
            "gateway_payment_id": "pay_1",
            "signature": sign("order_TEST0001", "pay_1"),
        },
    )

    assert r.status_code == 409
    assert r.json()["code"] == "reconciliation_failed"


def test_webhook_endpoint(api_client, user, address, cart, gateway):
    initiate_payment(user=user, address_id=address.id, expected_amount="250.00")
    body = json.dumps(
        {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_WH1", "order_id": "order_TEST0001"}}},
        }
    ).encode()
    sig = compute_webhook_signature(body=body, secret=settings.RAZORPAY_WEBHOOK_SECRET)

    r = api_client.post(
        "/api/payments/webhooks/razorpay",
        data=body,
        content_type="application/json",
        HTTP_X_RAZORPAY_SIGNATURE=sig,
    )
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert Order.objects.get().gateway_payment_id == "pay_WH1"

    r = api_client.post(
        "/api/payments/webhooks/razorpay",
        data=body,
        content_type="application/json",
        HTTP_X_RAZORPAY_SIGNATURE="bad",
    )
    assert r.status_code == 400


def test_addresses(auth_client, other_user):
    r = _post(
        auth_client,
        "/api/auth/addresses",
        {"full_name": "Asha", "street": "1 Park St", "city": "Kolkata", "zip_code": "700016", "is_default": True},
    )
    assert r.status_code == 200
    assert r.json()["country"] == "IN"
    address_id = r.json()["id"]

    assert [a["id"] for a in auth_client.get("/api/auth/addresses").json()] == [address_id]
    assert auth_client.delete(f"/api/auth/addresses/{address_id}").status_code == 200
    assert auth_client.delete(f"/api/auth/addresses/{address_id}").status_code == 404
