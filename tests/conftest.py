from __future__ import annotations

from decimal import Decimal

import pytest
from django.test import Client

from accounts.jwt_utils import issue_access_token
from accounts.models import User, UserAddress
from catalog.models import Category, Product, Variant
from checkout.cart import CartService
from payments.services.razorpay import RazorpayApiError
from promotions.models import Coupon

from .fakes import FakeGateway


# Auto-mark by folder
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def failing_gateway():
    return FakeGateway(error=RazorpayApiError("Razorpay order create failed: 500 upstream"))


@pytest.fixture
def user(db):
    return User.objects.create_user(email="buyer@example.com", password="pass-12345", name="Asha Buyer")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(email="other@example.com", password="pass-12345")


@pytest.fixture
def address(user):
    return UserAddress.objects.create(
        user=user,
        full_name="Asha Buyer",
        phone="9800000000",
        street="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        zip_code="560001",
        country="IN",
        is_default=True,
    )


@pytest.fixture
def tees(db):
    return Category.objects.create(name="T-Shirts", slug="t-shirts")


@pytest.fixture
def mugs(db):
    return Category.objects.create(name="Mugs", slug="mugs")


@pytest.fixture
def product_a(tees):
    # Sells at 100.00 against an MRP of 120.00
    return Product.objects.create(
        name="Classic Tee",
        slug="classic-tee",
        category=tees,
        base_price=Decimal("120.00"),
        selling_price=Decimal("100.00"),
        stock=50,
    )


@pytest.fixture
def product_b(mugs):
    return Product.objects.create(
        name="Photo Mug",
        slug="photo-mug",
        category=mugs,
        base_price=Decimal("50.00"),
        stock=20,
    )


@pytest.fixture
def variant_xl(product_a):
    return Variant.objects.create(
        product=product_a,
        name="XL",
        sku="TEE-XL",
        price_modifier=Decimal("15.00"),
        stock=10,
    )


@pytest.fixture
def cart(user, product_a, product_b):
    """A 100.00 x 2 + 50.00 x 1 cart: subtotal 250.00."""
    svc = CartService(user)
    svc.add(product_id=product_a.id, qty=2, design_refs=["uploads/front.png"])
    svc.add(product_id=product_b.id, qty=1)
    return svc


@pytest.fixture
def save10(db):
    return Coupon.objects.create(
        code="SAVE10",
        name="10% off",
        discount_type=Coupon.DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        min_purchase_amount=Decimal("100.00"),
    )


@pytest.fixture
def api_client():
    return Client()


@pytest.fixture
def auth_client(user):
    return Client(HTTP_AUTHORIZATION=f"Bearer {issue_access_token(user_id=user.id)}")
