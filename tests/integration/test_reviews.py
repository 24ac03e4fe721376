from __future__ import annotations

import json
from decimal import Decimal

import pytest
from django.contrib import admin
from django.test import Client

from accounts.jwt_utils import issue_access_token
from checkout.exceptions import CheckoutValidationError, NotFoundError
from checkout.models import Order, OrderItem
from reviews.admin import ReviewAdmin
from reviews.models import Review
from reviews.services import (
    approved_reviews,
    create_review,
    delete_review,
    rating_summary,
    remove_vote,
    update_review,
    vote_helpful,
)


pytestmark = pytest.mark.django_db


def _post(client, url, data):
    return client.post(url, data=json.dumps(data), content_type="application/json")


def _paid_order(user, product, *, payment_status=Order.PaymentStatus.SUCCESS):
    order = Order.objects.create(user=user, gateway_order_id=f"order_{user.id}_{product.id}",
                                 payment_status=payment_status)
    OrderItem.objects.create(order=order, product=product, product_name=product.name,
                             unit_price=Decimal("100.00"), qty=1)
    return order


@pytest.fixture
def other_client(other_user):
    return Client(HTTP_AUTHORIZATION=f"Bearer {issue_access_token(user_id=other_user.id)}")


def test_create_review_marks_verified_purchase(user, other_user, product_a):
    _paid_order(user, product_a)
    _paid_order(other_user, product_a, payment_status=Order.PaymentStatus.FAILED)

    mine = create_review(user=user, product_id=product_a.id, rating=5, title="  Great print ")
    theirs = create_review(user=other_user, product_id=product_a.id, rating=3)

    assert mine.is_verified_purchase is True
    assert mine.title == "Great print"
    assert mine.is_approved is True
    assert theirs.is_verified_purchase is False


@pytest.mark.parametrize("rating", [0, 6, "x", None])
def test_rating_must_be_one_to_five(user, product_a, rating):
    with pytest.raises(CheckoutValidationError) as exc:
        create_review(user=user, product_id=product_a.id, rating=rating)
    assert exc.value.message == "Rating must be between 1 and 5"


def test_one_review_per_product(user, product_a):
    create_review(user=user, product_id=product_a.id, rating=4)

    with pytest.raises(CheckoutValidationError) as exc:
        create_review(user=user, product_id=product_a.id, rating=2)
    assert exc.value.message == "You have already reviewed this product"


def test_review_for_missing_product(user):
    with pytest.raises(NotFoundError):
        create_review(user=user, product_id=424242, rating=4)


def test_only_the_author_can_edit_or_delete(user, other_user, product_a):
    review = create_review(user=user, product_id=product_a.id, rating=4)

    with pytest.raises(NotFoundError):
        update_review(user=other_user, review_id=review.id, rating=1)
    with pytest.raises(NotFoundError):
        delete_review(user=other_user, review_id=review.id)

    updated = update_review(user=user, review_id=review.id, rating=2, comment="Faded after a wash")
    assert (updated.rating, updated.comment) == (2, "Faded after a wash")

    delete_review(user=user, review_id=review.id)
    assert Review.objects.count() == 0


def test_listing_shows_approved_reviews_sorted(user, other_user, product_a):
    low = create_review(user=user, product_id=product_a.id, rating=2)
    high = create_review(user=other_user, product_id=product_a.id, rating=5)

    assert [r.id for r in approved_reviews(product_id=product_a.id, sort="rating")] == [high.id, low.id]
    assert [r.id for r in approved_reviews(product_id=product_a.id, sort="rating", order="asc")] == [low.id, high.id]

    Review.objects.filter(id=high.id).update(is_approved=False)
    assert [r.id for r in approved_reviews(product_id=product_a.id)] == [low.id]

    with pytest.raises(CheckoutValidationError):
        approved_reviews(product_id=product_a.id, sort="price")


def test_rating_summary_ignores_hidden_reviews(user, other_user, product_a, product_b):
    create_review(user=user, product_id=product_a.id, rating=5)
    hidden = create_review(user=other_user, product_id=product_a.id, rating=4)
    Review.objects.filter(id=hidden.id).update(is_approved=False)

    summary = rating_summary(product_id=product_a.id)
    assert summary["count"] == 1
    assert summary["average"] == Decimal("5.00")
    assert summary["distribution"] == {"1": 0, "2": 0, "3": 0, "4": 0, "5": 1}

    assert rating_summary(product_id=product_b.id)["average"] is None


def test_helpful_votes_recount(user, other_user, product_a):
    review = create_review(user=user, product_id=product_a.id, rating=4)

    assert vote_helpful(user=other_user, review_id=review.id) == 1
    assert vote_helpful(user=user, review_id=review.id) == 2
    assert vote_helpful(user=user, review_id=review.id, is_helpful=False) == 1
    assert remove_vote(user=other_user, review_id=review.id) == 0

    review.refresh_from_db()
    assert review.helpful_count == 0
    with pytest.raises(NotFoundError):
        remove_vote(user=other_user, review_id=review.id)


def test_admin_can_hide_and_restore_reviews(user, product_a):
    review = create_review(user=user, product_id=product_a.id, rating=1)
    model_admin = ReviewAdmin(Review, admin.site)

    model_admin.hide_selected(None, Review.objects.filter(id=review.id))
    assert list(approved_reviews(product_id=product_a.id)) == []

    model_admin.approve_selected(None, Review.objects.filter(id=review.id))
    assert [r.id for r in approved_reviews(product_id=product_a.id)] == [review.id]


def test_review_endpoints(api_client, auth_client, other_client, user, product_a):
    r = _post(auth_client, f"/api/reviews/product/{product_a.id}", {"rating": 5, "title": "Crisp colours"})
    assert r.status_code == 201
    review_id = r.json()["id"]
    assert r.json()["reviewer_name"] == "Asha Buyer"
    assert "email" not in r.json()

    r = _post(auth_client, f"/api/reviews/product/{product_a.id}", {"rating": 4})
    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"

    r = _post(auth_client, f"/api/reviews/product/{product_a.id}", {"rating": 9})
    assert r.json()["detail"] == "Rating must be between 1 and 5"

    body = api_client.get(f"/api/reviews/product/{product_a.id}?sort=helpful").json()
    assert body["count"] == 1
    assert body["items"][0]["title"] == "Crisp colours"

    r = _post(other_client, f"/api/reviews/{review_id}/helpful", {})
    assert r.json() == {"review_id": review_id, "helpful_count": 1}
    r = other_client.delete(f"/api/reviews/{review_id}/helpful")
    assert r.json()["helpful_count"] == 0

    summary = api_client.get(f"/api/reviews/product/{product_a.id}/summary").json()
    assert summary["count"] == 1
    assert summary["distribution"]["5"] == 1

    r = other_client.patch(
        f"/api/reviews/{review_id}", data=json.dumps({"rating": 1}), content_type="application/json"
    )
    assert r.status_code == 404

    r = auth_client.patch(
        f"/api/reviews/{review_id}", data=json.dumps({"rating": 4}), content_type="application/json"
    )
    assert r.json()["rating"] == 4

    assert auth_client.delete(f"/api/reviews/{review_id}").json() == {"status": "ok"}
    assert api_client.get(f"/api/reviews/product/{product_a.id}").json()["count"] == 0


def test_writing_reviews_requires_authentication(api_client, product_a):
    assert _post(api_client, f"/api/reviews/product/{product_a.id}", {"rating": 5}).status_code == 401
    assert api_client.get("/api/reviews/product/424242").status_code == 404
