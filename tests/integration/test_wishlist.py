from __future__ import annotations

import json

import pytest

from checkout.exceptions import NotFoundError
from wishlist.models import WishlistItem
from wishlist.services import add_to_wishlist, is_in_wishlist, remove_from_wishlist, wishlist_for


pytestmark = pytest.mark.django_db


def _post(client, url, data):
    return client.post(url, data=json.dumps(data), content_type="application/json")


def test_add_is_idempotent(user, product_a):
    item, created = add_to_wishlist(user=user, product_id=product_a.id)
    again, created_again = add_to_wishlist(user=user, product_id=product_a.id)

    assert created is True
    assert created_again is False
    assert again.id == item.id
    assert WishlistItem.objects.count() == 1


def test_inactive_or_missing_product_is_refused(user, product_a):
    product_a.is_active = False
    product_a.save(update_fields=["is_active"])

    with pytest.raises(NotFoundError) as exc:
        add_to_wishlist(user=user, product_id=product_a.id)
    assert exc.value.message == "Product not found"

    with pytest.raises(NotFoundError):
        add_to_wishlist(user=user, product_id=424242)


def test_wishlists_are_per_user_and_newest_first(user, other_user, product_a, product_b):
    add_to_wishlist(user=user, product_id=product_a.id)
    add_to_wishlist(user=user, product_id=product_b.id)
    add_to_wishlist(user=other_user, product_id=product_a.id)

    assert [w.product.slug for w in wishlist_for(user)] == ["photo-mug", "classic-tee"]
    assert is_in_wishlist(user=other_user, product_id=product_a.id)
    assert not is_in_wishlist(user=other_user, product_id=product_b.id)


def test_remove_missing_entry(user, product_a):
    with pytest.raises(NotFoundError) as exc:
        remove_from_wishlist(user=user, product_id=product_a.id)
    assert exc.value.message == "Product not found in wishlist"


def test_wishlist_endpoints(auth_client, product_a, product_b):
    r = _post(auth_client, "/api/wishlist", {"product_id": product_a.id})
    assert r.status_code == 201
    assert r.json()["product"]["slug"] == "classic-tee"
    assert r.json()["product"]["price"]["discount_percent"] == 17

    assert _post(auth_client, "/api/wishlist", {"product_id": product_a.id}).status_code == 200
    _post(auth_client, "/api/wishlist", {"product_id": product_b.id})

    body = auth_client.get("/api/wishlist").json()
    assert body["count"] == 2
    assert [w["product"]["slug"] for w in body["items"]] == ["photo-mug", "classic-tee"]

    r = auth_client.get(f"/api/wishlist/check/{product_a.id}")
    assert r.json() == {"product_id": product_a.id, "is_in_wishlist": True}

    assert auth_client.delete(f"/api/wishlist/{product_a.id}").json() == {"status": "ok"}
    r = auth_client.delete(f"/api/wishlist/{product_a.id}")
    assert r.status_code == 404
    assert r.json() == {"detail": "Product not found in wishlist", "code": "not_found"}
    assert auth_client.get(f"/api/wishlist/check/{product_a.id}").json()["is_in_wishlist"] is False


def test_wishlist_requires_authentication(api_client, product_a):
    assert api_client.get("/api/wishlist").status_code == 401
    assert _post(api_client, "/api/wishlist", {"product_id": product_a.id}).status_code == 401
