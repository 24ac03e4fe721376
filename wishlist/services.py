from __future__ import annotations

from django.db import IntegrityError, transaction

from catalog.models import Product
from checkout.exceptions import NotFoundError

from .models import WishlistItem


def wishlist_for(user):
    return (
        WishlistItem.objects.filter(user=user)
        .select_related("product", "product__category")
        .order_by("-created_at", "-id")
    )


def add_to_wishlist(*, user, product_id: int) -> tuple[WishlistItem, bool]:
    """Return ``(item, created)``; adding a product twice is not an error."""
    product = Product.objects.filter(id=product_id, is_active=True).first()
    if not product:
        raise NotFoundError("Product not found")

    existing = wishlist_for(user).filter(product=product).first()
    if existing:
        return existing, False

    try:
        with transaction.atomic():
            item = WishlistItem.objects.create(user=user, product=product)
    except IntegrityError:
        # Lost a race with a concurrent add of the same product.
        return wishlist_for(user).get(product=product), False
    return item, True


def remove_from_wishlist(*, user, product_id: int) -> None:
    deleted = WishlistItem.objects.filter(user=user, product_id=product_id).delete()[0]
    if not deleted:
        raise NotFoundError("Product not found in wishlist")


def is_in_wishlist(*, user, product_id: int) -> bool:
    return WishlistItem.objects.filter(user=user, product_id=product_id).exists()
