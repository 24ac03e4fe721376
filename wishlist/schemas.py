from __future__ import annotations

from datetime import datetime

from ninja import Schema

from catalog.schemas import ProductListOut


class WishlistAddIn(Schema):
    product_id: int


class WishlistItemOut(Schema):
    id: int
    product: ProductListOut
    created_at: datetime


class WishlistCheckOut(Schema):
    product_id: int
    is_in_wishlist: bool
