from __future__ import annotations

from ninja import Router
from ninja.pagination import PageNumberPagination, paginate

from accounts.auth import JWTAuth
from accounts.schemas import StatusOut

from .schemas import WishlistAddIn, WishlistCheckOut, WishlistItemOut
from .services import add_to_wishlist, is_in_wishlist, remove_from_wishlist, wishlist_for


router = Router(tags=["wishlist"])
_auth = JWTAuth()


class WishlistPagination(PageNumberPagination):
    page_size = 20
    max_page_size = 100


@router.get("", response=list[WishlistItemOut], auth=_auth)
@paginate(WishlistPagination)
def list_wishlist(request):
    return wishlist_for(request.auth)


@router.post("", response={200: WishlistItemOut, 201: WishlistItemOut}, auth=_auth)
def add_item(request, payload: WishlistAddIn):
    item, created = add_to_wishlist(user=request.auth, product_id=payload.product_id)
    return (201 if created else 200), item


@router.delete("/{product_id}", response=StatusOut, auth=_auth)
def remove_item(request, product_id: int):
    remove_from_wishlist(user=request.auth, product_id=product_id)
    return {"status": "ok"}


@router.get("/check/{product_id}", response=WishlistCheckOut, auth=_auth)
def check_item(request, product_id: int):
    return {"product_id": product_id, "is_in_wishlist": is_in_wishlist(user=request.auth, product_id=product_id)}
