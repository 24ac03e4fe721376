from __future__ import annotations

from django.conf import settings
from django.contrib.auth import authenticate
from django.db import transaction
from django.http import JsonResponse
from ninja import Router
from ninja.errors import HttpError

from .auth import JWTAuth
from .jwt_utils import issue_access_token
from .models import UserAddress
from .schemas import AddressCreateIn, AddressOut, LoginIn, StatusOut

router = Router(tags=["auth"])
auth = JWTAuth()


def _cookie_samesite() -> str:
    v = (getattr(settings, "AUTH_COOKIE_SAMESITE", "lax") or "lax").lower()
    if v == "strict":
        return "Strict"
    if v == "none":
        return "None"
    return "Lax"


def _cookie_secure(request) -> bool:
    # An explicit setting wins over the request scheme.
    explicit = getattr(settings, "AUTH_COOKIE_SECURE", None)
    if isinstance(explicit, bool):
        return explicit
    return request.is_secure()


def _cookie_name() -> str:
    return getattr(settings, "AUTH_COOKIE_ACCESS_NAME", "access_token")


@router.post("/login", response=StatusOut)
def login(request, payload: LoginIn):
    user = authenticate(request, username=payload.email, password=payload.password)
    if user is None:
        raise HttpError(401, "Invalid credentials")

    resp = JsonResponse({"status": "ok"})
    resp.set_cookie(
        _cookie_name(),
        issue_access_token(user_id=user.id),
        httponly=True,
        secure=_cookie_secure(request),
        samesite=_cookie_samesite(),
        path="/",
    )
    return resp


@router.post("/logout", response=StatusOut)
def logout(request):
    resp = JsonResponse({"status": "ok"})
    resp.delete_cookie(_cookie_name(), path="/")
    return resp


def _serialize_address(a: UserAddress) -> dict:
    return {
        "id": a.id,
        "label": a.label,
        "full_name": a.full_name,
        "phone": a.phone,
        "street": a.street,
        "city": a.city,
        "state": a.state,
        "zip_code": a.zip_code,
        "country": a.country,
        "is_default": bool(a.is_default),
    }


@router.get("/addresses", response=list[AddressOut], auth=auth)
def list_addresses(request):
    user = request.auth
    qs = UserAddress.objects.filter(user=user).order_by("-is_default", "-updated_at")
    return [_serialize_address(a) for a in qs]


@router.post("/addresses", response=AddressOut, auth=auth)
def create_address(request, payload: AddressCreateIn):
    user = request.auth

    country = (payload.country or "").strip().upper() or "IN"
    if len(country) != 2:
        raise HttpError(400, "Invalid country")

    with transaction.atomic():
        if payload.is_default:
            UserAddress.objects.filter(user=user, is_default=True).update(is_default=False)

        addr = UserAddress.objects.create(
            user=user,
            label=(payload.label or "").strip(),
            full_name=(payload.full_name or "").strip(),
            phone=(payload.phone or "").strip(),
            street=(payload.street or "").strip(),
            city=(payload.city or "").strip(),
            state=(payload.state or "").strip(),
            zip_code=(payload.zip_code or "").strip(),
            country=country,
            is_default=bool(payload.is_default),
        )

    return _serialize_address(addr)


@router.delete("/addresses/{address_id}", response=StatusOut, auth=auth)
def delete_address(request, address_id: int):
    user = request.auth
    deleted = UserAddress.objects.filter(user=user, id=address_id).delete()[0]
    if not deleted:
        raise HttpError(404, "Address not found")
    return {"status": "ok"}
