from __future__ import annotations

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from ninja.security import HttpBearer

from .jwt_utils import decode_token

User = get_user_model()


def _cookie_token(request) -> str:
    name = getattr(settings, "AUTH_COOKIE_ACCESS_NAME", "access_token")
    return (request.COOKIES.get(name) or "").strip()


class JWTAuth(HttpBearer):
    """Access token from the HttpOnly cookie, falling back to ``Authorization: Bearer``."""

    def __call__(self, request):
        token = _cookie_token(request)
        if token:
            return self.authenticate(request, token)
        return super().__call__(request)

    def authenticate(self, request, token: str):
        try:
            claims = decode_token(token)
        except jwt.PyJWTError:
            return None

        if claims.get("type") != "access":
            return None

        try:
            user_id = int(claims.get("sub") or 0)
        except (TypeError, ValueError):
            return None

        return User.objects.filter(id=user_id, is_active=True).first() if user_id else None
