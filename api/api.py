from __future__ import annotations

import logging

from django.conf import settings
from ninja import NinjaAPI

from accounts.api import router as auth_router
from catalog.api import router as catalog_router
from checkout.api import router as checkout_router
from checkout.exceptions import CheckoutError
from payments.api import router as payments_router
from promotions.api import router as coupons_router
from reviews.api import router as reviews_router
from wishlist.api import router as wishlist_router

logger = logging.getLogger(__name__)

docs_url = "/docs" if getattr(settings, "NINJA_ENABLE_DOCS", True) else None
openapi_url = "/openapi.json" if getattr(settings,
                                         "NINJA_ENABLE_DOCS", True) else None

api = NinjaAPI(
    title="Print shop API",
    version="1",
    docs_url=docs_url,
    openapi_url=openapi_url,
)

api.add_router("/auth", auth_router)
api.add_router("/catalog", catalog_router)
api.add_router("/checkout", checkout_router)
api.add_router("/coupons", coupons_router)
api.add_router("/payments", payments_router)
api.add_router("/reviews", reviews_router)
api.add_router("/wishlist", wishlist_router)


@api.exception_handler(CheckoutError)
def checkout_error(request, exc: CheckoutError):
    if exc.status_code >= 500:
        logger.warning("Checkout request failed: %s", exc.message, extra={"path": request.path})
    return api.create_response(
        request,
        {"detail": exc.message, "code": exc.code},
        status=exc.status_code,
    )


@api.get("/health")
def health(request):
    return {"status": "ok"}
