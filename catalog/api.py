from __future__ import annotations

from ninja import Router
from ninja.errors import HttpError
from ninja.pagination import PageNumberPagination, paginate

from .models import Category, Product
from .schemas import CategoryOut, ProductDetailOut, ProductListOut

router = Router(tags=["catalog"])


class ProductPagination(PageNumberPagination):
    page_size = 20
    max_page_size = 100


@router.get("/categories", response=list[CategoryOut])
def categories(request):
    return Category.objects.filter(is_active=True).order_by("name")


@router.get("/products", response=list[ProductListOut])
@paginate(ProductPagination)
def products(request, category: str = "", q: str = ""):
    qs = (
        Product.objects.filter(is_active=True)
        .select_related("category")
        .order_by("name", "id")
    )

    category = (category or "").strip()
    if category:
        qs = qs.filter(category__slug=category, category__is_active=True)

    q = (q or "").strip()
    if q:
        if len(q) > 100:
            raise HttpError(400, "Query too long")
        qs = qs.filter(name__icontains=q)

    return qs


@router.get("/products/{slug}", response=ProductDetailOut)
def product_detail(request, slug: str):
    product = (
        Product.objects.filter(slug=slug, is_active=True)
        .select_related("category")
        .prefetch_related("variants")
        .first()
    )
    if not product:
        raise HttpError(404, "Product not found")
    return product
