from __future__ import annotations

from decimal import Decimal

from ninja import Schema

from pricing.services import price_summary


class CategoryRefOut(Schema):
    id: int
    slug: str
    name: str


class CategoryOut(Schema):
    id: int
    slug: str
    name: str
    parent_id: int | None = None
    description: str = ""


class PriceOut(Schema):
    currency: str
    mrp: Decimal
    selling: Decimal
    discount_percent: int | None = None


class VariantOut(Schema):
    id: int
    sku: str
    name: str
    price: PriceOut
    stock: int
    is_available: bool

    @staticmethod
    def resolve_price(obj):
        return price_summary(obj.product, obj)


class ProductListOut(Schema):
    id: int
    slug: str
    name: str
    category: CategoryRefOut | None = None
    price: PriceOut
    in_stock: bool

    @staticmethod
    def resolve_price(obj):
        return price_summary(obj)

    @staticmethod
    def resolve_in_stock(obj):
        return obj.stock > 0


class ProductDetailOut(Schema):
    id: int
    slug: str
    name: str
    description: str = ""
    category: CategoryRefOut | None = None
    price: PriceOut
    stock: int
    is_customizable: bool
    variants: list[VariantOut]

    @staticmethod
    def resolve_price(obj):
        return price_summary(obj)

    @staticmethod
    def resolve_variants(obj):
        available = [v for v in obj.variants.all() if v.is_available]
        return sorted(available, key=lambda v: (v.sku, v.id))
