from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from django.db import IntegrityError, transaction

from catalog.models import Product, Variant
from pricing.services import ZERO, mrp_price_for, quantize_money, unit_price_for

from .exceptions import CheckoutValidationError, NotFoundError
from .models import Cart, CartItem


MAX_LINE_QTY = 100


@dataclass(frozen=True)
class CartLine:
    id: int
    product_id: int
    product_name: str
    category_id: int | None
    variant_id: int | None
    variant_name: str
    sku: str
    qty: int
    unit_price: Decimal
    mrp_price: Decimal
    design_refs: tuple[str, ...] = ()
    custom_text: str = ""

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.qty)

    @property
    def mrp_total(self) -> Decimal:
        return quantize_money(self.mrp_price * self.qty)


@dataclass(frozen=True)
class CartSummary:
    lines: tuple[CartLine, ...] = ()
    subtotal: Decimal = ZERO
    mrp_total: Decimal = ZERO
    item_count: int = 0
    currency: str = "INR"
    missing_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def savings(self) -> Decimal:
        return quantize_money(max(self.mrp_total - self.subtotal, ZERO))

    @property
    def is_empty(self) -> bool:
        return not self.lines


def normalize_design_refs(refs) -> list[str]:
    """Accept a single reference or a list of them; drop blanks and duplicates."""
    if refs is None:
        return []
    if isinstance(refs, str):
        refs = [refs]
    out: list[str] = []
    for r in refs:
        s = str(r or "").strip()
        if s and s not in out:
            out.append(s)
    return out


def line_from_item(item: CartItem) -> CartLine:
    product = item.product
    variant = item.variant
    return CartLine(
        id=item.id,
        product_id=product.id,
        product_name=product.name,
        category_id=product.category_id,
        variant_id=variant.id if variant else None,
        variant_name=variant.name if variant else "",
        sku=variant.sku if variant else "",
        qty=int(item.qty),
        unit_price=unit_price_for(product, variant),
        mrp_price=mrp_price_for(product, variant),
        design_refs=tuple(normalize_design_refs(item.custom_design_refs)),
        custom_text=item.custom_text or "",
    )


def summarize(lines: Iterable[CartLine], *, currency: str = "INR", missing_ids=frozenset()) -> CartSummary:
    lines = tuple(lines)
    return CartSummary(
        lines=lines,
        subtotal=quantize_money(sum((ln.line_total for ln in lines), ZERO)),
        mrp_total=quantize_money(sum((ln.mrp_total for ln in lines), ZERO)),
        item_count=sum(ln.qty for ln in lines),
        currency=currency,
        missing_ids=frozenset(missing_ids),
    )


class CartService:
    """The signed-in user's cart. Prices are read live from the catalog."""

    def __init__(self, user, *, currency: str | None = None):
        from django.conf import settings

        self.user = user
        self.currency = (currency or getattr(settings, "CHECKOUT_CURRENCY", "INR") or "INR").upper()

    def get_cart(self) -> Cart:
        cart, _ = Cart.objects.get_or_create(user=self.user)
        return cart

    def _items(self, item_ids: Iterable[int] | None = None, *, for_update: bool = False):
        qs = CartItem.objects.filter(cart__user=self.user)
        if item_ids is not None:
            qs = qs.filter(id__in=[int(i) for i in item_ids])
        if for_update:
            # Lock only cart rows; variant is a nullable join.
            qs = qs.select_for_update(of=("self",))
        return qs.select_related("product", "variant").order_by("id")

    def lines(self, item_ids: Iterable[int] | None = None, *, for_update: bool = False) -> list[CartLine]:
        return [line_from_item(it) for it in self._items(item_ids, for_update=for_update)]

    def summary(self, item_ids: Iterable[int] | None = None) -> CartSummary:
        wanted = None if item_ids is None else {int(i) for i in item_ids}
        lines = self.lines(wanted)
        missing = frozenset(wanted - {ln.id for ln in lines}) if wanted is not None else frozenset()
        return summarize(lines, currency=self.currency, missing_ids=missing)

    def _check_stock(self, *, product: Product, variant: Variant | None, qty: int) -> None:
        available = int(variant.stock) if variant is not None else int(product.stock)
        if qty > available:
            raise CheckoutValidationError(f"Only {available} in stock for {product.name}")

    def _resolve(self, *, product_id: int, variant_id: int | None) -> tuple[Product, Variant | None]:
        product = Product.objects.filter(id=int(product_id), is_active=True).first()
        if not product:
            raise NotFoundError("Product not found")

        variant = None
        if variant_id is not None:
            variant = Variant.objects.filter(id=int(variant_id), product=product).first()
            if not variant:
                raise NotFoundError("Variant not found")
            if not variant.is_available:
                raise CheckoutValidationError("Variant is not available")
        return product, variant

    def add(
        self,
        *,
        product_id: int,
        variant_id: int | None = None,
        qty: int = 1,
        design_refs=None,
        custom_text: str | None = None,
    ) -> CartLine:
        qty = int(qty)
        if qty < 1:
            raise CheckoutValidationError("Quantity must be at least 1")

        product, variant = self._resolve(product_id=product_id, variant_id=variant_id)
        refs = normalize_design_refs(design_refs)

        with transaction.atomic():
            cart = self.get_cart()
            item = (
                CartItem.objects.select_for_update()
                .filter(cart=cart, product=product, variant=variant)
                .first()
            )
            new_qty = qty + (int(item.qty) if item else 0)
            if new_qty > MAX_LINE_QTY:
                raise CheckoutValidationError(f"Quantity cannot exceed {MAX_LINE_QTY}")
            self._check_stock(product=product, variant=variant, qty=new_qty)

            if item:
                item.qty = new_qty
                if refs:
                    item.custom_design_refs = refs
                if custom_text is not None:
                    item.custom_text = custom_text.strip()
                item.save(update_fields=["qty", "custom_design_refs", "custom_text", "updated_at"])
            else:
                try:
                    item = CartItem.objects.create(
                        cart=cart,
                        product=product,
                        variant=variant,
                        qty=new_qty,
                        custom_design_refs=refs,
                        custom_text=(custom_text or "").strip(),
                    )
                except IntegrityError as e:
                    raise CheckoutValidationError("Item is already in the cart") from e

        return line_from_item(item)

    def update(
        self,
        *,
        item_id: int,
        qty: int | None = None,
        design_refs=None,
        custom_text: str | None = None,
    ) -> CartLine | None:
        """Change a line. A quantity of zero or less removes it and returns None."""
        with transaction.atomic():
            item = self._items([item_id], for_update=True).first()
            if not item:
                raise NotFoundError("Cart item not found")

            if qty is not None:
                qty = int(qty)
                if qty <= 0:
                    item.delete()
                    return None
                if qty > MAX_LINE_QTY:
                    raise CheckoutValidationError(f"Quantity cannot exceed {MAX_LINE_QTY}")
                self._check_stock(product=item.product, variant=item.variant, qty=qty)
                item.qty = qty

            if design_refs is not None:
                item.custom_design_refs = normalize_design_refs(design_refs)
            if custom_text is not None:
                item.custom_text = custom_text.strip()
            item.save()

        return line_from_item(item)

    def remove(self, *, item_id: int) -> None:
        deleted = CartItem.objects.filter(cart__user=self.user, id=int(item_id)).delete()[0]
        if not deleted:
            raise NotFoundError("Cart item not found")

    def clear(self) -> int:
        return CartItem.objects.filter(cart__user=self.user).delete()[0]

    def remove_lines(self, item_ids: Iterable[int]) -> int:
        ids = [int(i) for i in item_ids]
        if not ids:
            return 0
        return CartItem.objects.filter(cart__user=self.user, id__in=ids).delete()[0]
