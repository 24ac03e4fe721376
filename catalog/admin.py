from __future__ import annotations

from django.contrib import admin

from .models import Category, Product, Variant


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "parent", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ("sku", "name", "price_override", "price_modifier", "stock", "is_available")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "base_price", "selling_price", "stock", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = (VariantInline,)

    fieldsets = (
        (None, {"fields": ("name", "slug", "category", "is_active", "is_customizable")}),
        ("Content", {"fields": ("description",)}),
        ("Pricing / stock", {"fields": ("base_price", "selling_price", "stock")}),
        ("Meta", {"fields": ("created_at", "updated_at")}),
    )

    readonly_fields = ("created_at", "updated_at")


@admin.register(Variant)
class VariantAdmin(admin.ModelAdmin):
    list_display = ("sku", "product", "name", "price_override", "price_modifier", "stock", "is_available")
    list_filter = ("is_available",)
    search_fields = ("sku", "name", "product__name")
    raw_id_fields = ("product",)
