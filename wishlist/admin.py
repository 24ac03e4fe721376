from __future__ import annotations

from django.contrib import admin

from .models import WishlistItem


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "product", "created_at")
    search_fields = ("user__email", "product__name", "product__slug")
    raw_id_fields = ("user", "product")
    readonly_fields = ("created_at",)
