from __future__ import annotations

from django.contrib import admin

from .models import Review, ReviewHelpfulVote


class ReviewHelpfulVoteInline(admin.TabularInline):
    model = ReviewHelpfulVote
    extra = 0
    readonly_fields = ("user", "is_helpful", "created_at")
    can_delete = False


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "product",
        "user",
        "rating",
        "is_approved",
        "is_verified_purchase",
        "helpful_count",
        "created_at",
    )
    list_filter = ("is_approved", "is_verified_purchase", "rating")
    search_fields = ("product__name", "user__email", "title", "comment")
    raw_id_fields = ("product", "user")
    readonly_fields = ("is_verified_purchase", "helpful_count", "created_at", "updated_at")
    inlines = [ReviewHelpfulVoteInline]
    actions = ("approve_selected", "hide_selected")

    @admin.action(description="Approve selected reviews")
    def approve_selected(self, request, queryset):
        queryset.update(is_approved=True)

    @admin.action(description="Hide selected reviews")
    def hide_selected(self, request, queryset):
        queryset.update(is_approved=False)
