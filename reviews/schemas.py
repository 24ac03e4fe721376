from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ninja import Schema


class ReviewCreateIn(Schema):
    rating: int
    title: str = ""
    comment: str = ""


class ReviewUpdateIn(Schema):
    rating: int | None = None
    title: str | None = None
    comment: str | None = None


class ReviewVoteIn(Schema):
    is_helpful: bool = True


class ReviewOut(Schema):
    id: int
    product_id: int
    rating: int
    title: str = ""
    comment: str = ""
    reviewer_name: str = ""
    is_verified_purchase: bool
    helpful_count: int
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_reviewer_name(obj):
        # Email is never shown publicly.
        return obj.user.name or "Customer"


class RatingSummaryOut(Schema):
    product_id: int
    count: int
    average: Decimal | None = None
    distribution: dict[str, int]


class HelpfulOut(Schema):
    review_id: int
    helpful_count: int
