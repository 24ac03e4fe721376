from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.db.models import Count

from catalog.models import Product
from checkout.exceptions import CheckoutValidationError, NotFoundError
from checkout.models import Order, OrderItem

from .models import Review, ReviewHelpfulVote


logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

SORT_FIELDS = {
    "created_at": "created_at",
    "rating": "rating",
    "helpful": "helpful_count",
}


def _check_rating(rating) -> int:
    try:
        value = int(rating)
    except (TypeError, ValueError) as e:
        raise CheckoutValidationError("Rating must be between 1 and 5") from e
    if value < MIN_RATING or value > MAX_RATING:
        raise CheckoutValidationError("Rating must be between 1 and 5")
    return value


def _product(product_id: int) -> Product:
    product = Product.objects.filter(id=product_id, is_active=True).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def approved_reviews(*, product_id: int, sort: str = "created_at", order: str = "desc"):
    field = SORT_FIELDS.get((sort or "created_at").strip())
    if field is None:
        raise CheckoutValidationError("Invalid sort field")
    order = (order or "desc").strip().lower()
    if order not in {"asc", "desc"}:
        raise CheckoutValidationError("Invalid sort order")

    product = _product(product_id)
    prefix = "" if order == "asc" else "-"
    return (
        Review.objects.filter(product=product, is_approved=True)
        .select_related("user")
        .order_by(f"{prefix}{field}", "-id")
    )


def rating_summary(*, product_id: int) -> dict:
    product = _product(product_id)
    rows = (
        Review.objects.filter(product=product, is_approved=True)
        .values("rating")
        .annotate(n=Count("id"))
    )
    distribution = {str(r): 0 for r in range(MIN_RATING, MAX_RATING + 1)}
    count = 0
    points = 0
    for row in rows:
        distribution[str(row["rating"])] = row["n"]
        count += row["n"]
        points += row["rating"] * row["n"]

    average = None
    if count:
        average = (Decimal(points) / Decimal(count)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return {"product_id": product.id, "count": count, "average": average, "distribution": distribution}


def has_purchased(*, user, product) -> bool:
    return OrderItem.objects.filter(
        product=product,
        order__user=user,
        order__payment_status=Order.PaymentStatus.SUCCESS,
    ).exists()


def create_review(*, user, product_id: int, rating, title: str = "", comment: str = "") -> Review:
    rating = _check_rating(rating)
    product = _product(product_id)

    if Review.objects.filter(product=product, user=user).exists():
        raise CheckoutValidationError("You have already reviewed this product")

    try:
        with transaction.atomic():
            review = Review.objects.create(
                product=product,
                user=user,
                rating=rating,
                title=(title or "").strip()[:200],
                comment=(comment or "").strip(),
                is_verified_purchase=has_purchased(user=user, product=product),
            )
    except IntegrityError as e:
        raise CheckoutValidationError("You have already reviewed this product") from e

    logger.info(
        "Review created",
        extra={"review_id": review.id, "product_id": product.id, "user_id": user.id},
    )
    return review


def _own_review(*, user, review_id: int) -> Review:
    review = Review.objects.select_related("user").filter(id=review_id, user=user).first()
    if not review:
        raise NotFoundError("Review not found")
    return review


def update_review(*, user, review_id: int, rating=None, title: str | None = None, comment: str | None = None) -> Review:
    review = _own_review(user=user, review_id=review_id)

    fields = []
    if rating is not None:
        review.rating = _check_rating(rating)
        fields.append("rating")
    if title is not None:
        review.title = title.strip()[:200]
        fields.append("title")
    if comment is not None:
        review.comment = comment.strip()
        fields.append("comment")

    if fields:
        review.save(update_fields=[*fields, "updated_at"])
    return review


def delete_review(*, user, review_id: int) -> None:
    review = _own_review(user=user, review_id=review_id)
    review.delete()


def _refresh_helpful_count(review_id: int) -> int:
    count = ReviewHelpfulVote.objects.filter(review_id=review_id, is_helpful=True).count()
    Review.objects.filter(id=review_id).update(helpful_count=count)
    return count


def _visible_review(review_id: int) -> Review:
    review = Review.objects.filter(id=review_id, is_approved=True).first()
    if not review:
        raise NotFoundError("Review not found")
    return review


def vote_helpful(*, user, review_id: int, is_helpful: bool = True) -> int:
    """Record or change the user's vote and return the review's helpful count."""
    review = _visible_review(review_id)
    with transaction.atomic():
        ReviewHelpfulVote.objects.update_or_create(
            review=review,
            user=user,
            defaults={"is_helpful": bool(is_helpful)},
        )
        return _refresh_helpful_count(review.id)


def remove_vote(*, user, review_id: int) -> int:
    review = _visible_review(review_id)
    with transaction.atomic():
        deleted = ReviewHelpfulVote.objects.filter(review=review, user=user).delete()[0]
        if not deleted:
            raise NotFoundError("Vote not found")
        return _refresh_helpful_count(review.id)
