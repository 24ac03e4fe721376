from __future__ import annotations

from ninja import Router
from ninja.pagination import PageNumberPagination, paginate

from accounts.auth import JWTAuth
from accounts.schemas import StatusOut

from .schemas import (
    HelpfulOut,
    RatingSummaryOut,
    ReviewCreateIn,
    ReviewOut,
    ReviewUpdateIn,
    ReviewVoteIn,
)
from .services import (
    approved_reviews,
    create_review,
    delete_review,
    rating_summary,
    remove_vote,
    update_review,
    vote_helpful,
)


router = Router(tags=["reviews"])
_auth = JWTAuth()


class ReviewPagination(PageNumberPagination):
    page_size = 10
    max_page_size = 50


@router.get("/product/{product_id}", response=list[ReviewOut])
@paginate(ReviewPagination)
def product_reviews(request, product_id: int, sort: str = "created_at", order: str = "desc"):
    return approved_reviews(product_id=product_id, sort=sort, order=order)


@router.get("/product/{product_id}/summary", response=RatingSummaryOut)
def product_rating_summary(request, product_id: int):
    return rating_summary(product_id=product_id)


@router.post("/product/{product_id}", response={201: ReviewOut}, auth=_auth)
def add_review(request, product_id: int, payload: ReviewCreateIn):
    review = create_review(
        user=request.auth,
        product_id=product_id,
        rating=payload.rating,
        title=payload.title,
        comment=payload.comment,
    )
    return 201, review


@router.patch("/{review_id}", response=ReviewOut, auth=_auth)
def edit_review(request, review_id: int, payload: ReviewUpdateIn):
    return update_review(
        user=request.auth,
        review_id=review_id,
        rating=payload.rating,
        title=payload.title,
        comment=payload.comment,
    )


@router.delete("/{review_id}", response=StatusOut, auth=_auth)
def remove_review(request, review_id: int):
    delete_review(user=request.auth, review_id=review_id)
    return {"status": "ok"}


@router.post("/{review_id}/helpful", response=HelpfulOut, auth=_auth)
def mark_helpful(request, review_id: int, payload: ReviewVoteIn):
    count = vote_helpful(user=request.auth, review_id=review_id, is_helpful=payload.is_helpful)
    return {"review_id": review_id, "helpful_count": count}


@router.delete("/{review_id}/helpful", response=HelpfulOut, auth=_auth)
def unmark_helpful(request, review_id: int):
    return {"review_id": review_id, "helpful_count": remove_vote(user=request.auth, review_id=review_id)}
