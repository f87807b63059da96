from fastapi import APIRouter, Request

from indiyum.domain.schemas import ReviewRequest

router = APIRouter()


@router.get("/reviews")
async def list_reviews(request: Request):
    grouped = await request.app.state.review_service.list_grouped()
    return {
        product: [r.model_dump(mode="json", by_alias=True) for r in reviews]
        for product, reviews in grouped.items()
    }


@router.post("/reviews")
async def add_review(payload: ReviewRequest, request: Request):
    review = await request.app.state.review_service.add_review(payload)
    return review.model_dump(mode="json", by_alias=True)
