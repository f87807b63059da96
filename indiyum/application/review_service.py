import logging
from typing import Dict, List

from indiyum.core.clock import now_iso
from indiyum.core.errors import ValidationError
from indiyum.domain.models import Review
from indiyum.domain.schemas import ReviewRequest
from indiyum.infrastructure.repositories.document_repository import next_record_id
from indiyum.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, repo: IOrderRepository, timezone: str):
        self.repo = repo
        self.timezone = timezone

    async def list_grouped(self) -> Dict[str, List[Review]]:
        """Reviews keyed by product name, oldest first within each product."""
        document = await self.repo.read()
        grouped: Dict[str, List[Review]] = {}
        for review in document.reviews:
            grouped.setdefault(review.product_name, []).append(review)
        return grouped

    async def add_review(self, req: ReviewRequest) -> Review:
        if not (req.product_name and req.name and req.rating and req.text):
            raise ValidationError("Missing review fields", reason="missing_review_fields")
        if not 1 <= req.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5", reason="invalid_rating")

        async with self.repo.edit() as document:
            review = Review(
                id=next_record_id(document.reviews),
                product_name=req.product_name.strip(),
                name=req.name.strip(),
                rating=req.rating,
                text=req.text.strip(),
                created_at=now_iso(self.timezone),
            )
            document.reviews.append(review)

        logger.info(f"⭐ New {review.rating}-star review for {review.product_name}")
        return review
