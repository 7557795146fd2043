# review_service.py - Product reviews
# A review is written against a purchased order item.

import logging
from typing import List, Optional

from api_client import StorefrontAPI
from errors import ApiError, InvalidInputError, SessionExpiredError
from schemas import Review

logger = logging.getLogger("Storefront.Reviews")

MIN_RATING = 1
MAX_RATING = 5


def validate_review(rating: int, content: str) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidInputError("Rating must be a whole number")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInputError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    if not content or not content.strip():
        raise InvalidInputError("Review text is required")


class ReviewService:
    def __init__(self, api: StorefrontAPI):
        self.api = api

    async def list_reviews(self, product_id: str) -> List[Review]:
        try:
            return await self.api.list_reviews(product_id)
        except ApiError as e:
            logger.error(f"Failed to fetch reviews for {product_id}: {e}")
            return []

    async def create_review(self, product_id: str, order_item_id: str, rating: int, content: str) -> Optional[Review]:
        validate_review(rating, content)
        if not order_item_id:
            raise InvalidInputError("A review must reference a purchased order item")
        try:
            review = await self.api.create_review(product_id, order_item_id, rating, content.strip())
        except SessionExpiredError:
            logger.info("Review dropped: session expired")
            return None
        logger.info(f"Review {review.id} posted for product {product_id}")
        return review

    async def update_review(self, review_id: str, rating: int, content: str) -> Optional[Review]:
        validate_review(rating, content)
        try:
            return await self.api.update_review(review_id, rating, content.strip())
        except SessionExpiredError:
            logger.info(f"Review {review_id} update dropped: session expired")
            return None

    async def delete_review(self, review_id: str) -> bool:
        try:
            await self.api.delete_review(review_id)
        except SessionExpiredError:
            logger.info(f"Review {review_id} delete dropped: session expired")
            return False
        return True
