import httpx
import pytest

from cart_service import CartService
from errors import ApiError, InvalidInputError
from order_service import OrderService
from review_service import ReviewService, validate_review

from conftest import CUSTOMER


@pytest.mark.parametrize("rating, content", [(0, "좋아요"), (6, "좋아요"), (True, "좋아요"), (4.5, "좋아요"), (5, "   ")])
def test_invalid_reviews(rating, content):
    with pytest.raises(InvalidInputError):
        validate_review(rating, content)


def test_valid_review():
    validate_review(5, "편해요")


@pytest.fixture
async def purchased(api, session):
    """Order item id of a purchased product 1"""
    cart = CartService(api, session)
    await session.login(*CUSTOMER)
    await cart.add_item("1", 270)
    order = await OrderService(api, cart).create_order()
    return order.items[0].id


async def test_review_purchased_product(api, purchased, fresh_store):
    reviews = ReviewService(api)
    review = await reviews.create_review("1", purchased, 5, " 편하고 가벼워요 ")
    assert review.content == "편하고 가벼워요"
    assert [r.id for r in await reviews.list_reviews("1")] == [review.id]
    assert fresh_store.products["1"].average_rating == 5.0


async def test_review_requires_order_item(api, purchased):
    with pytest.raises(InvalidInputError):
        await ReviewService(api).create_review("1", "", 5, "좋아요")


async def test_review_of_unpurchased_product_is_rejected(api, purchased):
    with pytest.raises(ApiError) as excinfo:
        await ReviewService(api).create_review("2", purchased, 5, "좋아요")
    assert excinfo.value.status_code == 403


async def test_update_and_delete(api, purchased, fresh_store):
    reviews = ReviewService(api)
    review = await reviews.create_review("1", purchased, 5, "좋아요")
    updated = await reviews.update_review(review.id, 3, "그냥 그래요")
    assert (updated.rating, updated.content) == (3, "그냥 그래요")
    assert fresh_store.products["1"].average_rating == 3.0

    assert await reviews.delete_review(review.id) is True
    assert await reviews.list_reviews("1") == []


async def test_unknown_product_reviews_are_empty(api):
    assert await ReviewService(api).list_reviews("999") == []


async def test_expired_session_drops_review_changes(api, purchased, session, fresh_store):
    reviews = ReviewService(api)
    fresh_store.sessions.clear()
    assert await reviews.create_review("1", purchased, 5, "좋아요") is None
    assert not session.is_authenticated
    assert await reviews.update_review("review-x", 4, "괜찮아요") is None
    assert await reviews.delete_review("review-x") is False
    assert fresh_store.reviews == {}


async def test_malformed_review_is_dropped(mock_api):
    body = {"data": {"items": [
        {"id": 1, "productId": 1, "rating": 9, "comment": "최고"},
        {"id": 2, "productId": 1, "rating": 4, "comment": "좋아요"},
    ]}}
    api = mock_api(lambda request: httpx.Response(200, json=body))
    assert [r.id for r in await ReviewService(api).list_reviews("1")] == ["2"]
    await api.aclose()
