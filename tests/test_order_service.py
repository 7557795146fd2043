import httpx
import pytest

from cart_service import CartService
from errors import ApiError
from order_service import OrderService

from conftest import CUSTOMER


@pytest.fixture
async def shop(api, session):
    cart = CartService(api, session)
    await session.login(*CUSTOMER)
    return cart, OrderService(api, cart)


async def test_checkout_snapshots_cart(shop, fresh_store):
    cart, orders = shop
    await cart.add_item("1", 270, 2)
    await cart.add_item("3", 280)
    expected_total = cart.total
    sold_before = fresh_store.products["1"].sales_count

    order = await orders.create_order("CARD")

    assert order.total == expected_total
    assert sorted((item.product_id, item.quantity) for item in order.items) == [("1", 2), ("3", 1)]
    assert order.payment_method == "CARD"
    assert cart.cart.items == []
    assert fresh_store.products["1"].sales_count == sold_before + 2


async def test_checkout_with_empty_cart_fails(shop):
    _, orders = shop
    with pytest.raises(ApiError) as excinfo:
        await orders.create_order()
    assert excinfo.value.status_code == 400


async def test_history_newest_first(shop):
    cart, orders = shop
    await cart.add_item("1", 270)
    first = await orders.create_order()
    await cart.add_item("4", 280)
    second = await orders.create_order()

    history = await orders.list_orders()
    assert [o.id for o in history] == [second.id, first.id]
    assert (await orders.get_order(first.id)).total == first.total


async def test_missing_order_is_none(shop):
    _, orders = shop
    assert await orders.get_order("order-unknown") is None


async def test_history_requires_login(api):
    assert await OrderService(api).list_orders() == []


async def test_expired_session_drops_checkout(shop, session, fresh_store):
    cart, orders = shop
    await cart.add_item("1", 270)
    fresh_store.sessions.clear()
    assert await orders.create_order() is None
    assert not session.is_authenticated
    assert cart.cart.items == []
    assert fresh_store.orders == []


async def test_malformed_order_is_dropped_from_history(mock_api):
    body = {"data": {"items": [
        {"userId": 1},
        {"id": "o2", "items": [{"productId": 1, "price": 100, "quantity": 1}]},
    ]}}
    api = mock_api(lambda request: httpx.Response(200, json=body))
    assert [o.id for o in await OrderService(api).list_orders()] == ["o2"]
    await api.aclose()


async def test_malformed_single_order_is_none(mock_api):
    api = mock_api(lambda request: httpx.Response(200, json={"data": {"order": {"userId": 1}}}))
    assert await OrderService(api).get_order("o1") is None
    await api.aclose()
