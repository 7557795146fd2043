from datetime import datetime, timedelta, timezone

import httpx
import pytest

from admin_service import AdminService, summarize_sales, validate_discount_rate, validate_draft, validate_period
from cart_service import CartService
from errors import InvalidInputError
from order_service import OrderService
from product_service import ProductService
from schemas import ProductDraft, SalesRecord

from conftest import CUSTOMER


def valid_draft(**overrides):
    fields = dict(
        name="남성 트리 러너",
        price=100000,
        discount_rate=0.2,
        categories=["lifestyle"],
        sizes=["260", 270],
        material="tree",
        images=["/img/runner.jpg"],
        gender="men",
    )
    fields.update(overrides)
    return ProductDraft(**fields)


def test_valid_draft_passes():
    validate_draft(valid_draft())


@pytest.mark.parametrize("overrides", [
    {"name": "  "},
    {"price": -1},
    {"discount_rate": 1.2},
    {"categories": []},
    {"sizes": ["big"]},
    {"images": [" "]},
    {"sale_start": "2026-03-10", "sale_end": "2026-03-01"},
])
def test_invalid_drafts(overrides):
    with pytest.raises(InvalidInputError):
        validate_draft(valid_draft(**overrides))


def test_discount_rate_bounds():
    assert validate_discount_rate("0.5") == 0.5
    assert validate_discount_rate(0) == 0
    assert validate_discount_rate(1) == 1
    with pytest.raises(InvalidInputError):
        validate_discount_rate(-0.1)
    with pytest.raises(InvalidInputError):
        validate_discount_rate("half")


def test_period_accepts_same_day_and_open_ends():
    validate_period("2026-03-01", "2026-03-01")
    validate_period(None, "2026-03-01")
    with pytest.raises(InvalidInputError):
        validate_period("not a date", None)


def test_summarize_sales():
    summary = summarize_sales([
        SalesRecord(product_id="1", total_quantity=2, total_revenue=238000),
        SalesRecord(product_id="3", total_quantity=1, total_revenue=140000),
    ])
    assert summary.total_quantity == 3
    assert summary.total_revenue == 378000
    assert summary.average_price == 126000
    assert summarize_sales([]).average_price == 0


async def test_create_product(api, admin, fresh_store):
    product = await AdminService(api).create_product(valid_draft())
    assert product.price == 80000
    assert product.original_price == 100000
    assert product.sizes == [260, 270]
    assert product.images == ["/img/runner.jpg"]
    assert product.id in fresh_store.products


async def test_update_sizes(api, admin):
    product = await AdminService(api).update_sizes("9", "300, 280")
    assert product.sizes == [280, 300]


async def test_update_discount(api, admin):
    admin_service = AdminService(api)
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 31, tzinfo=timezone.utc)
    product = await admin_service.update_discount("9", 0.5, start, end)
    assert product.price == 77000
    assert product.discount_rate == 0.5
    assert product.sale_start == start

    with pytest.raises(InvalidInputError):
        await admin_service.update_discount("9", 0.5, end, start)


async def test_admin_listing(api, admin):
    products = await AdminService(api).list_products(category="slipon")
    assert sorted(p.id for p in products) == ["1", "2", "8"]


async def test_customer_cannot_use_admin_endpoints(api, customer):
    assert await AdminService(api).list_products() == []
    assert await AdminService(api).sales_report() == []


async def test_sales_report(api, session):
    cart = CartService(api, session)
    await session.login(*CUSTOMER)
    await cart.add_item("1", 270, 2)
    await OrderService(api, cart).create_order()
    await session.logout()
    await session.login("admin@test.com", "admin")

    admin_service = AdminService(api)
    records = await admin_service.sales_report()
    assert [(r.product_id, r.total_quantity, r.total_revenue) for r in records] == [("1", 2, 238000)]

    single = await admin_service.product_sales("1")
    assert single["totalQuantity"] == 2
    assert (await admin_service.product_sales("9"))["totalQuantity"] == 0


async def test_expired_admin_session_drops_changes(api, admin, fresh_store):
    admin_service = AdminService(api)
    fresh_store.sessions.clear()
    assert await admin_service.create_product(valid_draft()) is None
    assert not admin.is_authenticated
    assert await admin_service.update_sizes("9", [270]) is None
    assert await admin_service.update_discount("9", 0.1) is None
    assert await admin_service.list_products() == []
    assert len(fresh_store.products) == 9
    assert fresh_store.products["9"].sizes == [270, 280, 290, 300]


async def test_sale_ended_by_admin_leaves_sale_listing(api, admin):
    now = datetime.now(timezone.utc)
    updated = await AdminService(api).update_discount("1", 0.3, now - timedelta(days=20), now - timedelta(days=5))
    assert not updated.is_on_sale

    products = ProductService(api)
    products.update_filters(categories={"sale"})
    on_sale = [p.id for p in await products.fetch_products()]
    assert "1" not in on_sale
    assert len(on_sale) == 7


async def test_malformed_sales_record_is_dropped(mock_api):
    body = {"data": {"items": [
        {"productId": 1, "totalQuantity": "many"},
        {"productId": 2, "totalQuantity": 1, "totalRevenue": 100},
    ]}}
    api = mock_api(lambda request: httpx.Response(200, json=body))
    assert [r.product_id for r in await AdminService(api).sales_report()] == ["2"]
    await api.aclose()
