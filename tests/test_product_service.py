import httpx

from product_service import ProductService


async def test_fetch_default_listing(api):
    service = ProductService(api)
    products = await service.fetch_products()
    assert len(products) == 9
    assert service.total_count == 9
    assert service.error is None
    assert not service.loading


async def test_new_category_is_applied_locally(api):
    service = ProductService(api)
    service.toggle_filter("categories", "new")
    products = await service.fetch_products()
    assert sorted(p.id for p in products) == ["1", "3", "6"]
    assert len(service.products) == 9


async def test_sale_or_stored_category(api):
    service = ProductService(api)
    service.update_filters(categories={"sale"})
    assert len(await service.fetch_products()) == 8
    service.toggle_filter("categories", "slipon")
    assert len(await service.fetch_products()) == 8


async def test_size_and_material_filters(api):
    service = ProductService(api)
    service.update_filters(sizes="300")
    assert sorted(p.id for p in await service.fetch_products()) == ["3", "9"]
    service.update_filters(sizes=set(), materials={"wool"})
    assert sorted(p.id for p in await service.fetch_products()) == ["1", "2", "6", "7"]
    assert service.active_filter_count() == 1


async def test_refilter_without_fetch(api):
    service = ProductService(api)
    await service.fetch_products()
    service.toggle_filter("models", "runner")
    assert sorted(p.id for p in service.refilter()) == ["3", "5", "7"]
    service.clear_filters()
    assert len(service.refilter()) == 9


async def test_sorted_view(api):
    service = ProductService(api)
    await service.fetch_products()
    assert service.sorted("price_low")[0].id == "4"
    assert service.sorted("sales")[0].id == "4"
    assert [p.id for p in service.sorted("unknown")] == [p.id for p in service.filtered_products]


async def test_failed_fetch_yields_empty_listing(mock_api):
    api = mock_api(lambda request: httpx.Response(503, json={"message": "maintenance"}))
    service = ProductService(api)
    assert await service.fetch_products() == []
    assert service.total_count == 0
    assert "maintenance" in service.error
    await api.aclose()


async def test_pagination_is_forwarded(api):
    service = ProductService(api, page_size=4)
    assert len(await service.fetch_products(page=3)) == 1
    assert service.total_count == 9


async def test_single_lookups(api):
    service = ProductService(api)
    product = await service.get_product("1")
    assert product.name == "남성 울 그루커 슬립온"
    assert product.is_new and product.is_on_sale
    assert product.discount_percentage == 30
    assert await service.get_product("999") is None
    assert [p.id for p in await service.get_popular(limit=2)] == ["4", "1"]


async def test_malformed_product_is_dropped_from_listing(mock_api):
    body = {"data": {"items": [
        {"id": 1, "gender": "men", "discountRate": 30},
        {"id": 2, "gender": "men", "price": 119000},
    ], "totalCount": 2}}
    api = mock_api(lambda request: httpx.Response(200, json=body))
    service = ProductService(api)
    assert [p.id for p in await service.fetch_products()] == ["2"]
    assert service.error is None
    await api.aclose()


async def test_malformed_single_product_is_none(mock_api):
    api = mock_api(lambda request: httpx.Response(200, json={"data": {"id": 1, "discountRate": 30}}))
    assert await ProductService(api).get_product("1") is None
    await api.aclose()
