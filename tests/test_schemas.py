from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from schemas import Cart, FilterState, Order, Product, ProductDraft, Review, SalesRecord, User, coerce_sizes


def test_product_coerces_wire_shapes():
    product = Product.model_validate({
        "id": 7,
        "name": "남성 울 러너",
        "price": 119000,
        "sizes": "260, 270, x",
        "imageUrls": "a.jpg,b.jpg",
        "saleStartDate": "2026-01-01",
        "saleEnd": "2026-01-31T23:59:59Z",
        "createdAt": "2025-12-20T09:30:00",
        "salesCount": None,
    })
    assert product.id == "7"
    assert product.sizes == [260, 270]
    assert product.images == ["a.jpg", "b.jpg"]
    assert product.sale_start == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert product.created_at.tzinfo is not None
    assert product.sales_count == 0


def test_product_serializes_camel_case():
    payload = Product(id="1", sale_start=datetime(2026, 1, 1, tzinfo=timezone.utc)).model_dump(by_alias=True)
    assert "saleStart" in payload
    assert "salesCount" in payload
    assert "sale_start" not in payload


def test_product_rejects_out_of_range_discount():
    with pytest.raises(ValidationError):
        Product(id="1", discount_rate=1.5)


def test_discount_percentage_falls_back_to_rate():
    assert Product(id="1", price=119000, original_price=170000).discount_percentage == 30
    assert Product(id="1", discount_rate=0.25).discount_percentage == 25


def test_coerce_sizes():
    assert coerce_sizes([260, "270", " 280 "]) == [260, 270, 280]
    assert coerce_sizes("260,abc") == [260]
    assert coerce_sizes(None) == []


def test_cart_total_is_line_sum():
    cart = Cart.model_validate({
        "items": [
            {"id": 1, "productId": 2, "size": "270", "unitPrice": 1000, "quantity": 2},
            {"id": 2, "productId": 3, "size": 280, "price": 500, "quantity": 1},
        ],
        "totalPrice": 9999,
    })
    assert cart.items[0].id == "1"
    assert cart.items[0].size == 270
    assert cart.total == 2500
    assert cart.reported_total == 9999
    assert cart.item_count == 3


def test_cart_accepts_null_items():
    assert Cart.model_validate({"items": None}).items == []


def test_order_total_derived_from_items():
    order = Order.model_validate({
        "id": "o1",
        "orderItems": [{"productId": "1", "price": 1000, "quantity": 2}],
        "orderDate": "2026-01-02",
    })
    assert order.total == 2000
    assert order.created_at == datetime(2026, 1, 2, tzinfo=timezone.utc)


def test_order_is_frozen():
    order = Order(id="o1", total=10)
    with pytest.raises(ValidationError):
        order.total = 0


def test_review_accepts_comment_and_bounds_rating():
    assert Review.model_validate({"id": 1, "productId": 2, "rating": 4, "comment": "좋아요"}).content == "좋아요"
    with pytest.raises(ValidationError):
        Review(id="1", product_id="2", rating=6)


def test_user_admin_role_is_case_insensitive():
    assert User(id="1", email="a@b.c", role="ADMIN").is_admin
    assert User(id="1", email="a@b.c", role="admin").is_admin
    assert not User(id="1", email="a@b.c").is_admin


def test_sales_record_legacy_names():
    record = SalesRecord.model_validate({"productId": 1, "salesCount": 3, "revenue": 300})
    assert (record.product_id, record.total_quantity, record.total_revenue) == ("1", 3, 300)


def test_draft_payload():
    draft = ProductDraft(name=" 러너 ", price=1000, sizes=["270", "x"], images=["a.jpg", " "], sale_start="2026-02-01")
    payload = draft.to_payload()
    assert payload["name"] == "러너"
    assert payload["sizes"] == [270]
    assert payload["imageUrls"] == ["a.jpg"]
    assert payload["saleStart"] == "2026-02-01T00:00:00+00:00"
    assert payload["saleEnd"] is None


# FilterState

def test_toggle_adds_then_removes():
    filters = FilterState()
    filters.toggle("sizes", 270)
    assert filters.sizes == {"270"}
    filters.toggle("sizes", "270")
    assert filters.sizes == set()


def test_toggle_unknown_dimension():
    with pytest.raises(ValueError):
        FilterState().toggle("colors", "red")


def test_update_validates_values():
    filters = FilterState()
    filters.update(materials="wool,troo", gender="women")
    assert filters.materials == {"wool", "troo"}
    assert filters.gender == "women"
    with pytest.raises(ValueError):
        filters.update(colour="red")


def test_clear_keeps_gender():
    filters = FilterState(gender="women", sizes={"270"}, categories={"new"})
    assert filters.active_count() == 2
    filters.clear()
    assert filters.active_count() == 0
    assert filters.gender == "women"
    assert not filters.is_empty()
    assert FilterState(gender=None).is_empty()


def test_query_params():
    filters = FilterState(sizes={"280", "270"}, materials={"wool"}, categories={"slipon", "lifestyle"})
    assert filters.to_query_params() == {
        "gender": "men",
        "category": "lifestyle,slipon",
        "size": "270,280",
        "material": "wool",
    }


def test_query_params_skip_category_with_auto_tags():
    filters = FilterState(categories={"new", "lifestyle"})
    assert "category" not in filters.to_query_params()
