# schemas.py - Storefront Schemas
# Pydantic models for every payload exchanged with the storefront REST API.
# Wire names are camelCase; Python code uses the snake_case attribute names.
# Shape coercion (string sizes, numeric ids, date-only timestamps, legacy
# field names) happens here, once, at the API boundary.

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

import catalog
from config import DEFAULT_GENDER

logger = logging.getLogger("Storefront.Schemas")

FILTER_DIMENSIONS = ("sizes", "materials", "functions", "models", "categories")


# ============================================================================
# COERCION HELPERS
# ============================================================================

def _stringify_id(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


def _parse_when(value: Any) -> Any:
    """Accept bare dates and date-only strings as midnight UTC."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if isinstance(value, str) and len(value) == 10:
        return datetime.combine(date.fromisoformat(value), time(), tzinfo=timezone.utc)
    return value


def _ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _split_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def coerce_sizes(value: Any) -> List[int]:
    """Parse shoe sizes given as ints, numeric strings or a comma list; drop the rest."""
    sizes = []
    for raw in _split_list(value):
        try:
            sizes.append(int(str(raw).strip()))
        except ValueError:
            logger.warning(f"Dropping unparseable size {raw!r}")
    return sizes


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class FrozenCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


# ============================================================================
# CATALOG
# ============================================================================

class Product(CamelModel):
    """Catalog entry; ``is_new``/``is_on_sale`` are derived at read time."""
    id: str
    name: str = ""
    description: str = ""
    price: float = Field(0, ge=0)
    original_price: Optional[float] = None
    final_price: Optional[float] = None
    discount_rate: float = Field(0, ge=0, le=1)
    images: List[str] = Field(
        default_factory=list,
        alias="images",
        validation_alias=AliasChoices("images", "imageUrls", "image_urls"),
    )
    colors: List[str] = Field(default_factory=list)
    sizes: List[int] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    material: Optional[str] = None
    functions: List[str] = Field(default_factory=list)
    model: Optional[str] = None
    gender: Optional[str] = None
    created_at: Optional[datetime] = None
    sale_start: Optional[datetime] = Field(
        None,
        alias="saleStart",
        validation_alias=AliasChoices("saleStart", "saleStartDate", "sale_start"),
    )
    sale_end: Optional[datetime] = Field(
        None,
        alias="saleEnd",
        validation_alias=AliasChoices("saleEnd", "saleEndDate", "sale_end"),
    )
    in_stock: bool = True
    stock_quantity: int = 0
    sales_count: int = 0
    average_rating: float = 0.0

    id_to_str = field_validator("id", mode="before")(_stringify_id)
    parse_sizes = field_validator("sizes", mode="before")(coerce_sizes)
    split_lists = field_validator("images", "colors", "categories", "functions", mode="before")(_split_list)
    parse_dates = field_validator("created_at", "sale_start", "sale_end", mode="before")(_parse_when)
    dates_to_utc = field_validator("created_at", "sale_start", "sale_end", mode="after")(_ensure_aware)

    @field_validator("sales_count", "stock_quantity", "average_rating", "discount_rate", mode="before")
    def none_is_zero(cls, v):
        return 0 if v is None else v

    @property
    def is_new(self) -> bool:
        return catalog.is_new(self.created_at)

    @property
    def is_on_sale(self) -> bool:
        return catalog.is_on_sale(self.sale_start, self.sale_end)

    @property
    def discount_percentage(self) -> int:
        if self.original_price and self.price:
            return catalog.discount_percentage(self.original_price, self.price)
        return round(self.discount_rate * 100)

    @property
    def discounted_price(self) -> float:
        return catalog.discounted_price(self)


class ProductDraft(BaseModel):
    """Admin form input for registering a product (validated by admin_service)."""
    name: str = ""
    description: str = ""
    price: float = 0
    discount_rate: float = 0
    categories: List[str] = Field(default_factory=list)
    sizes: List[Any] = Field(default_factory=list)
    material: str = ""
    model: Optional[str] = None
    functions: List[str] = Field(default_factory=list)
    gender: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None

    parse_dates = field_validator("sale_start", "sale_end", mode="before")(_parse_when)
    dates_to_utc = field_validator("sale_start", "sale_end", mode="after")(_ensure_aware)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name.strip(),
            "description": self.description.strip(),
            "price": self.price,
            "discountRate": self.discount_rate,
            "categories": list(self.categories),
            "sizes": coerce_sizes(self.sizes),
            "material": self.material.strip(),
            "model": self.model,
            "functions": list(self.functions),
            "gender": self.gender,
            "imageUrls": [url.strip() for url in self.images if url.strip()],
            "saleStart": self.sale_start.isoformat() if self.sale_start else None,
            "saleEnd": self.sale_end.isoformat() if self.sale_end else None,
        }


class FilterState(BaseModel):
    """Listing filter: single-value gender plus multi-valued dimensions."""
    model_config = ConfigDict(validate_assignment=True)

    gender: Optional[str] = DEFAULT_GENDER
    sizes: Set[str] = Field(default_factory=set)
    materials: Set[str] = Field(default_factory=set)
    functions: Set[str] = Field(default_factory=set)
    models: Set[str] = Field(default_factory=set)
    categories: Set[str] = Field(default_factory=set)

    @field_validator(*FILTER_DIMENSIONS, mode="before")
    def as_string_set(cls, v):
        return {str(item) for item in _split_list(v)}

    def toggle(self, dimension: str, value: Any) -> None:
        """Add the value if absent, remove it if present."""
        if dimension not in FILTER_DIMENSIONS:
            raise ValueError(f"Unknown filter dimension: {dimension}")
        values = getattr(self, dimension)
        value = str(value)
        if value in values:
            values.discard(value)
        else:
            values.add(value)

    def update(self, **values: Any) -> None:
        for key, value in values.items():
            if key not in type(self).model_fields:
                raise ValueError(f"Unknown filter dimension: {key}")
            setattr(self, key, value)

    def clear(self) -> None:
        """Empty every dimension; gender is kept."""
        for dimension in FILTER_DIMENSIONS:
            setattr(self, dimension, set())

    def active_count(self) -> int:
        return sum(len(getattr(self, dimension)) for dimension in FILTER_DIMENSIONS)

    def is_empty(self) -> bool:
        return not self.gender and self.active_count() == 0

    def to_query_params(self) -> Dict[str, str]:
        """Query string for GET /products.

        Categories are only sent when no auto-classified tag is selected, so the
        server never narrows away products that "new"/"sale" would admit.
        """
        params = {}
        if self.gender:
            params["gender"] = self.gender
        if self.categories and not self.categories & catalog.AUTO_CATEGORIES:
            params["category"] = ",".join(sorted(self.categories))
        if self.sizes:
            params["size"] = ",".join(sorted(self.sizes))
        if self.materials:
            params["material"] = ",".join(sorted(self.materials))
        return params


# ============================================================================
# CART & ORDERS
# ============================================================================

class CartItem(CamelModel):
    id: str
    product_id: str
    product_name: str = ""
    product_image: Optional[str] = None
    size: Optional[int] = None
    # Unit price as reported by the server, discount already applied
    price: float = Field(
        0,
        alias="price",
        validation_alias=AliasChoices("price", "unitPrice", "finalPrice", "unit_price"),
    )
    quantity: int = Field(1, ge=1)

    ids_to_str = field_validator("id", "product_id", mode="before")(_stringify_id)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class Cart(CamelModel):
    items: List[CartItem] = Field(default_factory=list)
    reported_total: Optional[float] = Field(
        None,
        alias="totalPrice",
        validation_alias=AliasChoices("totalPrice", "total", "reported_total"),
    )

    @field_validator("items", mode="before")
    def none_is_empty(cls, v):
        return v or []

    @property
    def total(self) -> float:
        return sum(item.subtotal for item in self.items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class OrderItem(FrozenCamelModel):
    id: Optional[str] = None
    product_id: str
    product_name: str = ""
    product_image: Optional[str] = None
    price: float = 0
    size: Optional[int] = None
    quantity: int = Field(1, ge=1)

    ids_to_str = field_validator("id", "product_id", mode="before")(_stringify_id)


class Order(FrozenCamelModel):
    """Snapshot of a cart at checkout; never mutated client-side."""
    id: str
    user_id: Optional[str] = None
    items: List[OrderItem] = Field(
        default_factory=list,
        alias="items",
        validation_alias=AliasChoices("items", "orderItems", "order_items"),
    )
    total: float = Field(
        0,
        alias="totalPrice",
        validation_alias=AliasChoices("totalPrice", "totalAmount", "total"),
    )
    created_at: Optional[datetime] = Field(
        None,
        alias="createdAt",
        validation_alias=AliasChoices("createdAt", "orderDate", "created_at"),
    )
    status: str = "PENDING"
    payment_method: Optional[str] = None

    ids_to_str = field_validator("id", "user_id", mode="before")(_stringify_id)
    parse_dates = field_validator("created_at", mode="before")(_parse_when)
    dates_to_utc = field_validator("created_at", mode="after")(_ensure_aware)

    @model_validator(mode="before")
    @classmethod
    def derive_total(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if any(key in data for key in ("totalPrice", "totalAmount", "total")):
            return data
        items = data.get("items") or data.get("orderItems") or data.get("order_items") or []
        total = 0
        for item in items:
            if isinstance(item, dict):
                total += float(item.get("price") or 0) * int(item.get("quantity") or 1)
            else:
                total += item.price * item.quantity
        return {**data, "totalPrice": total}


# ============================================================================
# REVIEWS, USERS, ADMIN
# ============================================================================

class Review(CamelModel):
    id: str
    product_id: str
    order_item_id: Optional[str] = None
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    content: str = Field(
        "",
        alias="content",
        validation_alias=AliasChoices("content", "comment"),
    )
    created_at: Optional[datetime] = None

    ids_to_str = field_validator("id", "product_id", "order_item_id", "user_id", mode="before")(_stringify_id)
    parse_dates = field_validator("created_at", mode="before")(_parse_when)
    dates_to_utc = field_validator("created_at", mode="after")(_ensure_aware)


class User(CamelModel):
    id: str
    email: str
    name: str = ""
    role: str = "USER"

    id_to_str = field_validator("id", mode="before")(_stringify_id)

    @property
    def is_admin(self) -> bool:
        return self.role.lower() == "admin"


class SalesRecord(CamelModel):
    product_id: str
    name: str = ""
    total_quantity: int = Field(
        0,
        alias="totalQuantity",
        validation_alias=AliasChoices("totalQuantity", "salesCount", "total_quantity"),
    )
    total_revenue: float = Field(
        0,
        alias="totalRevenue",
        validation_alias=AliasChoices("totalRevenue", "revenue", "total_revenue"),
    )

    id_to_str = field_validator("product_id", mode="before")(_stringify_id)
