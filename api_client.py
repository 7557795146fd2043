# api_client.py - Storefront REST client
# httpx-based async client for the storefront backend contract

import inspect
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from config import API_BASE_URL, DEMO_BASE_URL, DEMO_MODE, REQUEST_TIMEOUT
from errors import ApiError, NetworkError, SessionExpiredError
from schemas import Cart, CartItem, Order, Product, Review, SalesRecord, User

logger = logging.getLogger("Storefront.API")

UnauthorizedHandler = Callable[[], Union[None, Awaitable[None]]]

LOGIN_PATH = "/auth/login"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ProductPage(NamedTuple):
    items: List[Product]
    total_count: int


# ============================================================================
# ENVELOPE HELPERS
# ============================================================================

def unwrap_data(payload: Any) -> Any:
    """Strip the ``{success, data}`` envelope when present."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def unwrap_items(payload: Any) -> List[Any]:
    """List payloads arrive as ``data: [...]`` or ``data: {items: [...]}``."""
    data = unwrap_data(payload)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get("items") or []
    return []


def unwrap_entity(payload: Any, key: str) -> Any:
    """Single objects arrive as ``data``, ``data.<key>`` or a top-level ``<key>``."""
    data = unwrap_data(payload)
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    if isinstance(payload, dict) and isinstance(payload.get(key), dict):
        return payload[key]
    return data


def _error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return value["message"]
    return default


def _iso(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a single server object; a malformed one is an API failure."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Malformed {model.__name__} in response: {e.error_count()} error(s)")
        raise ApiError(f"Malformed {model.__name__} in response", payload=data) from e


def parse_items(model: Type[ModelT], items: Any) -> List[ModelT]:
    """Validate a list of server objects, dropping the ones that do not fit."""
    parsed = []
    for item in items or []:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping malformed {model.__name__}: {e.error_count()} error(s)")
    return parsed


# ============================================================================
# CLIENT
# ============================================================================

class StorefrontAPI:
    """Async client for the storefront REST API.

    The underlying ``httpx.AsyncClient`` keeps the session cookie between
    calls. A 401 on anything but login runs the registered unauthorized
    handler and raises :class:`SessionExpiredError`.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        demo_mode: Optional[bool] = None,
    ):
        demo_mode = DEMO_MODE if demo_mode is None else demo_mode
        if transport is None and demo_mode:
            # In-process demo backend; imported lazily so FastAPI is only loaded when asked for
            from app import app as demo_app

            transport = httpx.ASGITransport(app=demo_app)
            base_url = base_url or DEMO_BASE_URL
            logger.info("Demo mode: routing requests to the in-process backend")

        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.demo_mode = demo_mode
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout or REQUEST_TIMEOUT,
        )
        self._on_unauthorized: Optional[UnauthorizedHandler] = None

    async def __aenter__(self) -> "StorefrontAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_unauthorized_handler(self, handler: Optional[UnauthorizedHandler]) -> None:
        self._on_unauthorized = handler

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        params = {key: _iso(value) for key, value in (params or {}).items() if value not in (None, "")}
        try:
            response = await self._client.request(method, path, params=params or None, json=json)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(f"Network error: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.status_code == 401 and path != LOGIN_PATH:
            logger.warning(f"Session expired on {method} {path}")
            if self._on_unauthorized is not None:
                result = self._on_unauthorized()
                if inspect.isawaitable(result):
                    await result
            raise SessionExpiredError("Session expired", 401)

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        if response.is_error:
            message = _error_message(payload, f"{method} {path} failed")
            logger.error(f"{method} {path} -> {response.status_code}: {message}")
            raise ApiError(message, response.status_code, payload)

        if isinstance(payload, dict) and payload.get("success") is False:
            message = _error_message(payload, f"{method} {path} was rejected")
            logger.error(f"{method} {path} rejected: {message}")
            raise ApiError(message, response.status_code, payload)

        return payload

    # Products --------------------------------------------------------------

    async def list_products(self, **params: Any) -> ProductPage:
        """GET /products?{gender,category,size,material,page,limit}"""
        payload = await self._request("GET", "/products", params=params)
        items = parse_items(Product, unwrap_items(payload))
        data = unwrap_data(payload)
        total = data.get("totalCount", len(items)) if isinstance(data, dict) else len(items)
        return ProductPage(items, total)

    async def get_product(self, product_id: str) -> Product:
        payload = await self._request("GET", f"/products/{product_id}")
        return parse_model(Product, unwrap_entity(payload, "product"))

    async def list_popular(self, offset: int = 0, limit: int = 5) -> List[Product]:
        payload = await self._request("GET", "/products/popular", params={"offset": offset, "limit": limit})
        return parse_items(Product, unwrap_items(payload))

    # Cart ------------------------------------------------------------------

    async def get_cart(self) -> Cart:
        payload = await self._request("GET", "/cart")
        data = unwrap_data(payload)
        data = data if isinstance(data, dict) else {}
        # A bad line is dropped instead of failing the whole cart
        return parse_model(Cart, {**data, "items": parse_items(CartItem, data.get("items"))})

    async def add_cart_item(self, product_id: str, size: int, quantity: int = 1) -> Any:
        body = {"productId": product_id, "size": size, "quantity": quantity}
        return await self._request("POST", "/cart/items", json=body)

    async def update_cart_item(self, cart_item_id: str, quantity: int) -> Any:
        return await self._request("PATCH", f"/cart/items/{cart_item_id}", json={"quantity": quantity})

    async def remove_cart_item(self, cart_item_id: str) -> Any:
        return await self._request("DELETE", f"/cart/items/{cart_item_id}")

    async def clear_cart(self) -> Any:
        return await self._request("DELETE", "/cart")

    # Orders ----------------------------------------------------------------

    async def create_order(self, payment_method: str = "CARD") -> Order:
        payload = await self._request("POST", "/orders", json={"paymentMethod": payment_method})
        return parse_model(Order, unwrap_entity(payload, "order"))

    async def list_orders(self, page: int = 1, limit: int = 10) -> List[Order]:
        payload = await self._request("GET", "/orders", params={"page": page, "limit": limit})
        return parse_items(Order, unwrap_items(payload))

    async def get_order(self, order_id: str) -> Order:
        payload = await self._request("GET", f"/orders/{order_id}")
        return parse_model(Order, unwrap_entity(payload, "order"))

    # Reviews ---------------------------------------------------------------

    async def list_reviews(self, product_id: str) -> List[Review]:
        payload = await self._request("GET", f"/products/{product_id}/reviews")
        return parse_items(Review, unwrap_items(payload))

    async def create_review(self, product_id: str, order_item_id: str, rating: int, content: str) -> Review:
        body = {"orderItemId": order_item_id, "rating": rating, "comment": content}
        payload = await self._request("POST", f"/products/{product_id}/reviews", json=body)
        return parse_model(Review, unwrap_entity(payload, "review"))

    async def update_review(self, review_id: str, rating: int, content: str) -> Review:
        body = {"rating": rating, "comment": content}
        payload = await self._request("PATCH", f"/reviews/{review_id}", json=body)
        return parse_model(Review, unwrap_entity(payload, "review"))

    async def delete_review(self, review_id: str) -> Any:
        return await self._request("DELETE", f"/reviews/{review_id}")

    # Auth ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> User:
        payload = await self._request("POST", LOGIN_PATH, json={"email": email, "password": password})
        return parse_model(User, unwrap_entity(payload, "user"))

    async def logout(self) -> Any:
        return await self._request("POST", "/auth/logout")

    async def me(self) -> Optional[User]:
        payload = await self._request("GET", "/auth/me")
        user = unwrap_entity(payload, "user")
        return parse_model(User, user) if user else None

    # Admin -----------------------------------------------------------------

    async def admin_list_products(self, **params: Any) -> List[Product]:
        payload = await self._request("GET", "/admin/products", params=params)
        return parse_items(Product, unwrap_items(payload))

    async def admin_create_product(self, body: Dict[str, Any]) -> Optional[Product]:
        payload = await self._request("POST", "/admin/products", json=body)
        product = unwrap_entity(payload, "product")
        return parse_model(Product, product) if isinstance(product, dict) else None

    async def admin_update_sizes(self, product_id: str, sizes: List[int]) -> Optional[Product]:
        payload = await self._request("PATCH", f"/admin/products/{product_id}/sizes", json={"sizes": sizes})
        product = unwrap_entity(payload, "product")
        return parse_model(Product, product) if isinstance(product, dict) else None

    async def admin_update_discount(
        self,
        product_id: str,
        discount_rate: float,
        sale_start: Any = None,
        sale_end: Any = None,
    ) -> Optional[Product]:
        body = {"discountRate": discount_rate, "saleStart": _iso(sale_start), "saleEnd": _iso(sale_end)}
        payload = await self._request("PATCH", f"/admin/products/{product_id}/discount", json=body)
        product = unwrap_entity(payload, "product")
        return parse_model(Product, product) if isinstance(product, dict) else None

    async def admin_sales(self, date_from: Any = None, date_to: Any = None) -> List[SalesRecord]:
        payload = await self._request("GET", "/admin/sales", params={"from": date_from, "to": date_to})
        return parse_items(SalesRecord, unwrap_items(payload))

    async def admin_product_sales(self, product_id: str, date_from: Any = None, date_to: Any = None) -> Any:
        payload = await self._request(
            "GET", f"/admin/sales/{product_id}", params={"from": date_from, "to": date_to}
        )
        return unwrap_data(payload)


# Singleton instance
api_client_instance = None

def get_api_client() -> StorefrontAPI:
    """Get or create the shared API client"""
    global api_client_instance
    if api_client_instance is None:
        api_client_instance = StorefrontAPI()
    return api_client_instance
