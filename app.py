# app.py - Storefront demo backend
# In-memory FastAPI implementation of the storefront REST contract.
# Serves the client in demo mode (STOREFRONT_DEMO_MODE) and the test suite.

from fastapi import FastAPI, HTTPException, Request, Response, Depends, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import AliasChoices, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta, timezone
from contextlib import asynccontextmanager
import hashlib
import logging
import math
import uuid

from catalog import SortOption, filter_products, sort_products
from config import ALLOWED_ORIGINS, HOST, LOG_LEVEL, PORT, RELOAD, SESSION_COOKIE
from schemas import CamelModel, FilterState, Order, OrderItem, Product, Review, User, coerce_sizes

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Storefront.Demo")

DEFAULT_PAGE_SIZE = 20

# ============================================================================
# REQUEST MODELS
# ============================================================================

class LoginRequest(CamelModel):
    email: str
    password: str

class AddCartItemRequest(CamelModel):
    product_id: str
    size: int
    quantity: int = Field(1, ge=1)

class UpdateQuantityRequest(CamelModel):
    quantity: int = Field(..., ge=1)

class CreateOrderRequest(CamelModel):
    payment_method: str = "CARD"

class ReviewRequest(CamelModel):
    order_item_id: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    content: str = Field("", validation_alias=AliasChoices("comment", "content"))

class SizesRequest(CamelModel):
    sizes: List[Any]

class DiscountRequest(CamelModel):
    discount_rate: float = Field(..., ge=0, le=1)
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None

class ProductCreateRequest(CamelModel):
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    discount_rate: float = Field(0, ge=0, le=1)
    categories: List[str] = []
    sizes: List[Any] = []
    material: Optional[str] = None
    model: Optional[str] = None
    functions: List[str] = []
    gender: Optional[str] = "men"
    image_urls: List[str] = []
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None

# ============================================================================
# DATA STORE
# ============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()

def _sale_price(original: float, rate: float) -> float:
    return math.floor(original * (1 - rate)) if rate > 0 else original

def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DataStore:
    """In-memory data store for the storefront demo"""
    def __init__(self):
        self.reset()

    def reset(self):
        self.products: Dict[str, Product] = {p.id: p for p in self._load_shoe_catalog()}
        self.users: Dict[str, Dict[str, Any]] = {
            "1": {"id": "1", "email": "customer@test.com", "password": _hash_password("1234"),
                  "name": "Customer", "role": "USER"},
            "2": {"id": "2", "email": "admin@test.com", "password": _hash_password("admin"),
                  "name": "Administrator", "role": "ADMIN"},
        }
        self.sessions: Dict[str, str] = {}
        self.carts: Dict[str, List[Dict[str, Any]]] = {}
        self.orders: List[Order] = []
        self.reviews: Dict[str, Review] = {}

    def _load_shoe_catalog(self) -> List[Product]:
        """Seed catalog; dates are relative to startup so new/sale tags stay meaningful"""
        now = _utcnow()
        sale = {"sale_start": now - timedelta(days=10), "sale_end": now + timedelta(days=30)}
        products_data = [
            {
                "id": "1", "name": "남성 울 그루커 슬립온", "description": "슬립온, 라이프스타일, 캐주얼",
                "price": 119000, "original_price": 170000, "discount_rate": 0.3,
                "colors": ["black", "white", "gray", "beige"],
                "sizes": [260, 265, 270, 275, 280, 285, 290, 295],
                "categories": ["lifestyle", "slipon"], "material": "wool",
                "functions": ["casual", "lifestyle", "slipon"], "model": "goorumi",
                "created_at": now - timedelta(days=5), **sale,
                "stock_quantity": 50, "sales_count": 120, "average_rating": 4.6,
            },
            {
                "id": "2", "name": "남성 그루커 슬립온 초콜릿", "description": "슬립온, 라이프스타일, 캐주얼",
                "price": 119000, "original_price": 170000, "discount_rate": 0.3,
                "colors": ["beige", "black", "brown"],
                "sizes": [270, 275, 280, 285, 290],
                "categories": ["lifestyle", "slipon"], "material": "wool",
                "functions": ["casual", "lifestyle", "slipon"], "model": "goorumi",
                "created_at": now - timedelta(days=40), **sale,
                "stock_quantity": 30, "sales_count": 85, "average_rating": 4.4,
            },
            {
                "id": "3", "name": "남성 스트라이더", "description": "러닝, 라이프스타일, 애슬레저",
                "price": 140000, "original_price": 200000, "discount_rate": 0.3,
                "colors": ["black", "white", "navy", "red"],
                "sizes": [260, 270, 280, 290, 300],
                "categories": ["lifestyle"], "material": "troo",
                "functions": ["running", "lifestyle", "athleisure"], "model": "runner",
                "created_at": now - timedelta(days=12), **sale,
                "stock_quantity": 40, "sales_count": 60, "average_rating": 4.8,
            },
            {
                "id": "4", "name": "남성 그루커", "description": "캐주얼, 거리로 산책, 운동화 스니커즈",
                "price": 105000, "original_price": 150000, "discount_rate": 0.3,
                "colors": ["black", "white", "gray", "beige"],
                "sizes": [265, 270, 275, 280, 285, 290, 295],
                "categories": ["lifestyle"], "material": "troo",
                "functions": ["casual", "walking", "sneakers"], "model": "goorumi",
                "created_at": now - timedelta(days=90), **sale,
                "stock_quantity": 60, "sales_count": 200, "average_rating": 4.2,
            },
            {
                "id": "5", "name": "남성 러너 N2 레드트", "description": "캐주얼, 비즈니스, 운동화 스니커즈",
                "price": 154000, "original_price": 220000, "discount_rate": 0.3,
                "colors": ["white", "black"],
                "sizes": [270, 280, 290],
                "categories": [], "material": "troo",
                "functions": ["casual", "business", "sneakers"], "model": "runner",
                "created_at": now - timedelta(days=120), **sale,
                "stock_quantity": 25, "sales_count": 15, "average_rating": 3.9,
            },
            {
                "id": "6", "name": "남성 그루커 미드 밑스플래시", "description": "캐주얼, 거리로 산책, 운동화 스니커즈",
                "price": 154000, "original_price": 220000, "discount_rate": 0.3,
                "colors": ["olive", "black", "brown"],
                "sizes": [270, 275, 280, 285, 290, 295],
                "categories": ["lifestyle"], "material": "wool",
                "functions": ["casual", "walking", "sneakers"], "model": "goorumi",
                "created_at": now - timedelta(days=2), **sale,
                "stock_quantity": 35, "sales_count": 10, "average_rating": 4.9,
            },
            {
                "id": "7", "name": "남성 울 스트라이더", "description": "러닝, 라이프스타일, 애슬레저",
                "price": 140000, "original_price": 200000, "discount_rate": 0.3,
                "colors": ["beige", "gray"],
                "sizes": [260, 270, 280, 290],
                "categories": ["lifestyle"], "material": "wool",
                "functions": ["running", "lifestyle", "athleisure"], "model": "runner",
                "created_at": now - timedelta(days=60), **sale,
                "stock_quantity": 45, "sales_count": 45, "average_rating": 4.5,
            },
            {
                "id": "8", "name": "남성 그루커 초콜릿", "description": "캐주얼, 거리로 산책, 운동화 스니커즈",
                "price": 119000, "original_price": 170000, "discount_rate": 0.3,
                "colors": ["white"],
                "sizes": [270, 280, 290],
                "categories": ["slipon"], "material": "troo",
                "functions": ["casual", "walking", "sneakers"], "model": "goorumi",
                "created_at": now - timedelta(days=75), **sale,
                "stock_quantity": 20, "sales_count": 30, "average_rating": 4.0,
            },
            {
                "id": "9", "name": "남성 그루커 레니스", "description": "캐주얼, 거리로 산책, 운동화 스니커즈",
                "price": 154000, "original_price": 154000, "discount_rate": 0,
                "colors": ["white"],
                "sizes": [270, 280, 290, 300],
                "categories": [], "material": "troo",
                "functions": ["casual", "walking", "sneakers"], "model": "goorumi",
                "created_at": now - timedelta(days=150), "sale_start": None, "sale_end": None,
                "stock_quantity": 15, "sales_count": 5, "average_rating": 4.1,
            },
        ]

        for p in products_data:
            p.setdefault("images", ["/img/slideimg1.jpg"])
            p.setdefault("gender", "men")
        return [Product(**p) for p in products_data]

    # Users & sessions ------------------------------------------------------

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        digest = _hash_password(password)
        for user in self.users.values():
            if user["email"] == email and user["password"] == digest:
                return user
        return None

    def open_session(self, user_id: str) -> str:
        token = uuid.uuid4().hex
        self.sessions[token] = user_id
        return token

    def user_for_session(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        if not token or token not in self.sessions:
            return None
        return self.users.get(self.sessions[token])

    # Cart ------------------------------------------------------------------

    def get_product(self, product_id: str) -> Product:
        product = self.products.get(product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def cart_for(self, user_id: str) -> List[Dict[str, Any]]:
        return self.carts.setdefault(user_id, [])

    def add_to_cart(self, user_id: str, product_id: str, size: int, quantity: int) -> None:
        """Upsert: the same (product, size) accumulates quantity"""
        product = self.get_product(product_id)
        if size not in product.sizes:
            raise HTTPException(status_code=400, detail=f"Size {size} is not available")

        lines = self.cart_for(user_id)
        for line in lines:
            if line["productId"] == product_id and line["size"] == size:
                line["quantity"] += quantity
                return

        lines.append({
            "id": f"cart-{uuid.uuid4().hex[:12]}",
            "productId": product_id,
            "productName": product.name,
            "productImage": product.images[0] if product.images else None,
            "size": size,
            "price": product.price,
            "quantity": quantity,
        })

    def cart_payload(self, user_id: str) -> Dict[str, Any]:
        lines = self.cart_for(user_id)
        return {
            "items": lines,
            "totalQuantity": sum(line["quantity"] for line in lines),
            "totalPrice": sum(line["price"] * line["quantity"] for line in lines),
        }

    # Orders ----------------------------------------------------------------

    def checkout(self, user_id: str, payment_method: str) -> Order:
        lines = self.cart_for(user_id)
        if not lines:
            raise HTTPException(status_code=400, detail="Cart is empty")

        items = [
            OrderItem(
                id=f"oi-{uuid.uuid4().hex[:12]}",
                product_id=line["productId"],
                product_name=line["productName"],
                product_image=line["productImage"],
                price=line["price"],
                size=line["size"],
                quantity=line["quantity"],
            )
            for line in lines
        ]
        order = Order(
            id=f"order-{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            items=items,
            total=sum(item.price * item.quantity for item in items),
            created_at=_utcnow(),
            status="PAID",
            payment_method=payment_method,
        )
        self.orders.append(order)
        self.carts[user_id] = []

        for item in items:
            product = self.products.get(item.product_id)
            if product:
                product.sales_count += item.quantity
        return order

    def orders_for(self, user_id: str) -> List[Order]:
        return sorted(
            (o for o in self.orders if o.user_id == user_id),
            key=lambda o: o.created_at,
            reverse=True,
        )

    def find_order_item(self, user_id: str, order_item_id: str) -> Optional[OrderItem]:
        for order in self.orders_for(user_id):
            for item in order.items:
                if item.id == order_item_id:
                    return item
        return None

    # Reviews ---------------------------------------------------------------

    def refresh_rating(self, product_id: str) -> None:
        ratings = [r.rating for r in self.reviews.values() if r.product_id == product_id]
        product = self.products.get(product_id)
        if product:
            product.average_rating = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

    # Sales -----------------------------------------------------------------

    def sales_between(self, date_from: Optional[datetime], date_to: Optional[datetime]) -> List[Dict[str, Any]]:
        totals: Dict[str, Dict[str, Any]] = {}
        for order in self.orders:
            if date_from and order.created_at < date_from:
                continue
            if date_to and order.created_at > date_to:
                continue
            for item in order.items:
                row = totals.setdefault(item.product_id, {
                    "productId": item.product_id,
                    "name": item.product_name,
                    "totalQuantity": 0,
                    "totalRevenue": 0,
                })
                row["totalQuantity"] += item.quantity
                row["totalRevenue"] += item.price * item.quantity
        return sorted(totals.values(), key=lambda row: row["totalRevenue"], reverse=True)

# Initialize data store
data_store = DataStore()

# ============================================================================
# HELPERS
# ============================================================================

def ok(data: Any = None, **extra: Any) -> Dict[str, Any]:
    return {"success": True, "data": data, **extra}

def product_json(product: Product) -> Dict[str, Any]:
    """Wire form of a product, including the read-time classifications"""
    payload = product.model_dump(by_alias=True, mode="json")
    payload.update({
        "isNew": product.is_new,
        "isOnSale": product.is_on_sale,
        "discountPercentage": product.discount_percentage,
    })
    return payload

def paginate(items: List[Any], page: int, limit: int) -> List[Any]:
    start = (max(page, 1) - 1) * limit
    return items[start:start + limit]

def parse_day(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Query date or timestamp; a bare end date stands for the last instant of that day"""
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if end_of_day and len(value) == 10:
        moment += timedelta(days=1, microseconds=-1)
    return moment

def current_user(request: Request) -> Dict[str, Any]:
    user = data_store.user_for_session(request.cookies.get(SESSION_COOKIE))
    if user is None:
        raise HTTPException(status_code=401, detail="Login required")
    return user

def admin_user(user: Dict[str, Any] = Depends(current_user)) -> Dict[str, Any]:
    if user["role"].lower() != "admin":
        raise HTTPException(status_code=403, detail="Administrator access required")
    return user

def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return User(**user).model_dump(by_alias=True)

# ============================================================================
# APP
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Storefront demo backend starting up...")
    logger.info(f"Loaded {len(data_store.products)} products")
    logger.info(f"Demo accounts: {', '.join(u['email'] for u in data_store.users.values())}")
    yield
    logger.info("Storefront demo backend shutting down...")

app = FastAPI(
    title="Storefront Demo API",
    version="1.0.0",
    description="In-memory implementation of the storefront REST contract",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Storefront Demo API",
        "version": "1.0.0",
        "catalog_size": len(data_store.products),
        "status": "operational",
        "documentation": "/api/docs"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": _utcnow().isoformat(),
        "products_loaded": len(data_store.products),
    }

# Auth Endpoints
@app.post("/api/auth/login")
async def login(payload: LoginRequest, response: Response):
    """Open a cookie session"""
    user = data_store.authenticate(payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = data_store.open_session(user["id"])
    response.set_cookie(SESSION_COOKIE, token, httponly=True, samesite="lax", path="/")
    logger.info(f"Login: {user['email']}")
    return ok({"user": public_user(user)})

@app.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    """Close the cookie session"""
    data_store.sessions.pop(request.cookies.get(SESSION_COOKIE, ""), None)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return ok()

@app.get("/api/auth/me")
async def me(user: Dict[str, Any] = Depends(current_user)):
    """Current session user"""
    return ok({"user": public_user(user)})

# Product Endpoints
@app.get("/api/products")
async def list_products(
    gender: Optional[str] = None,
    category: Optional[str] = None,
    size: Optional[str] = None,
    material: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
):
    """Product listing; comma lists are OR within a parameter, AND across parameters"""
    filters = FilterState(gender=gender, categories=category, sizes=size, materials=material)
    matched = filter_products(data_store.products.values(), filters)
    return ok({"items": [product_json(p) for p in paginate(matched, page, limit)], "totalCount": len(matched)})

@app.get("/api/products/popular")
async def popular_products(offset: int = Query(0, ge=0), limit: int = Query(5, ge=1, le=50)):
    """Best sellers"""
    ranked = sort_products(data_store.products.values(), SortOption.SALES)
    return ok({"items": [product_json(p) for p in ranked[offset:offset + limit]], "totalCount": len(ranked)})

@app.get("/api/products/{product_id}")
async def get_product(product_id: str):
    """Single product with all details"""
    return ok(product_json(data_store.get_product(product_id)))

@app.get("/api/products/{product_id}/reviews")
async def list_reviews(product_id: str):
    """Reviews of a product, newest first"""
    data_store.get_product(product_id)
    reviews = sorted(
        (r for r in data_store.reviews.values() if r.product_id == product_id),
        key=lambda r: r.created_at,
        reverse=True,
    )
    return ok({"items": [r.model_dump(by_alias=True, mode="json") for r in reviews]})

@app.post("/api/products/{product_id}/reviews")
async def create_review(product_id: str, payload: ReviewRequest, user: Dict[str, Any] = Depends(current_user)):
    """Review a purchased product"""
    data_store.get_product(product_id)
    item = data_store.find_order_item(user["id"], payload.order_item_id or "")
    if item is None or item.product_id != product_id:
        raise HTTPException(status_code=403, detail="Only purchased products can be reviewed")
    review = Review(
        id=f"review-{uuid.uuid4().hex[:12]}",
        product_id=product_id,
        order_item_id=item.id,
        user_id=user["id"],
        author_name=user["name"],
        rating=payload.rating,
        content=payload.content,
        created_at=_utcnow(),
    )
    data_store.reviews[review.id] = review
    data_store.refresh_rating(product_id)
    return ok({"review": review.model_dump(by_alias=True, mode="json")})

def _own_review(review_id: str, user: Dict[str, Any]) -> Review:
    review = data_store.reviews.get(review_id)
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    if review.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Not your review")
    return review

@app.patch("/api/reviews/{review_id}")
async def update_review(review_id: str, payload: ReviewRequest, user: Dict[str, Any] = Depends(current_user)):
    """Edit own review"""
    review = _own_review(review_id, user)
    review.rating = payload.rating
    review.content = payload.content
    data_store.refresh_rating(review.product_id)
    return ok({"review": review.model_dump(by_alias=True, mode="json")})

@app.delete("/api/reviews/{review_id}")
async def delete_review(review_id: str, user: Dict[str, Any] = Depends(current_user)):
    """Delete own review"""
    review = _own_review(review_id, user)
    del data_store.reviews[review_id]
    data_store.refresh_rating(review.product_id)
    return ok()

# Cart Endpoints
@app.get("/api/cart")
async def get_cart(user: Dict[str, Any] = Depends(current_user)):
    """Get current cart with totals"""
    return ok(data_store.cart_payload(user["id"]))

@app.post("/api/cart/items")
async def add_to_cart(payload: AddCartItemRequest, user: Dict[str, Any] = Depends(current_user)):
    """Add a line, or add to the quantity of the same product and size"""
    data_store.add_to_cart(user["id"], payload.product_id, payload.size, payload.quantity)
    return ok(data_store.cart_payload(user["id"]))

@app.patch("/api/cart/items/{item_id}")
async def update_cart_item(item_id: str, payload: UpdateQuantityRequest, user: Dict[str, Any] = Depends(current_user)):
    """Set the absolute quantity of a line"""
    for line in data_store.cart_for(user["id"]):
        if line["id"] == item_id:
            line["quantity"] = payload.quantity
            return ok(data_store.cart_payload(user["id"]))
    raise HTTPException(status_code=404, detail="Cart item not found")

@app.delete("/api/cart/items/{item_id}")
async def remove_from_cart(item_id: str, user: Dict[str, Any] = Depends(current_user)):
    """Remove item from cart; unknown ids are a no-op"""
    data_store.carts[user["id"]] = [line for line in data_store.cart_for(user["id"]) if line["id"] != item_id]
    return ok(data_store.cart_payload(user["id"]))

@app.delete("/api/cart")
async def clear_cart(user: Dict[str, Any] = Depends(current_user)):
    """Clear entire cart"""
    data_store.carts[user["id"]] = []
    return ok(data_store.cart_payload(user["id"]))

# Order Endpoints
@app.post("/api/orders")
async def create_order(payload: CreateOrderRequest, user: Dict[str, Any] = Depends(current_user)):
    """Check out the cart into an order snapshot"""
    order = data_store.checkout(user["id"], payload.payment_method)
    logger.info(f"Order {order.id} placed by {user['email']}: {order.total}")
    return ok({"order": order.model_dump(by_alias=True, mode="json")})

@app.get("/api/orders")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: Dict[str, Any] = Depends(current_user),
):
    """Order history, newest first"""
    orders = data_store.orders_for(user["id"])
    items = [o.model_dump(by_alias=True, mode="json") for o in paginate(orders, page, limit)]
    return ok({"items": items, "totalCount": len(orders)})

@app.get("/api/orders/{order_id}")
async def get_order(order_id: str, user: Dict[str, Any] = Depends(current_user)):
    """Single order of the current user"""
    for order in data_store.orders_for(user["id"]):
        if order.id == order_id:
            return ok(order.model_dump(by_alias=True, mode="json"))
    raise HTTPException(status_code=404, detail="Order not found")

# Admin Endpoints
@app.get("/api/admin/products")
async def admin_products(
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    user: Dict[str, Any] = Depends(admin_user),
):
    """Every product regardless of gender"""
    filters = FilterState(gender=None, categories=category)
    matched = filter_products(data_store.products.values(), filters)
    return ok({"items": [product_json(p) for p in paginate(matched, page, limit)], "totalCount": len(matched)})

@app.post("/api/admin/products")
async def admin_create_product(payload: ProductCreateRequest, user: Dict[str, Any] = Depends(admin_user)):
    """Register a product; price is the pre-discount price"""
    sizes = coerce_sizes(payload.sizes)
    if not sizes:
        raise HTTPException(status_code=400, detail="At least one size is required")
    sale_start, sale_end = _aware(payload.sale_start), _aware(payload.sale_end)
    if sale_start and sale_end and sale_end < sale_start:
        raise HTTPException(status_code=400, detail="Sale end precedes sale start")
    product = Product(
        id=str(max((int(pid) for pid in data_store.products if pid.isdigit()), default=0) + 1),
        name=payload.name,
        description=payload.description,
        price=_sale_price(payload.price, payload.discount_rate),
        original_price=payload.price,
        discount_rate=payload.discount_rate,
        images=payload.image_urls,
        sizes=sizes,
        categories=payload.categories,
        material=payload.material,
        model=payload.model,
        functions=payload.functions,
        gender=payload.gender,
        created_at=_utcnow(),
        sale_start=sale_start,
        sale_end=sale_end,
    )
    data_store.products[product.id] = product
    logger.info(f"Product {product.id} registered by {user['email']}")
    return ok({"product": product_json(product)})

@app.patch("/api/admin/products/{product_id}/sizes")
async def admin_update_sizes(product_id: str, payload: SizesRequest, user: Dict[str, Any] = Depends(admin_user)):
    """Replace the available sizes"""
    product = data_store.get_product(product_id)
    sizes = coerce_sizes(payload.sizes)
    if not sizes:
        raise HTTPException(status_code=400, detail="At least one size is required")
    product.sizes = sorted(set(sizes))
    return ok({"product": product_json(product)})

@app.patch("/api/admin/products/{product_id}/discount")
async def admin_update_discount(product_id: str, payload: DiscountRequest, user: Dict[str, Any] = Depends(admin_user)):
    """Set the discount rate and sale window"""
    product = data_store.get_product(product_id)
    sale_start, sale_end = _aware(payload.sale_start), _aware(payload.sale_end)
    if sale_start and sale_end and sale_end < sale_start:
        raise HTTPException(status_code=400, detail="Sale end precedes sale start")
    original = product.original_price or product.price
    product.original_price = original
    product.discount_rate = payload.discount_rate
    product.price = _sale_price(original, payload.discount_rate)
    product.sale_start = sale_start
    product.sale_end = sale_end
    return ok({"product": product_json(product)})

@app.get("/api/admin/sales")
async def admin_sales(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    user: Dict[str, Any] = Depends(admin_user),
):
    """Units and revenue per product within [from, to]"""
    start, end = parse_day(date_from), parse_day(date_to, end_of_day=True)
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="End date precedes start date")
    return ok({"items": data_store.sales_between(start, end)})

@app.get("/api/admin/sales/{product_id}")
async def admin_product_sales(
    product_id: str,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    user: Dict[str, Any] = Depends(admin_user),
):
    """Sales of a single product"""
    product = data_store.get_product(product_id)
    rows = data_store.sales_between(parse_day(date_from), parse_day(date_to, end_of_day=True))
    row = next((r for r in rows if r["productId"] == product_id), None)
    return ok(row or {"productId": product_id, "name": product.name, "totalQuantity": 0, "totalRevenue": 0})

# Error Handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Custom HTTP exception handler"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "error": {
                "code": f"HTTP_{exc.status_code}",
                "message": exc.detail,
                "timestamp": _utcnow().isoformat()
            }
        }
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body/query validation failures"""
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(status_code=422, content={"success": False, "message": message})

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=RELOAD,
        log_level=LOG_LEVEL
    )
