# catalog.py - Product classification, filtering and sorting
# Pure functions over Product-like objects; no I/O, no shared state

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Iterable, List, Optional

from config import RECOMMENDED_RATING_WEIGHT, RECOMMENDED_SALES_WEIGHT

# Category tags computed from dates instead of stored on the product
AUTO_CATEGORIES = frozenset({"new", "sale"})

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

# ============================================================================
# CLASSIFICATION RULES
# ============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: Any) -> Optional[datetime]:
    """Normalize dates and naive datetimes to aware UTC datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    raise TypeError(f"Expected a date or datetime, got {type(value).__name__}")


def one_month_before(moment: datetime) -> datetime:
    """Same wall-clock time one calendar month earlier, day clamped to month end."""
    if moment.month == 1:
        year, month = moment.year - 1, 12
    else:
        year, month = moment.year, moment.month - 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def is_new(created_at: Any, now: Optional[datetime] = None) -> bool:
    """True when the product was created within the last calendar month (inclusive)."""
    created_at = _as_aware(created_at)
    if created_at is None:
        return False
    now = _as_aware(now) or _utcnow()
    return created_at >= one_month_before(now)


def is_on_sale(sale_start: Any, sale_end: Any, now: Optional[datetime] = None) -> bool:
    """True when now lies inside [sale_start, sale_end]; False if either bound is missing."""
    sale_start = _as_aware(sale_start)
    sale_end = _as_aware(sale_end)
    if sale_start is None or sale_end is None:
        return False
    now = _as_aware(now) or _utcnow()
    return sale_start <= now <= sale_end


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def discount_percentage(original: Optional[float], current: Optional[float]) -> int:
    if not original:
        return 0
    return _round_half_up((original - (current or 0)) / original * 100)


def discounted_price(product: Any) -> float:
    """Display price: server final price, else price reduced by the discount rate."""
    final_price = getattr(product, "final_price", None)
    if final_price:
        return final_price
    price = getattr(product, "price", 0) or 0
    rate = getattr(product, "discount_rate", 0) or 0
    if rate > 0:
        return math.floor(price * (1 - rate))
    return price

# ============================================================================
# FILTER PREDICATE ENGINE
# ============================================================================

def _size_matches(product_sizes: Iterable[int], wanted: Any) -> bool:
    # A size that does not parse excludes the product instead of raising
    try:
        size = int(str(wanted).strip())
    except ValueError:
        return False
    return size in product_sizes


def _category_matches(product: Any, category: str, now: Optional[datetime]) -> bool:
    if category == "new":
        return is_new(getattr(product, "created_at", None), now)
    if category == "sale":
        return is_on_sale(getattr(product, "sale_start", None), getattr(product, "sale_end", None), now)
    return category in (getattr(product, "categories", None) or [])


def matches(product: Any, filters: Any, now: Optional[datetime] = None) -> bool:
    """AND across non-empty filter dimensions, OR within each one."""
    if filters.gender and getattr(product, "gender", None) != filters.gender:
        return False

    if filters.sizes:
        sizes = getattr(product, "sizes", None) or []
        if not any(_size_matches(sizes, wanted) for wanted in filters.sizes):
            return False

    if filters.materials and getattr(product, "material", None) not in filters.materials:
        return False

    if filters.functions:
        functions = getattr(product, "functions", None) or []
        if not any(function in functions for function in filters.functions):
            return False

    if filters.models and getattr(product, "model", None) not in filters.models:
        return False

    if filters.categories:
        if not any(_category_matches(product, category, now) for category in filters.categories):
            return False

    return True


def filter_products(products: Iterable[Any], filters: Any, now: Optional[datetime] = None) -> List[Any]:
    return [product for product in products if matches(product, filters, now)]

# ============================================================================
# SORT ENGINE
# ============================================================================

class SortOption(str, Enum):
    RECOMMENDED = "recommended"
    SALES = "sales"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    NEWEST = "newest"


SORT_LABELS = {
    SortOption.RECOMMENDED: "추천순",
    SortOption.SALES: "판매순",
    SortOption.PRICE_LOW: "가격 낮은 순",
    SortOption.PRICE_HIGH: "가격 높은 순",
    SortOption.NEWEST: "최신 등록 순",
}


@dataclass(frozen=True)
class RecommendationWeights:
    sales: float = RECOMMENDED_SALES_WEIGHT
    rating: float = RECOMMENDED_RATING_WEIGHT


def recommendation_score(product: Any, weights: Optional[RecommendationWeights] = None) -> float:
    weights = weights or RecommendationWeights()
    sales = getattr(product, "sales_count", 0) or 0
    rating = getattr(product, "average_rating", 0) or 0
    return sales * weights.sales + rating * weights.rating


def sort_products(
    products: Iterable[Any],
    sort_key: Any,
    weights: Optional[RecommendationWeights] = None,
) -> List[Any]:
    """Return a new list ordered by ``sort_key``; unknown keys keep the input order."""
    items = list(products)
    try:
        option = SortOption(sort_key)
    except ValueError:
        return items

    if option is SortOption.RECOMMENDED:
        return sorted(items, key=lambda p: recommendation_score(p, weights), reverse=True)
    if option is SortOption.SALES:
        return sorted(items, key=lambda p: getattr(p, "sales_count", 0) or 0, reverse=True)
    if option is SortOption.PRICE_LOW:
        return sorted(items, key=lambda p: getattr(p, "price", 0) or 0)
    if option is SortOption.PRICE_HIGH:
        return sorted(items, key=lambda p: getattr(p, "price", 0) or 0, reverse=True)
    # NEWEST; undated products go last
    return sorted(items, key=lambda p: _as_aware(getattr(p, "created_at", None)) or _EPOCH, reverse=True)
