# admin_service.py - Admin back-office
# Product registration, size and discount maintenance, sales reporting.
# All input is validated before any request leaves the client.

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from api_client import StorefrontAPI
from errors import ApiError, InvalidInputError, SessionExpiredError
from schemas import Product, ProductDraft, SalesRecord, coerce_sizes

logger = logging.getLogger("Storefront.Admin")


@dataclass(frozen=True)
class SalesSummary:
    total_quantity: int
    total_revenue: float
    average_price: int


def summarize_sales(records: Iterable[SalesRecord]) -> SalesSummary:
    """Totals over a sales report; average price is revenue per unit, rounded"""
    records = list(records)
    quantity = sum(record.total_quantity for record in records)
    revenue = sum(record.total_revenue for record in records)
    average = round(revenue / quantity) if quantity > 0 else 0
    return SalesSummary(quantity, revenue, average)


# ============================================================================
# VALIDATION
# ============================================================================

def _as_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value)).replace(tzinfo=None)
    except ValueError:
        raise InvalidInputError(f"Invalid date: {value!r}")


def validate_period(start: Any, end: Any) -> None:
    start, end = _as_datetime(start), _as_datetime(end)
    if start and end and end < start:
        raise InvalidInputError("End date must not be earlier than start date")


def validate_discount_rate(rate: Any) -> float:
    try:
        rate = float(rate)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid discount rate: {rate!r}")
    if not 0 <= rate <= 1:
        raise InvalidInputError("Discount rate must be between 0 and 1")
    return rate


def validate_sizes(sizes: Any) -> List[int]:
    parsed = coerce_sizes(sizes)
    if not parsed:
        raise InvalidInputError("Select at least one size")
    return parsed


def validate_draft(draft: ProductDraft) -> None:
    if not draft.name.strip():
        raise InvalidInputError("Product name is required")
    if draft.price < 0:
        raise InvalidInputError("Price must be zero or more")
    validate_discount_rate(draft.discount_rate)
    if not draft.categories:
        raise InvalidInputError("Select at least one category")
    validate_sizes(draft.sizes)
    if not [url for url in draft.images if url.strip()]:
        raise InvalidInputError("Add at least one image URL")
    validate_period(draft.sale_start, draft.sale_end)


# ============================================================================
# SERVICE
# ============================================================================

class AdminService:
    """Back-office operations; callers must hold an admin session"""

    def __init__(self, api: StorefrontAPI):
        self.api = api

    async def list_products(
        self,
        category: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Product]:
        try:
            return await self.api.admin_list_products(category=category, page=page, limit=limit)
        except ApiError as e:
            logger.error(f"Failed to fetch admin product list: {e}")
            return []

    async def create_product(self, draft: ProductDraft) -> Optional[Product]:
        validate_draft(draft)
        try:
            product = await self.api.admin_create_product(draft.to_payload())
        except SessionExpiredError:
            logger.info("Product registration dropped: session expired")
            return None
        logger.info(f"Registered product {draft.name!r}")
        return product

    async def update_sizes(self, product_id: str, sizes: Any) -> Optional[Product]:
        parsed = validate_sizes(sizes)
        try:
            return await self.api.admin_update_sizes(product_id, parsed)
        except SessionExpiredError:
            logger.info(f"Size update for product {product_id} dropped: session expired")
            return None

    async def update_discount(
        self,
        product_id: str,
        discount_rate: Any,
        sale_start: Any = None,
        sale_end: Any = None,
    ) -> Optional[Product]:
        rate = validate_discount_rate(discount_rate)
        validate_period(sale_start, sale_end)
        try:
            product = await self.api.admin_update_discount(product_id, rate, sale_start, sale_end)
        except SessionExpiredError:
            logger.info(f"Discount update for product {product_id} dropped: session expired")
            return None
        logger.info(f"Discount for product {product_id} set to {rate:.0%}")
        return product

    async def sales_report(self, date_from: Any = None, date_to: Any = None) -> List[SalesRecord]:
        validate_period(date_from, date_to)
        try:
            return await self.api.admin_sales(date_from, date_to)
        except ApiError as e:
            logger.error(f"Failed to fetch sales report: {e}")
            return []

    async def product_sales(self, product_id: str, date_from: Any = None, date_to: Any = None) -> Any:
        validate_period(date_from, date_to)
        try:
            return await self.api.admin_product_sales(product_id, date_from, date_to)
        except ApiError as e:
            logger.error(f"Failed to fetch sales for product {product_id}: {e}")
            return None
