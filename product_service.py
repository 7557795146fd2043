# product_service.py - Catalog state container
# Filter state, fetched listing, and the locally filtered/sorted view of it

import logging
from typing import Any, List, Optional

from api_client import StorefrontAPI
from catalog import RecommendationWeights, filter_products, sort_products
from errors import ApiError
from schemas import FilterState, Product

logger = logging.getLogger("Storefront.Products")


class ProductService:
    """Product listing driven by a FilterState"""

    def __init__(self, api: StorefrontAPI, filters: Optional[FilterState] = None, page_size: Optional[int] = None):
        self.api = api
        self.filters = filters or FilterState()
        self.page_size = page_size
        self.products: List[Product] = []
        self.filtered_products: List[Product] = []
        self.total_count = 0
        self.loading = False
        self.error: Optional[str] = None

    async def fetch_products(self, page: Optional[int] = None) -> List[Product]:
        """Fetch the listing for the current filters; failures yield an empty listing"""
        self.loading = True
        self.error = None
        params = self.filters.to_query_params()
        if page is not None:
            params["page"] = page
        if self.page_size is not None:
            params["limit"] = self.page_size

        try:
            page_result = await self.api.list_products(**params)
            self.products = page_result.items
            self.total_count = page_result.total_count
        except ApiError as e:
            logger.error(f"Failed to fetch products: {e}")
            self.error = str(e)
            self.products = []
            self.total_count = 0
        finally:
            self.loading = False

        # New/sale tags are re-evaluated locally so they follow the live dates
        self.filtered_products = filter_products(self.products, self.filters)
        return self.filtered_products

    def refilter(self) -> List[Product]:
        self.filtered_products = filter_products(self.products, self.filters)
        return self.filtered_products

    # ------------------------------------------------------------------------
    # Filter state
    # ------------------------------------------------------------------------

    def update_filters(self, **values: Any) -> None:
        self.filters.update(**values)

    def toggle_filter(self, dimension: str, value: Any) -> None:
        self.filters.toggle(dimension, value)

    def clear_filters(self) -> None:
        self.filters.clear()

    def active_filter_count(self) -> int:
        return self.filters.active_count()

    def sorted(self, sort_key: Any, weights: Optional[RecommendationWeights] = None) -> List[Product]:
        return sort_products(self.filtered_products, sort_key, weights)

    # ------------------------------------------------------------------------
    # Single lookups
    # ------------------------------------------------------------------------

    async def get_product(self, product_id: str) -> Optional[Product]:
        try:
            return await self.api.get_product(product_id)
        except ApiError as e:
            logger.error(f"Failed to fetch product {product_id}: {e}")
            return None

    async def get_popular(self, offset: int = 0, limit: int = 5) -> List[Product]:
        try:
            return await self.api.list_popular(offset=offset, limit=limit)
        except ApiError as e:
            logger.error(f"Failed to fetch popular products: {e}")
            return []
