# order_service.py - Checkout and order history
# Orders are snapshots taken by the server; the client only reads them back.

import logging
from typing import List, Optional

from api_client import StorefrontAPI
from cart_service import CartService
from errors import ApiError, SessionExpiredError
from schemas import Order

logger = logging.getLogger("Storefront.Orders")


class OrderService:
    def __init__(self, api: StorefrontAPI, cart: Optional[CartService] = None):
        self.api = api
        self.cart = cart

    async def create_order(self, payment_method: str = "CARD") -> Optional[Order]:
        """Check out the current cart. Returns None when the session has expired; other failures propagate."""
        try:
            order = await self.api.create_order(payment_method)
        except SessionExpiredError:
            logger.info("Checkout dropped: session expired")
            return None
        logger.info(f"Order {order.id} placed: {len(order.items)} line(s), total {order.total}")
        if self.cart is not None:
            # Server empties the cart on checkout; refetch to mirror it
            await self.cart.fetch_cart()
        return order

    async def list_orders(self, page: int = 1, limit: int = 10) -> List[Order]:
        try:
            return await self.api.list_orders(page=page, limit=limit)
        except ApiError as e:
            logger.error(f"Failed to fetch orders: {e}")
            return []

    async def get_order(self, order_id: str) -> Optional[Order]:
        try:
            return await self.api.get_order(order_id)
        except ApiError as e:
            logger.error(f"Failed to fetch order {order_id}: {e}")
            return None
