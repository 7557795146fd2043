# cart_service.py - Cart state container
# Every mutation is followed by a full refetch, so the local cart always
# mirrors what the server reports.

import logging
from typing import Any, Awaitable, Optional

from api_client import StorefrontAPI
from auth_service import AuthSession
from errors import ApiError, InvalidInputError, SessionExpiredError
from schemas import Cart, User

logger = logging.getLogger("Storefront.Cart")


class CartService:
    """Cart of the active session plus the open/closed state of the cart panel"""

    def __init__(self, api: StorefrontAPI, session: Optional[AuthSession] = None):
        self.api = api
        self.session = session
        self.cart = Cart()
        self.is_open = False
        self.loading = False
        if session is not None:
            session.add_listener(self._on_session_change)

    async def _on_session_change(self, user: Optional[User]) -> None:
        if user is None:
            self.cart = Cart()
        else:
            await self.fetch_cart()

    @property
    def total(self) -> float:
        return self.cart.total

    @property
    def item_count(self) -> int:
        return self.cart.item_count

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    async def fetch_cart(self) -> Cart:
        """Replace local state with the server cart; any failure leaves it empty"""
        if self.session is not None and not self.session.is_authenticated:
            self.cart = Cart()
            return self.cart

        self.loading = True
        try:
            cart = await self.api.get_cart()
            if cart.reported_total is not None and abs(cart.reported_total - cart.total) > 0.005:
                logger.warning(
                    f"Server total {cart.reported_total} differs from line total {cart.total}"
                )
            self.cart = cart
        except ApiError as e:
            logger.error(f"Cart fetch failed: {e}")
            self.cart = Cart()
        finally:
            self.loading = False
        return self.cart

    # ------------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------------

    async def _mutate(self, call: Awaitable[Any], action: str) -> bool:
        try:
            await call
        except SessionExpiredError:
            logger.info(f"{action} dropped: session expired")
            self.cart = Cart()
            return False
        except ApiError as e:
            logger.error(f"{action} failed: {e}")
            raise
        await self.fetch_cart()
        return True

    async def add_item(self, product_id: str, size: Any, quantity: int = 1) -> Cart:
        """Server merges identical (product, size) lines; opens the cart panel on success"""
        if quantity < 1:
            raise InvalidInputError("Quantity must be at least 1")
        try:
            size = int(str(size).strip())
        except ValueError:
            raise InvalidInputError(f"Invalid size: {size!r}")

        if await self._mutate(self.api.add_cart_item(product_id, size, quantity), "Add to cart"):
            self.is_open = True
        return self.cart

    async def update_item(self, cart_item_id: str, quantity: int) -> Cart:
        """Set the absolute quantity of a line; quantities below 1 are ignored"""
        if quantity < 1:
            logger.debug(f"Ignoring quantity {quantity} for cart item {cart_item_id}")
            return self.cart
        await self._mutate(self.api.update_cart_item(cart_item_id, quantity), "Quantity update")
        return self.cart

    async def remove_item(self, cart_item_id: str) -> Cart:
        await self._mutate(self.api.remove_cart_item(cart_item_id), "Remove from cart")
        return self.cart

    async def clear_cart(self) -> Cart:
        """Empty the cart; a failed remote call still clears local state"""
        try:
            await self.api.clear_cart()
        except ApiError as e:
            logger.error(f"Clear cart failed, clearing local cart anyway: {e}")
        self.cart = Cart()
        return self.cart

    # ------------------------------------------------------------------------
    # Panel
    # ------------------------------------------------------------------------

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> None:
        self.is_open = not self.is_open
