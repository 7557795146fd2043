# auth_service.py - Session context
# The signed-in user, its on-disk cache, and change listeners.

from __future__ import annotations

import inspect
import json
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from api_client import StorefrontAPI
from config import SESSION_CACHE_PATH
from errors import ApiError, InvalidInputError, SessionExpiredError
from schemas import User

logger = logging.getLogger("Storefront.Auth")

SessionListener = Callable[[Optional[User]], Any]


class SessionCache:
    """Explicit serialize/deserialize boundary for the cached user (JSON file)."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[User]:
        if not self.path.exists():
            return None
        try:
            return User.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session cache %s: %s", self.path, e)
            return None

    def save(self, user: User) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(user.model_dump(by_alias=True)), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def default_cache() -> Optional[SessionCache]:
    return SessionCache(SESSION_CACHE_PATH) if SESSION_CACHE_PATH else None


class AuthSession:
    """Holds the authenticated user and tells listeners when it changes.

    Registers itself as the API client's unauthorized handler, so a 401 on
    any call resets the session.
    """

    def __init__(self, api: StorefrontAPI, cache: Optional[SessionCache] = None) -> None:
        self.api = api
        self.cache = cache
        self.user: Optional[User] = cache.load() if cache else None
        self.loading = False
        self._listeners: List[SessionListener] = []
        api.set_unauthorized_handler(self.expire)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def _set_user(self, user: Optional[User]) -> None:
        changed = user != self.user
        self.user = user
        if self.cache:
            if user is None:
                self.cache.clear()
            else:
                self.cache.save(user)
        if not changed:
            return
        for listener in self._listeners:
            result = listener(user)
            if inspect.isawaitable(result):
                await result

    async def login(self, email: str, password: str) -> User:
        if not email.strip() or not password:
            raise InvalidInputError("Email and password are required")
        user = await self.api.login(email.strip(), password)
        logger.info("Signed in as %s (%s)", user.email, user.role)
        await self._set_user(user)
        return user

    async def logout(self) -> None:
        """Sign out remotely if possible; local state is cleared regardless."""
        try:
            await self.api.logout()
        except ApiError as e:
            logger.error("Logout request failed: %s", e)
        await self._set_user(None)

    async def check_auth(self) -> Optional[User]:
        """Refresh the user from GET /auth/me; network trouble keeps the cached user."""
        self.loading = True
        try:
            user = await self.api.me()
            if user:
                await self._set_user(user)
        except SessionExpiredError:
            # expire() already reset the session
            pass
        except ApiError as e:
            logger.warning("Could not verify session: %s", e)
        finally:
            self.loading = False
        return self.user

    async def expire(self) -> None:
        if self.user is not None:
            logger.warning("Session expired for %s", self.user.email)
        await self._set_user(None)
