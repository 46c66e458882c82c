from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from learning_bot.constants import (
    TOKEN_REFRESH_CHECK_INTERVAL,
    TOKEN_REFRESH_RETRY_DELAY,
    TOKEN_REFRESH_WINDOW,
)
from learning_bot.domain.errors import TokenRefreshError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedToken:
    value: str
    lifetime: timedelta


class TokenState(str, Enum):
    MISSING = "missing"
    VALID = "valid"
    EXPIRED = "expired"


TokenFetcher = Callable[[], Awaitable[IssuedToken]]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenCache:
    """Caches one provider access token and refreshes it on demand.

    Every write goes through a single ``asyncio.Lock`` which is held while a
    refresh is in flight, so callers that arrive during an expired state wait
    for that refresh instead of starting their own. ``state()`` reads without
    the lock; it never awaits, so it cannot observe a half-written token.
    """

    def __init__(
        self,
        name: str,
        fetch: TokenFetcher,
        *,
        safety_margin: timedelta,
        clock: Clock = _utc_now,
    ) -> None:
        self._name = name
        self._fetch = fetch
        self._safety_margin = safety_margin
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: str | None = None
        self._expires_at: datetime | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def expires_at(self) -> datetime | None:
        return self._expires_at

    def state(self) -> TokenState:
        if not self._token or self._expires_at is None:
            return TokenState.MISSING
        if self._clock() < self._expires_at:
            return TokenState.VALID
        return TokenState.EXPIRED

    async def invalidate(self, token: str | None = None) -> bool:
        """Expires the cached token.

        Passing the rejected ``token`` makes the call a no-op when a refresh has
        already replaced it.
        """
        async with self._lock:
            if token is not None and token != self._token:
                return False
            self._expires_at = self._clock()
            return True

    async def get_token(self) -> str:
        async with self._lock:
            if self.state() is TokenState.VALID and self._token:
                return self._token
            logger.info("%s token is %s, requesting a new one", self._name, self.state().value)
            return await self._refresh_locked()

    async def refresh(self) -> str:
        async with self._lock:
            return await self._refresh_locked()

    async def refresh_if_expiring(self, window: timedelta) -> bool:
        async with self._lock:
            if (
                self.state() is TokenState.VALID
                and self._expires_at is not None
                and self._clock() < self._expires_at - window
            ):
                return False
            await self._refresh_locked()
            return True

    async def _refresh_locked(self) -> str:
        try:
            issued = await self._fetch()
        except TokenRefreshError:
            logger.exception("%s token refresh failed", self._name)
            raise
        except Exception as exc:
            logger.exception("%s token refresh failed", self._name)
            raise TokenRefreshError(
                f"{self._name} token refresh failed", provider=self._name
            ) from exc
        if not issued.value:
            raise TokenRefreshError(f"{self._name} returned an empty token", provider=self._name)

        self._token = issued.value
        self._expires_at = self._clock() + issued.lifetime - self._safety_margin
        logger.info("%s token refreshed, valid until %s", self._name, self._expires_at.isoformat())
        return issued.value

    async def run_refresh_loop(
        self,
        stop: asyncio.Event,
        *,
        check_interval: timedelta = TOKEN_REFRESH_CHECK_INTERVAL,
        refresh_window: timedelta = TOKEN_REFRESH_WINDOW,
        retry_delay: timedelta = TOKEN_REFRESH_RETRY_DELAY,
    ) -> None:
        logger.info("%s token refresh loop started", self._name)
        while not stop.is_set():
            try:
                await self.refresh_if_expiring(refresh_window)
                delay = check_interval
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "%s background token refresh failed; retrying in %ss",
                    self._name,
                    int(retry_delay.total_seconds()),
                )
                delay = retry_delay
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay.total_seconds())
            except TimeoutError:
                continue
        logger.info("%s token refresh loop stopped", self._name)
