"""Change subscriptions with a pluggable transport.

A LiveCollection keeps one fetched collection current: it fetches once on
mount, subscribes after a short delay (so early notifications cannot race
the initial fetch), and answers every change notification with a full
refetch rather than applying deltas.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

import psycopg
from psycopg import sql

from .errors import BackendError, StaleStateError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECONNECT_DELAY_SECONDS = 5.0


class ChangeTransport(Protocol):
    def changes(self, channel: str) -> AsyncIterator[str]:
        """Yield once per change notification on ``channel``."""
        ...


class ListenTransport:
    """PostgreSQL LISTEN on a dedicated autocommit connection."""

    def __init__(self, database_url: str, *, timeout_seconds: float = 5.0) -> None:
        self.database_url = database_url
        self.timeout_seconds = timeout_seconds

    async def changes(self, channel: str) -> AsyncIterator[str]:
        while True:
            try:
                async with await psycopg.AsyncConnection.connect(
                    self.database_url, autocommit=True
                ) as conn:
                    await conn.execute(sql.SQL("LISTEN {}").format(sql.Identifier(channel)))
                    logger.info("Listening on %s", channel, extra={"gymsync_channel": channel})

                    # Keep the connection across timeouts; only reconnect on loss.
                    while True:
                        async for notify in conn.notifies(timeout=self.timeout_seconds):
                            logger.debug("NOTIFY received on %s: %s", channel, notify.payload)
                            yield notify.payload
            except psycopg.OperationalError:
                logger.warning(
                    "LISTEN connection lost on %s, reconnecting in %.0fs",
                    channel,
                    RECONNECT_DELAY_SECONDS,
                )
                await asyncio.sleep(RECONNECT_DELAY_SECONDS)


class PollingTransport:
    """Pretend something changed every ``interval_seconds``."""

    def __init__(self, interval_seconds: float = 5.0) -> None:
        self.interval_seconds = interval_seconds

    async def changes(self, channel: str) -> AsyncIterator[str]:
        while True:
            await asyncio.sleep(self.interval_seconds)
            yield "POLL"


class LiveCollection(Generic[T]):
    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[T]]],
        transport: ChangeTransport,
        channel: str,
        *,
        subscribe_delay_seconds: float = 0.5,
        on_change: Callable[[list[T]], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self._transport = transport
        self.channel = channel
        self.subscribe_delay_seconds = subscribe_delay_seconds
        self._on_change = on_change
        self.items: list[T] = []
        self.mounted = False
        self._generation = 0
        self._task: asyncio.Task[Any] | None = None

    async def mount(self) -> list[T]:
        """Initial fetch, then subscribe in the background.

        A BackendError from the initial fetch propagates to the caller.
        """
        self.mounted = True
        await self.refresh()
        self._task = asyncio.create_task(self._subscribe())
        return self.items

    async def unmount(self) -> None:
        self.mounted = False
        self._generation += 1
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.debug("Unsubscribed from %s", self.channel)

    async def refresh(self) -> list[T]:
        self._generation += 1
        generation = self._generation
        items = await self._fetch()
        try:
            self._apply(generation, items)
        except StaleStateError:
            logger.debug("Dropping stale refetch on %s", self.channel)
        return self.items

    def _apply(self, generation: int, items: list[T]) -> None:
        if not self.mounted or generation != self._generation:
            raise StaleStateError(self.channel)
        self.items = items
        if self._on_change is not None:
            self._on_change(items)

    async def _subscribe(self) -> None:
        await asyncio.sleep(self.subscribe_delay_seconds)
        try:
            async for _ in self._transport.changes(self.channel):
                if not self.mounted:
                    break
                try:
                    await self.refresh()
                except BackendError as exc:
                    logger.warning("Refetch after change on %s failed: %s", self.channel, exc)
                except Exception:
                    logger.exception("Change handler on %s failed", self.channel)
        except Exception:
            logger.exception("Subscription on %s stopped", self.channel)
