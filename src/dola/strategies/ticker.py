"""
Ticker Strategy - periodic polling adapter.

Turns a pull-only capability ("fetch account info now") into periodic
delivery with the same lifecycle as push-driven strategies. Each venue the
strategy is initialized for gets its own timer task.

Lifecycle per venue:
    init()   -> insert-if-absent a timer task; first tick one interval later
    deinit() -> remove-and-cancel the task; no tick runs after it returns

Usage:
    async def poll(keep, venue):
        ...

    ticker = TickerStrategy(interval=5.0, tick_func=poll)
    keep.root.add("poller", ticker)
"""

import asyncio
import inspect
import logging
import math
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union, TYPE_CHECKING

from ..core.errors import ConfigurationError, InvalidIntervalError
from ..venues.protocol import venue_key
from .protocol import NoopStrategy

if TYPE_CHECKING:
    from ..core.keep import Keep
    from ..venues.protocol import Venue

logger = logging.getLogger("dola.strategies.ticker")

TickFunc = Callable[['Keep', 'Venue'], Union[None, Awaitable[None]]]


class TickerStrategy(NoopStrategy):
    """
    Runs tick_func(keep, venue) every `interval` seconds for each venue.

    Ticks fire on interval boundaries measured from init(). When a tick runs
    longer than the interval, the boundaries it overran are skipped rather
    than replayed. A tick that raises is logged with the venue name and the
    schedule continues.

    Attributes:
        interval: Seconds between ticks
        tick_func: Sync or async callable invoked on every tick; may be
            assigned after construction by an embedding strategy
    """

    def __init__(self, interval: float, tick_func: Optional[TickFunc] = None):
        """
        Initialize the ticker.

        Args:
            interval: Seconds between ticks, must be positive
            tick_func: Callable invoked with (keep, venue) on every tick

        Raises:
            InvalidIntervalError: If interval is not a positive number
        """
        if (
            isinstance(interval, bool)
            or not isinstance(interval, (int, float))
            or not math.isfinite(interval)
            or interval <= 0
        ):
            raise InvalidIntervalError(f"ticker interval must be a positive number of seconds, got {interval!r}")

        self.interval = float(interval)
        self.tick_func = tick_func

        # venue key -> running timer task
        self._tickers: Dict[str, asyncio.Task] = {}

        # Health metrics
        self._tick_count: Dict[str, int] = {}
        self._tick_errors: Dict[str, int] = {}
        self._last_error: Optional[str] = None
        self._last_tick_at: Optional[float] = None

    async def init(self, keep: 'Keep', venue: 'Venue') -> None:
        """Start the timer for this venue unless one is already running."""
        if self.tick_func is None:
            raise ConfigurationError("TickerStrategy.tick_func is not set")

        key = venue_key(venue.name)
        task = self._tickers.get(key)
        if task is not None and not task.done():
            logger.debug(f"Ticker already running for {venue.name}, init ignored")
            return

        self._tickers[key] = asyncio.create_task(
            self._tick_loop(keep, venue), name=f"dola-ticker-{key}"
        )
        logger.info(f"Ticker started for {venue.name} (interval={self.interval}s)")

    async def deinit(self, keep: 'Keep', venue: 'Venue') -> None:
        """Stop the timer for this venue; a no-op if none is running."""
        key = venue_key(venue.name)
        task = self._tickers.pop(key, None)
        if task is None:
            return

        task.cancel()
        # Called from inside our own tick: the cancellation lands at the
        # tick's next await
        if task is asyncio.current_task():
            return

        try:
            await task
        except asyncio.CancelledError:
            pass

        logger.info(f"Ticker stopped for {venue.name} (ticks: {self._tick_count.get(key, 0)})")

    async def _tick_loop(self, keep: 'Keep', venue: 'Venue') -> None:
        """Fire tick_func on every interval boundary until cancelled."""
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self.interval

        while True:
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            await self._safe_tick(keep, venue)

            next_fire += self.interval
            now = loop.time()
            if next_fire <= now:
                skipped = int((now - next_fire) // self.interval) + 1
                next_fire += skipped * self.interval
                logger.debug(f"Ticker for {venue.name} overran, skipped {skipped} tick(s)")

    async def _safe_tick(self, keep: 'Keep', venue: 'Venue') -> None:
        """Invoke tick_func with error isolation."""
        key = venue_key(venue.name)
        self._tick_count[key] = self._tick_count.get(key, 0) + 1
        self._last_tick_at = time.time()
        try:
            result = self.tick_func(keep, venue)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._tick_errors[key] = self._tick_errors.get(key, 0) + 1
            self._last_error = f"{venue.name}: {e}"
            logger.error(f"Tick failed for venue {venue.name}: {e}", exc_info=True)

    def is_running(self, venue_name: str) -> bool:
        """Check whether a timer is active for the venue."""
        task = self._tickers.get(venue_key(venue_name))
        return task is not None and not task.done()

    def active_venues(self) -> List[str]:
        """List venue keys with an active timer."""
        return [key for key, task in self._tickers.items() if not task.done()]

    def get_stats(self) -> Dict[str, Any]:
        """Get ticker statistics for monitoring."""
        return {
            "interval": self.interval,
            "active_venues": self.active_venues(),
            "ticks": dict(self._tick_count),
            "tick_errors": dict(self._tick_errors),
            "last_error": self._last_error,
            "last_tick_at": self._last_tick_at,
        }
