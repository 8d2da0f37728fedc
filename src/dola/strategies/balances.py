"""
Balances Strategy - per-venue account holdings cache.

Embeds a TickerStrategy whose tick pulls account holdings from the venue and
stores them under the venue's name. Strategies and external readers query
the cache with point lookups:

    balances = BalancesStrategy(refresh_rate=30.0)
    keep.root.add("balances", balances)
    ...
    btc = balances.currency("binance", "BTC", "main")

Cache semantics:
    - Keys are venue names, compared case-insensitively
    - Last successful fetch wins
    - A failed fetch is logged and counted, the previous snapshot stays
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from ..core.errors import (
    AccountIndexOutOfRangeError,
    CurrencyNotFoundError,
    HoldingsNotFoundError,
)
from ..venues.account import Balance, Holdings, SubAccount
from ..venues.protocol import venue_key
from .protocol import NoopStrategy
from .registry import StrategyRegistry
from .ticker import TickerStrategy

if TYPE_CHECKING:
    from ..core.keep import Keep
    from ..venues.protocol import Venue

logger = logging.getLogger("dola.strategies.balances")

DEFAULT_REFRESH_RATE = 60.0


class HoldingsCache:
    """
    Holdings snapshots keyed by venue, with one lock per venue.

    Locks are created insert-if-absent, so readers and writers of one venue
    never contend with another venue. Safe to use from asyncio tasks and OS
    threads alike.
    """

    def __init__(self):
        self._entries: Dict[str, Holdings] = {}
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is None:
            # setdefault is atomic, racing creators end up sharing one lock
            lock = self._locks.setdefault(key, threading.Lock())
        return lock

    def put(self, name: str, holdings: Holdings) -> None:
        key = venue_key(name)
        with self._lock_for(key):
            self._entries[key] = holdings

    def get(self, name: str) -> Optional[Holdings]:
        key = venue_key(name)
        # Only put() creates locks, so misses leave no trace
        lock = self._locks.get(key)
        if lock is None:
            return None
        with lock:
            return self._entries.get(key)

    def keys(self):
        return list(self._entries.keys())


@StrategyRegistry.register("balances")
class BalancesStrategy(NoopStrategy):
    """
    Keeps an up-to-date holdings snapshot for every attached venue.

    Only init() and deinit() do work (they start and stop the embedded
    ticker); every event callback is a no-op.

    Attributes:
        refresh_rate: Seconds between holdings fetches
    """

    def __init__(self, refresh_rate: float = DEFAULT_REFRESH_RATE):
        """
        Initialize the balances strategy.

        Args:
            refresh_rate: Seconds between holdings fetches, must be positive

        Raises:
            InvalidIntervalError: If refresh_rate is not a positive number
        """
        self._cache = HoldingsCache()
        self._ticker = TickerStrategy(interval=refresh_rate)
        self._ticker.tick_func = self._tick

        # Health metrics
        self._fetch_count = 0
        self._fetch_errors = 0
        self._last_errors: Dict[str, str] = {}

    @property
    def refresh_rate(self) -> float:
        return self._ticker.interval

    @property
    def ticker(self) -> TickerStrategy:
        """The embedded ticker driving the refreshes."""
        return self._ticker

    def store(self, holdings: Holdings) -> None:
        """Upsert a snapshot under holdings.venue (case-insensitive)."""
        self._cache.put(holdings.venue, holdings)

    def load(self, venue_name: str) -> Tuple[Optional[Holdings], bool]:
        """
        Look up the latest snapshot for a venue.

        Args:
            venue_name: Venue name, any case

        Returns:
            (holdings, True) if a snapshot was stored, (None, False) otherwise
        """
        holdings = self._cache.get(venue_name)
        return holdings, holdings is not None

    def currency(self, venue_name: str, code: str, account_id: str) -> Balance:
        """
        Get the balance of one currency in one sub-account.

        Sub-account IDs and currency codes must match exactly. If a snapshot
        lists the same pair more than once, the first match wins.

        Args:
            venue_name: Venue name, any case
            code: Currency code (e.g. "BTC")
            account_id: Sub-account identifier

        Returns:
            The matching Balance

        Raises:
            HoldingsNotFoundError: No snapshot stored for the venue
            CurrencyNotFoundError: No sub-account holds the currency
        """
        holdings, loaded = self.load(venue_name)
        if not loaded:
            raise HoldingsNotFoundError(f"holdings not found for venue '{venue_name}'")

        for sub in holdings.accounts:
            if sub.id != account_id:
                continue
            for balance in sub.currencies:
                if balance.currency == code:
                    return balance

        raise CurrencyNotFoundError(
            f"currency '{code}' not found in account '{account_id}' of venue '{venue_name}'"
        )

    def account(self, venue_name: str, index: int) -> SubAccount:
        """
        Get a sub-account by its position in the venue's snapshot.

        Raises:
            HoldingsNotFoundError: No snapshot stored for the venue
            AccountIndexOutOfRangeError: No sub-account at that index
        """
        holdings, loaded = self.load(venue_name)
        if not loaded:
            raise HoldingsNotFoundError(f"holdings not found for venue '{venue_name}'")

        if index < 0 or index >= len(holdings.accounts):
            raise AccountIndexOutOfRangeError(
                f"no account with index {index} for venue '{venue_name}' "
                f"({len(holdings.accounts)} accounts)"
            )
        return holdings.accounts[index]

    async def _tick(self, keep: 'Keep', venue: 'Venue') -> None:
        """Fetch holdings from the venue and store them if the fetch succeeds."""
        try:
            holdings = await venue.fetch_account_holdings()
            if not isinstance(holdings, Holdings):
                raise TypeError(f"expected Holdings, got {type(holdings).__name__}")
        except Exception as e:
            self._fetch_errors += 1
            self._last_errors[venue_key(venue.name)] = str(e)
            logger.error(f"Holdings fetch failed for venue {venue.name}: {e}")
            return

        if not holdings.venue:
            holdings = holdings.with_venue(venue.name)

        self.store(holdings)
        self._fetch_count += 1
        self._last_errors.pop(venue_key(venue.name), None)
        logger.debug(f"Holdings refreshed for {venue.name} ({len(holdings.accounts)} accounts)")

    async def init(self, keep: 'Keep', venue: 'Venue') -> None:
        await self._ticker.init(keep, venue)

    async def deinit(self, keep: 'Keep', venue: 'Venue') -> None:
        await self._ticker.deinit(keep, venue)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache and refresh statistics."""
        return {
            "refresh_rate": self.refresh_rate,
            "venues_cached": self._cache.keys(),
            "fetch_count": self._fetch_count,
            "fetch_errors": self._fetch_errors,
            "last_errors": dict(self._last_errors),
            "ticker": self._ticker.get_stats(),
        }
