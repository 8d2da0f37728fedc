"""
Strategy Protocol for the dola plugin system.

This module defines the capability contract every strategy implements:
- Strategy: runtime-checkable Protocol covering lifecycle and event callbacks
- NoopStrategy: default implementation with every callback a no-op

Design Principles:
    - **Protocol-based**: Third-party strategies implement it by duck typing
    - **Async-first**: Every callback is a coroutine
    - **Selective overrides**: Subclass NoopStrategy and implement only the
      callbacks you care about

Every callback receives the Keep driving it and the venue the call concerns.
Lifecycle per (strategy, venue) pair: init once, callbacks any number of
times, deinit once.

Architecture Position:
    - Implemented by TickerStrategy, BalancesStrategy and user plugins
    - Driven by dola.core.keep.Keep
"""

from typing import Any, Protocol, TYPE_CHECKING, runtime_checkable

from .registry import StrategyRegistry

if TYPE_CHECKING:
    from ..core.keep import Keep
    from ..core.events import (
        FundingEvent,
        PriceEvent,
        KlineEvent,
        OrderBookEvent,
        OrderEvent,
        ModifyEvent,
        BalanceChangeEvent,
    )
    from ..venues.protocol import Venue


@runtime_checkable
class Strategy(Protocol):
    """
    Protocol defining the interface for all strategies.

    Raising from init() aborts attachment of this strategy to that venue
    only. Raising from any on_* callback is logged by the Keep and never
    stops delivery to other strategies or venues. Raising from deinit() is
    logged, not fatal.

    Usage:
        class PrintPrices(NoopStrategy):
            async def on_price(self, keep, venue, event):
                print(venue.name, event.data)

        keep.root.add("print_prices", PrintPrices())
    """

    async def init(self, keep: 'Keep', venue: 'Venue') -> None:
        ...

    async def on_funding(self, keep: 'Keep', venue: 'Venue', event: 'FundingEvent') -> None:
        ...

    async def on_price(self, keep: 'Keep', venue: 'Venue', event: 'PriceEvent') -> None:
        ...

    async def on_kline(self, keep: 'Keep', venue: 'Venue', event: 'KlineEvent') -> None:
        ...

    async def on_order_book(self, keep: 'Keep', venue: 'Venue', event: 'OrderBookEvent') -> None:
        ...

    async def on_order(self, keep: 'Keep', venue: 'Venue', event: 'OrderEvent') -> None:
        ...

    async def on_modify(self, keep: 'Keep', venue: 'Venue', event: 'ModifyEvent') -> None:
        ...

    async def on_balance_change(self, keep: 'Keep', venue: 'Venue', event: 'BalanceChangeEvent') -> None:
        ...

    async def on_unrecognized(self, keep: 'Keep', venue: 'Venue', event: Any) -> None:
        ...

    async def deinit(self, keep: 'Keep', venue: 'Venue') -> None:
        ...


@StrategyRegistry.register("noop")
class NoopStrategy:
    """
    Strategy that does nothing.

    Base class for concrete strategies, and usable on its own as a
    placeholder in a strategy tree.
    """

    async def init(self, keep: 'Keep', venue: 'Venue') -> None:
        return None

    async def on_funding(self, keep: 'Keep', venue: 'Venue', event: 'FundingEvent') -> None:
        return None

    async def on_price(self, keep: 'Keep', venue: 'Venue', event: 'PriceEvent') -> None:
        return None

    async def on_kline(self, keep: 'Keep', venue: 'Venue', event: 'KlineEvent') -> None:
        return None

    async def on_order_book(self, keep: 'Keep', venue: 'Venue', event: 'OrderBookEvent') -> None:
        return None

    async def on_order(self, keep: 'Keep', venue: 'Venue', event: 'OrderEvent') -> None:
        return None

    async def on_modify(self, keep: 'Keep', venue: 'Venue', event: 'ModifyEvent') -> None:
        return None

    async def on_balance_change(self, keep: 'Keep', venue: 'Venue', event: 'BalanceChangeEvent') -> None:
        return None

    async def on_unrecognized(self, keep: 'Keep', venue: 'Venue', event: Any) -> None:
        return None

    async def deinit(self, keep: 'Keep', venue: 'Venue') -> None:
        return None
