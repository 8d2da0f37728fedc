"""
dola - strategy dispatch and orchestration engine for trading venues.

A Keep attaches a tree of strategies to one or more venues, relays every
venue event to the matching strategy callback, and drives init/deinit for
each (strategy, venue) pair.

Usage:
    import asyncio
    from dola import BalancesStrategy, KeepBuilder

    balances = BalancesStrategy(refresh_rate=30.0)
    keep = KeepBuilder().venue(my_venue).strategy("balances", balances).build()

    stop = asyncio.Event()
    await keep.run(stop)
"""

from .core import (
    AccountIndexOutOfRangeError,
    ConfigurationError,
    CurrencyNotFoundError,
    DolaError,
    HoldingsNotFoundError,
    InitFailure,
    Keep,
    KeepBuilder,
    StrategyGroup,
)
from .strategies import (
    BalancesStrategy,
    NoopStrategy,
    Strategy,
    StrategyRegistry,
    TickerStrategy,
)
from .venues import Balance, Holdings, SubAccount, Venue

__all__ = [
    "AccountIndexOutOfRangeError",
    "ConfigurationError",
    "CurrencyNotFoundError",
    "DolaError",
    "HoldingsNotFoundError",
    "InitFailure",
    "Keep",
    "KeepBuilder",
    "StrategyGroup",
    "BalancesStrategy",
    "NoopStrategy",
    "Strategy",
    "StrategyRegistry",
    "TickerStrategy",
    "Balance",
    "Holdings",
    "SubAccount",
    "Venue",
]
