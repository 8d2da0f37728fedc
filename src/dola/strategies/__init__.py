"""
Strategy plugin system for dola.

Key Components:
    - Strategy: Protocol that all strategies implement
    - NoopStrategy: No-op base class; override only the callbacks you need
    - TickerStrategy: Periodic polling adapter, one timer per venue
    - BalancesStrategy: Per-venue account holdings cache refreshed by a ticker
    - StrategyRegistry: Registry of strategy classes for config-driven trees

Usage:
    from dola.strategies import NoopStrategy

    class LogOrders(NoopStrategy):
        async def on_order(self, keep, venue, event):
            logger.info(f"{venue.name}: {event.order_id}")
"""

from .registry import StrategyRegistry
from .protocol import Strategy, NoopStrategy
from .ticker import TickerStrategy
from .balances import BalancesStrategy, HoldingsCache

__all__ = [
    "Strategy",
    "NoopStrategy",
    "TickerStrategy",
    "BalancesStrategy",
    "HoldingsCache",
    "StrategyRegistry",
]
