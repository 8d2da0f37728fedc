"""
Event dataclasses relayed from venues to strategies.

- types: EventType enum
- market_events: funding, price, kline and order book events
- order_events: order, modify, balance change and unrecognized events

Usage:
    from dola.core.events import EventType, PriceEvent

    event = PriceEvent(venue="binance", data={"last": "64000.1"})
"""

from .types import EventType

from .market_events import (
    FundingEvent,
    PriceEvent,
    KlineEvent,
    OrderBookEvent,
)

from .order_events import (
    OrderEvent,
    ModifyEvent,
    BalanceChangeEvent,
    UnrecognizedEvent,
)

__all__ = [
    "EventType",
    "FundingEvent",
    "PriceEvent",
    "KlineEvent",
    "OrderBookEvent",
    "OrderEvent",
    "ModifyEvent",
    "BalanceChangeEvent",
    "UnrecognizedEvent",
]
