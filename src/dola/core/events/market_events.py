"""
Market data event dataclasses.

Payload formats belong to the venue clients; the events only carry them
through to strategies untouched.
"""

import time
from dataclasses import dataclass
from typing import Any

from .types import EventType


@dataclass
class FundingEvent:
    """
    Funding-rate update for a perpetual market.

    Attributes:
        event_type: Always FUNDING
        venue: Name of the venue that produced the event
        data: Venue-specific funding payload
        received_at: Local timestamp when the event was received
    """
    event_type: EventType = EventType.FUNDING
    venue: str = ""
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()


@dataclass
class PriceEvent:
    """Ticker price update (last, bid, ask...) in the venue's own format."""
    event_type: EventType = EventType.PRICE
    venue: str = ""
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()


@dataclass
class KlineEvent:
    """Candle update."""
    event_type: EventType = EventType.KLINE
    venue: str = ""
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()


@dataclass
class OrderBookEvent:
    """
    Order book snapshot or delta.

    Attributes:
        event_type: Always ORDERBOOK
        venue: Name of the venue that produced the event
        data: Venue-specific book levels
        is_snapshot: True for a full snapshot, False for a delta
        received_at: Local timestamp when the event was received
    """
    event_type: EventType = EventType.ORDERBOOK
    venue: str = ""
    data: Any = None
    is_snapshot: bool = True
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()
