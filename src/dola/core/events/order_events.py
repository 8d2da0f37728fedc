"""
Order lifecycle and account event dataclasses.
"""

import time
from dataclasses import dataclass
from typing import Any, Optional

from .types import EventType


@dataclass
class OrderEvent:
    """
    Order state update (new, partially filled, filled, cancelled...).

    Attributes:
        event_type: Always ORDER
        venue: Name of the venue that produced the event
        order_id: Venue order identifier, when the payload exposes one
        data: Venue-specific order detail
        received_at: Local timestamp when the event was received
    """
    event_type: EventType = EventType.ORDER
    venue: str = ""
    order_id: Optional[str] = None
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()


@dataclass
class ModifyEvent:
    """Order amendment acknowledged by the venue."""
    event_type: EventType = EventType.MODIFY
    venue: str = ""
    order_id: Optional[str] = None
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()


@dataclass
class BalanceChangeEvent:
    """
    Pushed account balance change.

    `data` is usually a dola.venues.account.BalanceChange, but venues may
    push their own structure.
    """
    event_type: EventType = EventType.BALANCE_CHANGE
    venue: str = ""
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()


@dataclass
class UnrecognizedEvent:
    """Payload the venue client could not classify."""
    event_type: EventType = EventType.UNRECOGNIZED
    venue: str = ""
    data: Any = None
    received_at: float = 0.0

    def __post_init__(self):
        if self.received_at == 0.0:
            self.received_at = time.time()
