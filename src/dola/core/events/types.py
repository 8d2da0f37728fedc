"""
Event types relayed by the Keep.

Each venue event source produces events of one of these kinds; the Keep maps
the kind to the matching Strategy callback.
"""

from enum import Enum


class EventType(Enum):
    """Kinds of venue events understood by the strategy contract."""

    # Market data
    FUNDING = "funding"
    PRICE = "price"
    KLINE = "kline"
    ORDERBOOK = "orderbook"

    # Order lifecycle
    ORDER = "order"
    MODIFY = "modify"

    # Account pushes
    BALANCE_CHANGE = "balance_change"

    # Catch-all for payloads no other kind matches
    UNRECOGNIZED = "unrecognized"
