"""Venue-facing types: the Venue protocol and the account holdings model."""

from .account import Balance, BalanceChange, Holdings, SubAccount
from .protocol import Venue, venue_key

__all__ = [
    "Balance",
    "BalanceChange",
    "Holdings",
    "SubAccount",
    "Venue",
    "venue_key",
]
