"""
Account holdings data model.

Venue clients convert their account responses into these structures so that
strategies can query balances the same way on every venue.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List


@dataclass(frozen=True)
class Balance:
    """
    Balance of one currency inside a sub-account.

    Attributes:
        currency: Currency code as reported by the venue (e.g. "BTC")
        total: Total amount held
        hold: Amount locked in open orders or withdrawals
        free: Amount available for trading
    """
    currency: str
    total: Decimal = Decimal("0")
    hold: Decimal = Decimal("0")
    free: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "total": str(self.total),
            "hold": str(self.hold),
            "free": str(self.free),
        }


@dataclass(frozen=True)
class SubAccount:
    """A venue sub-account and its currency balances."""
    id: str
    currencies: List[Balance] = field(default_factory=list)


@dataclass(frozen=True)
class Holdings:
    """
    Snapshot of account balances across all sub-accounts of one venue.

    Attributes:
        venue: Name of the venue the snapshot belongs to
        accounts: Sub-accounts in the order the venue reported them
    """
    venue: str
    accounts: List[SubAccount] = field(default_factory=list)

    def with_venue(self, venue: str) -> "Holdings":
        """Return a copy of this snapshot attributed to another venue name."""
        return replace(self, venue=venue)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/debugging."""
        return {
            "venue": self.venue,
            "accounts": [
                {"id": sub.id, "currencies": [b.to_dict() for b in sub.currencies]}
                for sub in self.accounts
            ],
        }


@dataclass(frozen=True)
class BalanceChange:
    """Single balance movement pushed by a venue."""
    venue: str
    account_id: str
    currency: str
    amount: Decimal
