"""
Core orchestration for dola.

- keep: Keep, KeepBuilder and StrategyGroup
- lifecycle: per (strategy, venue) pair state machine
- events: event types relayed to strategies
- errors: exception hierarchy
"""

from .errors import (
    DolaError,
    ConfigurationError,
    DuplicateStrategyError,
    DuplicateVenueError,
    InvalidIntervalError,
    UnknownStrategyError,
    InvalidTransitionError,
    LookupFailure,
    HoldingsNotFoundError,
    CurrencyNotFoundError,
    AccountIndexOutOfRangeError,
)
from .lifecycle import PairState, PairLifecycle
from .keep import InitFailure, Keep, KeepBuilder, StrategyGroup

__all__ = [
    "DolaError",
    "ConfigurationError",
    "DuplicateStrategyError",
    "DuplicateVenueError",
    "InvalidIntervalError",
    "UnknownStrategyError",
    "InvalidTransitionError",
    "LookupFailure",
    "HoldingsNotFoundError",
    "CurrencyNotFoundError",
    "AccountIndexOutOfRangeError",
    "PairState",
    "PairLifecycle",
    "InitFailure",
    "Keep",
    "KeepBuilder",
    "StrategyGroup",
]
