"""
Exception hierarchy for dola.

Three families of errors:
- ConfigurationError: raised synchronously while composing a Keep
- InvalidTransitionError: a (strategy, venue) pair was driven out of order
- LookupFailure: a query found no data (recoverable by definition)

Init failures and runtime callback errors are not raised to callers; they are
logged and recorded by the Keep.
"""


class DolaError(Exception):
    """Base class for all dola errors."""


class ConfigurationError(DolaError):
    """Invalid setup detected while building strategies or the Keep."""


class DuplicateStrategyError(ConfigurationError):
    """A strategy name is already registered in the same group."""

    def __init__(self, group: str, name: str):
        self.group = group
        self.name = name
        super().__init__(f"strategy '{name}' already exists in group '{group}'")


class DuplicateVenueError(ConfigurationError):
    """Two venues share the same case-insensitive name."""


class InvalidIntervalError(ConfigurationError):
    """A ticker interval is not a positive number of seconds."""


class UnknownStrategyError(ConfigurationError):
    """No strategy is registered under the requested key."""


class InvalidTransitionError(DolaError):
    """A (strategy, venue) pair was moved to a state it cannot reach."""


class LookupFailure(DolaError):
    """Base class for query errors caused by absent data."""


class HoldingsNotFoundError(LookupFailure):
    """No holdings snapshot exists for the venue."""


class CurrencyNotFoundError(LookupFailure):
    """The holdings snapshot has no matching sub-account and currency."""


class AccountIndexOutOfRangeError(LookupFailure):
    """No sub-account exists at the requested index."""
