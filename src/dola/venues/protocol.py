"""
Venue protocol consumed by the orchestration core.

Venue clients (connection, authentication, streaming, order submission) live
outside dola. The core only needs a name to key its state by, a pull-based
holdings fetch, and a stream of typed events.
"""

from typing import Any, AsyncIterator, Protocol, runtime_checkable

from .account import Holdings


def venue_key(name: str) -> str:
    """Normalize a venue name for use as a registry or cache key."""
    return name.lower()


@runtime_checkable
class Venue(Protocol):
    """
    Protocol implemented by venue clients.

    Required Attributes:
        name: Venue name, compared case-insensitively

    Required Methods:
        fetch_account_holdings(): Pull the current account snapshot
        stream(): Async iterator over pushed events (see dola.core.events);
            anything that is not a dola event is delivered as unrecognized
    """

    name: str

    async def fetch_account_holdings(self) -> Holdings:
        ...

    def stream(self) -> AsyncIterator[Any]:
        ...
