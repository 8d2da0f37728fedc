"""
Shared fakes for dola tests.

FakeVenue stands in for a venue client: a name, a scripted holdings fetch and
a scripted event stream. RecordingStrategy logs every callback it receives.
"""

import asyncio
import time
from decimal import Decimal
from typing import Any, Callable, List, Optional, Tuple

import pytest

from dola.strategies.protocol import NoopStrategy
from dola.venues.account import Balance, Holdings, SubAccount


class FakeVenue:
    """Venue with a scripted stream and holdings fetch."""

    def __init__(
        self,
        name: str,
        events: Optional[List[Any]] = None,
        holdings: Optional[Holdings] = None,
        hold_open: bool = True,
        stream_error: Optional[Exception] = None,
    ):
        self.name = name
        self.events = list(events or [])
        self.holdings = holdings
        self.hold_open = hold_open
        self.stream_error = stream_error
        self.fetch_error: Optional[Exception] = None
        self.fetch_calls = 0

    async def fetch_account_holdings(self) -> Holdings:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.holdings

    async def stream(self):
        for event in self.events:
            yield event
            await asyncio.sleep(0)
        if self.stream_error is not None:
            raise self.stream_error
        if self.hold_open:
            # Live venues never end their stream on their own
            await asyncio.get_running_loop().create_future()


class RecordingStrategy(NoopStrategy):
    """Strategy that appends (label, callback, venue, event) to a shared log."""

    def __init__(self, label: str, log: Optional[List[Tuple]] = None):
        self.label = label
        self.log = log if log is not None else []

    def _record(self, callback: str, venue, event=None) -> None:
        self.log.append((self.label, callback, venue.name, event))

    def received(self, venue_name: Optional[str] = None) -> List[Any]:
        """Events delivered through any on_* callback, in arrival order."""
        return [
            entry[3] for entry in self.log
            if entry[0] == self.label
            and entry[1].startswith("on_")
            and (venue_name is None or entry[2] == venue_name)
        ]

    def calls(self, callback: str) -> List[Tuple]:
        return [entry for entry in self.log if entry[0] == self.label and entry[1] == callback]

    async def init(self, keep, venue):
        self._record("init", venue)

    async def on_funding(self, keep, venue, event):
        self._record("on_funding", venue, event)

    async def on_price(self, keep, venue, event):
        self._record("on_price", venue, event)

    async def on_kline(self, keep, venue, event):
        self._record("on_kline", venue, event)

    async def on_order_book(self, keep, venue, event):
        self._record("on_order_book", venue, event)

    async def on_order(self, keep, venue, event):
        self._record("on_order", venue, event)

    async def on_modify(self, keep, venue, event):
        self._record("on_modify", venue, event)

    async def on_balance_change(self, keep, venue, event):
        self._record("on_balance_change", venue, event)

    async def on_unrecognized(self, keep, venue, event):
        self._record("on_unrecognized", venue, event)

    async def deinit(self, keep, venue):
        self._record("deinit", venue)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll `predicate` until it holds or fail the test after `timeout`."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.005)


def make_holdings(venue: str, *accounts: Tuple[str, List[Tuple[str, str]]]) -> Holdings:
    """Build Holdings from (account_id, [(currency, total), ...]) tuples."""
    return Holdings(
        venue=venue,
        accounts=[
            SubAccount(
                id=account_id,
                currencies=[Balance(currency=code, total=Decimal(total), free=Decimal(total)) for code, total in balances],
            )
            for account_id, balances in accounts
        ],
    )


@pytest.fixture
def log() -> List[Tuple]:
    return []
