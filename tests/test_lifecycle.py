"""
Tests for pair lifecycle tracking and the Strategy protocol defaults.
"""

import pytest

from dola.core.errors import InvalidTransitionError
from dola.core.events import PriceEvent
from dola.core.lifecycle import PairLifecycle, PairState
from dola.strategies.protocol import NoopStrategy, Strategy

from conftest import FakeVenue


class TestPairLifecycle:
    """State machine of (strategy, venue) pairs."""

    def test_unknown_pair_is_uninitialized(self):
        lifecycle = PairLifecycle()
        assert lifecycle.state("s1", "binance") is PairState.UNINITIALIZED
        assert not lifecycle.is_initialized("s1", "binance")

    def test_happy_path(self):
        lifecycle = PairLifecycle()
        lifecycle.transition("s1", "binance", PairState.INITIALIZED)
        assert lifecycle.is_initialized("s1", "binance")

        lifecycle.transition("s1", "binance", PairState.DEINITIALIZED)
        last = lifecycle.last_transition("s1", "binance")
        assert last.from_state is PairState.INITIALIZED
        assert last.to_state is PairState.DEINITIALIZED

    def test_failed_records_error(self):
        lifecycle = PairLifecycle()
        lifecycle.transition("s1", "binance", PairState.FAILED, error="boom")
        assert lifecycle.last_transition("s1", "binance").error == "boom"

    @pytest.mark.parametrize("path", [
        [PairState.DEINITIALIZED],
        [PairState.INITIALIZED, PairState.INITIALIZED],
        [PairState.INITIALIZED, PairState.DEINITIALIZED, PairState.INITIALIZED],
        [PairState.FAILED, PairState.INITIALIZED],
        [PairState.FAILED, PairState.DEINITIALIZED],
    ])
    def test_invalid_transitions(self, path):
        lifecycle = PairLifecycle()
        *valid, invalid = path
        for state in valid:
            lifecycle.transition("s1", "binance", state)
        with pytest.raises(InvalidTransitionError):
            lifecycle.transition("s1", "binance", invalid)

    def test_pairs_are_independent(self):
        lifecycle = PairLifecycle()
        lifecycle.transition("s1", "binance", PairState.INITIALIZED)
        lifecycle.transition("s1", "kraken", PairState.FAILED)
        lifecycle.transition("s2", "binance", PairState.INITIALIZED)

        counts = lifecycle.counts()
        assert counts["initialized"] == 2
        assert counts["failed"] == 1
        assert counts["deinitialized"] == 0
        assert len(list(lifecycle.items())) == 3


class TestStrategyProtocol:
    """NoopStrategy defaults and protocol checks."""

    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopStrategy(), Strategy)

    def test_partial_object_does_not(self):
        class OnlyPrices:
            async def on_price(self, keep, venue, event):
                pass

        assert not isinstance(OnlyPrices(), Strategy)

    @pytest.mark.asyncio
    async def test_noop_callbacks_return_none(self):
        strategy = NoopStrategy()
        venue = FakeVenue("binance")
        event = PriceEvent(venue="binance")

        assert await strategy.init(None, venue) is None
        for name in (
            "on_funding", "on_price", "on_kline", "on_order_book",
            "on_order", "on_modify", "on_balance_change", "on_unrecognized",
        ):
            assert await getattr(strategy, name)(None, venue, event) is None
        assert await strategy.deinit(None, venue) is None

    @pytest.mark.asyncio
    async def test_override_one_callback(self):
        seen = []

        class PriceOnly(NoopStrategy):
            async def on_price(self, keep, venue, event):
                seen.append(event.data)

        strategy = PriceOnly()
        venue = FakeVenue("binance")
        await strategy.on_price(None, venue, PriceEvent(data=101.5))
        await strategy.on_kline(None, venue, PriceEvent(data=0))

        assert isinstance(strategy, Strategy)
        assert seen == [101.5]
