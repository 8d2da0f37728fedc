"""
Keep - composite root that drives strategies against venues.

The Keep owns a tree of named strategies and a set of venues. It is
responsible for:
- Calling init() on every (strategy, venue) pair
- Relaying every event from every venue's stream to every initialized leaf
  strategy, in registration order
- Calling deinit() on every initialized pair when cancelled

Design Principles:
    - **Composite tree**: StrategyGroup nodes hold named strategies and
      nested groups; dispatch flattens the tree in pre-order
    - **Pair isolation**: Each (strategy, venue) pair has its own lifecycle;
      a failed init or a raising callback never affects other pairs
    - **Ordered relay**: One relay task per venue, each event dispatched to
      all strategies before the next one is read

Usage:
    keep = KeepBuilder().venue(binance).strategy("balances", balances).build()
    stop = asyncio.Event()
    failures = await keep.run(stop)
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union, TYPE_CHECKING

from ..config.environment import KeepConfig
from ..venues.protocol import Venue, venue_key
from .errors import (
    ConfigurationError,
    DuplicateStrategyError,
    DuplicateVenueError,
    InvalidTransitionError,
)
from .events import EventType
from .lifecycle import PairLifecycle, PairState

if TYPE_CHECKING:
    from ..strategies.protocol import Strategy

logger = logging.getLogger("dola.core.keep")

# Event kind -> Strategy callback
CALLBACKS: Dict[EventType, str] = {
    EventType.FUNDING: "on_funding",
    EventType.PRICE: "on_price",
    EventType.KLINE: "on_kline",
    EventType.ORDERBOOK: "on_order_book",
    EventType.ORDER: "on_order",
    EventType.MODIFY: "on_modify",
    EventType.BALANCE_CHANGE: "on_balance_change",
    EventType.UNRECOGNIZED: "on_unrecognized",
}

# Methods a leaf must provide to be added to a group
_CONTRACT = ("init", "deinit") + tuple(CALLBACKS.values())


def callback_for(event: Any) -> str:
    """Name of the Strategy callback that handles `event`."""
    event_type = getattr(event, "event_type", None)
    if isinstance(event_type, EventType):
        return CALLBACKS[event_type]
    return "on_unrecognized"


@dataclass
class InitFailure:
    """A (strategy, venue) pair whose init() raised."""
    strategy: str
    venue: str
    error: Exception

    def to_dict(self) -> Dict[str, Any]:
        return {"strategy": self.strategy, "venue": self.venue, "error": str(self.error)}


class StrategyGroup:
    """
    Named container of strategies and nested groups.

    Names are unique within one group; children keep insertion order.
    """

    def __init__(self, name: str = "root"):
        self.name = name
        self._children: Dict[str, Union['Strategy', 'StrategyGroup']] = {}

    def add(self, name: str, strategy: Union['Strategy', 'StrategyGroup']) -> None:
        """
        Add a strategy (or a nested group) under `name`.

        Raises:
            DuplicateStrategyError: If `name` is already used in this group
            ConfigurationError: If `name` is empty or contains '/', or the
                object does not implement the strategy contract
        """
        if not name or "/" in name:
            raise ConfigurationError(f"invalid strategy name {name!r}")
        if name in self._children:
            raise DuplicateStrategyError(self.name, name)
        if not isinstance(strategy, StrategyGroup):
            missing = [m for m in _CONTRACT if not callable(getattr(strategy, m, None))]
            if missing:
                raise ConfigurationError(
                    f"{type(strategy).__name__} does not implement {', '.join(missing)}"
                )

        self._children[name] = strategy
        logger.debug(f"Added '{name}' to group '{self.name}'")

    def group(self, name: str) -> 'StrategyGroup':
        """Get the nested group `name`, creating it if absent."""
        child = self._children.get(name)
        if child is None:
            child = StrategyGroup(name)
            self.add(name, child)
        elif not isinstance(child, StrategyGroup):
            raise DuplicateStrategyError(self.name, name)
        return child

    def get(self, path: str) -> Optional[Union['Strategy', 'StrategyGroup']]:
        """Look up a child by slash-separated path, None if absent."""
        node: Any = self
        for part in path.split("/"):
            if not isinstance(node, StrategyGroup):
                return None
            node = node._children.get(part)
            if node is None:
                return None
        return node

    def leaves(self, prefix: str = "") -> Iterator[Tuple[str, 'Strategy']]:
        """Yield (path, strategy) for every leaf, pre-order, insertion order."""
        for name, child in self._children.items():
            path = f"{prefix}{name}"
            if isinstance(child, StrategyGroup):
                yield from child.leaves(prefix=f"{path}/")
            else:
                yield path, child

    def __contains__(self, name: str) -> bool:
        return name in self._children

    def __len__(self) -> int:
        return len(self._children)


class Keep:
    """
    Drives lifecycle and event relay for a strategy tree over venues.

    A Keep runs once: start() -> relay -> stop(). Strategies added to the
    tree after start() are not attached.

    Attributes:
        root: Root StrategyGroup
        config: KeepConfig in effect
    """

    def __init__(self, venues: List[Venue], config: Optional[KeepConfig] = None):
        """
        Initialize the Keep.

        Args:
            venues: Venues to attach every strategy to
            config: Keep settings (defaults if omitted)

        Raises:
            ConfigurationError: If a venue does not implement the Venue protocol
            DuplicateVenueError: If two venues share a name (case-insensitive)
        """
        self.root = StrategyGroup("root")
        self.config = config or KeepConfig()

        self._venues: Dict[str, Venue] = {}
        for venue in venues:
            if not isinstance(venue, Venue):
                raise ConfigurationError(f"{type(venue).__name__} does not implement the Venue protocol")
            key = venue_key(venue.name)
            if key in self._venues:
                raise DuplicateVenueError(f"venue '{venue.name}' configured twice")
            self._venues[key] = venue

        self._lifecycle = PairLifecycle()
        self._leaves: List[Tuple[str, 'Strategy']] = []
        self._relay_tasks: Dict[str, asyncio.Task] = {}
        self._init_failures: List[InitFailure] = []
        self._started = False
        self._stopped = False
        self._started_at: Optional[float] = None

        # Health metrics
        self._events_relayed: Dict[str, int] = {key: 0 for key in self._venues}
        self._callback_errors = 0
        self._deinit_errors = 0
        self._last_error: Optional[str] = None

        logger.info(f"Keep initialized with venues: {', '.join(v.name for v in self._venues.values()) or 'none'}")

    @property
    def venues(self) -> List[Venue]:
        return list(self._venues.values())

    def venue(self, name: str) -> Optional[Venue]:
        """Look up a venue by name, case-insensitive."""
        return self._venues.get(venue_key(name))

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    def pair_state(self, strategy_path: str, venue_name: str) -> PairState:
        return self._lifecycle.state(strategy_path, venue_key(venue_name))

    async def run(self, stop: Optional[asyncio.Event] = None) -> List[InitFailure]:
        """
        Start, relay events until `stop` is set, then stop.

        Without `stop`, runs until the calling task is cancelled; teardown
        still happens and the cancellation is re-raised.

        Returns:
            Init failures collected during start()
        """
        if self._started:
            raise InvalidTransitionError("a Keep can only be run once")

        try:
            failures = await self.start()
            if stop is None:
                await asyncio.get_running_loop().create_future()
            else:
                await stop.wait()
        finally:
            await self.stop()

        return failures

    async def start(self) -> List[InitFailure]:
        """
        Initialize every (strategy, venue) pair and start relaying events.

        Venues are initialized concurrently; within a venue, strategies are
        initialized in registration order.

        Returns:
            Pairs whose init() raised; they receive no events
        """
        if self._started:
            raise InvalidTransitionError("a Keep can only be started once")

        self._started = True
        self._started_at = time.time()
        self._leaves = list(self.root.leaves())
        if not self._leaves:
            logger.warning("Keep started with an empty strategy tree")

        results = await asyncio.gather(*(self._init_venue(venue) for venue in self.venues))
        failures = [failure for venue_failures in results for failure in venue_failures]
        self._init_failures.extend(failures)

        for key, venue in self._venues.items():
            self._relay_tasks[key] = asyncio.create_task(self._relay(venue), name=f"dola-relay-{key}")

        logger.info(
            f"Keep started: {len(self._leaves)} strategies x {len(self._venues)} venues, "
            f"{len(failures)} init failure(s)"
        )
        return failures

    async def stop(self) -> None:
        """
        Stop relaying and deinit every initialized pair.

        Strategies are deinitialized in reverse registration order, each
        across venues in configuration order. Errors are logged, not raised.
        """
        if not self._started or self._stopped:
            return
        self._stopped = True

        tasks = list(self._relay_tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._relay_tasks.clear()

        for path, strategy in reversed(self._leaves):
            for key, venue in self._venues.items():
                if not self._lifecycle.is_initialized(path, key):
                    continue
                try:
                    await asyncio.wait_for(strategy.deinit(self, venue), timeout=self.config.deinit_timeout)
                except asyncio.TimeoutError:
                    self._deinit_errors += 1
                    logger.error(f"Deinit of '{path}' for venue {venue.name} timed out after {self.config.deinit_timeout}s")
                except Exception as e:
                    self._deinit_errors += 1
                    self._last_error = f"{path}@{venue.name}: {e}"
                    logger.error(f"Deinit of '{path}' for venue {venue.name} failed: {e}", exc_info=True)
                finally:
                    self._lifecycle.transition(path, key, PairState.DEINITIALIZED)

        uptime = time.time() - self._started_at if self._started_at else 0
        logger.info(f"Keep stopped (uptime: {uptime:.1f}s, events relayed: {sum(self._events_relayed.values())})")

    async def dispatch(self, venue: Venue, event: Any) -> int:
        """
        Deliver one event from `venue` to every initialized strategy.

        Strategies are visited in registration order and each callback is
        awaited before the next. A raising callback is logged and skipped.

        Returns:
            Number of strategies the event was delivered to
        """
        key = venue_key(venue.name)
        method_name = callback_for(event)
        delivered = 0

        for path, strategy in self._leaves:
            if not self._lifecycle.is_initialized(path, key):
                continue
            try:
                await getattr(strategy, method_name)(self, venue, event)
            except Exception as e:
                self._callback_errors += 1
                self._last_error = f"{path}@{venue.name}: {e}"
                logger.error(f"Strategy '{path}' {method_name} failed for venue {venue.name}: {e}", exc_info=True)
            delivered += 1

        self._events_relayed[key] = self._events_relayed.get(key, 0) + 1
        return delivered

    async def _init_venue(self, venue: Venue) -> List[InitFailure]:
        """Init every strategy for one venue, in registration order."""
        key = venue_key(venue.name)
        failures: List[InitFailure] = []

        for path, strategy in self._leaves:
            try:
                await strategy.init(self, venue)
            except Exception as e:
                self._lifecycle.transition(path, key, PairState.FAILED, error=str(e))
                failures.append(InitFailure(strategy=path, venue=venue.name, error=e))
                logger.error(f"Init of '{path}' failed for venue {venue.name}: {e}", exc_info=True)
                continue
            self._lifecycle.transition(path, key, PairState.INITIALIZED)
            logger.debug(f"Initialized '{path}' for venue {venue.name}")

        return failures

    async def _relay(self, venue: Venue) -> None:
        """Relay events from one venue's stream until it ends or is cancelled."""
        logger.info(f"Relaying events from {venue.name}")
        try:
            async for event in venue.stream():
                await self.dispatch(venue, event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._last_error = f"stream@{venue.name}: {e}"
            logger.error(f"Event stream for venue {venue.name} failed: {e}", exc_info=True)
        else:
            logger.info(f"Event stream for venue {venue.name} ended")

    def get_stats(self) -> Dict[str, Any]:
        """Get Keep statistics for monitoring."""
        uptime = time.time() - self._started_at if self._started_at else 0
        return {
            "running": self.is_running,
            "uptime_seconds": uptime,
            "strategies": [path for path, _ in self._leaves] or [path for path, _ in self.root.leaves()],
            "venues": [v.name for v in self._venues.values()],
            "pairs": self._lifecycle.counts(),
            "pair_states": {f"{path}@{venue}": state.value for (path, venue), state in self._lifecycle.items()},
            "events_relayed": dict(self._events_relayed),
            "callback_errors": self._callback_errors,
            "deinit_errors": self._deinit_errors,
            "init_failures": [f.to_dict() for f in self._init_failures],
            "last_error": self._last_error,
        }


class KeepBuilder:
    """
    Fluent builder for a Keep.

    Usage:
        keep = (
            KeepBuilder()
            .config(load_config())
            .venue(binance)
            .venue(kraken)
            .strategy("balances", BalancesStrategy(30.0))
            .build()
        )
    """

    def __init__(self):
        self._venues: List[Venue] = []
        self._strategies: List[Tuple[str, Any]] = []
        self._config: Optional[KeepConfig] = None
        self._config_dir: Optional[Path] = None

    def config(self, config: KeepConfig) -> 'KeepBuilder':
        self._config = config
        return self

    def venue(self, venue: Venue) -> 'KeepBuilder':
        self._venues.append(venue)
        return self

    def strategy(self, name: str, strategy: Any) -> 'KeepBuilder':
        """Add a strategy to the root group at build time."""
        self._strategies.append((name, strategy))
        return self

    def strategies_from_config(self, config_dir: Union[str, Path]) -> 'KeepBuilder':
        """Add the strategies described by YAML files in `config_dir`."""
        self._config_dir = Path(config_dir)
        return self

    def build(self) -> Keep:
        """
        Build the Keep.

        Strategies added with strategy() come first, then those from the
        YAML config directory (explicit or from KeepConfig).

        Raises:
            ConfigurationError: No venue configured, invalid venue or strategy,
                or an invalid YAML configuration
        """
        if not self._venues:
            raise ConfigurationError("at least one venue is required")

        config = self._config or KeepConfig()
        keep = Keep(self._venues, config)

        for name, strategy in self._strategies:
            keep.root.add(name, strategy)

        config_dir = self._config_dir or config.strategy_config_dir
        if config_dir is not None:
            from ..config.strategies import build_strategy_tree, load_strategy_configs

            configs = load_strategy_configs(config_dir)
            defaults = {"balances": {"refresh_rate": config.balances_refresh_seconds}}
            added = build_strategy_tree(configs, keep.root, defaults=defaults)
            logger.info(f"Added {added} strategies from {config_dir}")

        return keep
