"""
Lifecycle tracking for (strategy, venue) pairs.

Every pair moves through a small state machine:

    UNINITIALIZED -> INITIALIZED -> DEINITIALIZED
    UNINITIALIZED -> FAILED                       (init raised)

DEINITIALIZED and FAILED are terminal. Events are only delivered to pairs in
INITIALIZED.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Set, Tuple

from .errors import InvalidTransitionError

logger = logging.getLogger("dola.core.lifecycle")


class PairState(Enum):
    """Lifecycle state of one (strategy, venue) pair."""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    FAILED = "failed"
    DEINITIALIZED = "deinitialized"


# Allowed flow between states
VALID_TRANSITIONS: Dict[PairState, Set[PairState]] = {
    PairState.UNINITIALIZED: {PairState.INITIALIZED, PairState.FAILED},
    PairState.INITIALIZED: {PairState.DEINITIALIZED},
    PairState.FAILED: set(),
    PairState.DEINITIALIZED: set(),
}


@dataclass
class PairTransition:
    """Record of the latest transition of a pair."""
    from_state: PairState
    to_state: PairState
    timestamp: float
    error: Optional[str] = None


PairKey = Tuple[str, str]


class PairLifecycle:
    """
    State table for every (strategy path, venue key) pair a Keep drives.

    Pairs not yet seen are UNINITIALIZED. Mutations happen on the event loop
    thread only.
    """

    def __init__(self):
        self._states: Dict[PairKey, PairState] = {}
        self._last_transition: Dict[PairKey, PairTransition] = {}

    def state(self, strategy: str, venue: str) -> PairState:
        return self._states.get((strategy, venue), PairState.UNINITIALIZED)

    def is_initialized(self, strategy: str, venue: str) -> bool:
        return self.state(strategy, venue) is PairState.INITIALIZED

    def transition(self, strategy: str, venue: str, to_state: PairState, error: Optional[str] = None) -> None:
        """
        Move a pair to `to_state`.

        Raises:
            InvalidTransitionError: If the move is not allowed from the
                pair's current state
        """
        key = (strategy, venue)
        from_state = self._states.get(key, PairState.UNINITIALIZED)
        if to_state not in VALID_TRANSITIONS[from_state]:
            raise InvalidTransitionError(
                f"{strategy}@{venue}: cannot go from {from_state.value} to {to_state.value}"
            )

        self._states[key] = to_state
        self._last_transition[key] = PairTransition(
            from_state=from_state,
            to_state=to_state,
            timestamp=time.time(),
            error=error,
        )
        logger.debug(f"{strategy}@{venue}: {from_state.value} -> {to_state.value}")

    def last_transition(self, strategy: str, venue: str) -> Optional[PairTransition]:
        return self._last_transition.get((strategy, venue))

    def items(self) -> Iterator[Tuple[PairKey, PairState]]:
        return iter(list(self._states.items()))

    def counts(self) -> Dict[str, int]:
        """Number of pairs in each state."""
        counts = {state.value: 0 for state in PairState}
        for state in self._states.values():
            counts[state.value] += 1
        return counts
