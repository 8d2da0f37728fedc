"""
Strategy Registry for the dola plugin system.

Maps registry keys to strategy classes so that strategy trees can be built
from configuration files. Strategies register themselves with a decorator:

    from dola.strategies.registry import StrategyRegistry

    @StrategyRegistry.register("spread_watch")
    class SpreadWatch(NoopStrategy):
        def __init__(self, threshold: float = 0.5):
            ...

    # Later, from config:
    strategy = StrategyRegistry.create("spread_watch", threshold=0.8)

The registry holds classes only. Strategy instances, and any state they
keep, are owned by the strategy tree they are added to.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from ..core.errors import ConfigurationError, UnknownStrategyError

logger = logging.getLogger("dola.strategies.registry")

# Callbacks every registered class must provide
REQUIRED_METHODS = (
    "init",
    "on_funding",
    "on_price",
    "on_kline",
    "on_order_book",
    "on_order",
    "on_modify",
    "on_balance_change",
    "on_unrecognized",
    "deinit",
)


class StrategyRegistry:
    """
    Central registry of strategy classes.

    Class Attributes:
        _strategies: Dict mapping registry keys to strategy classes
    """

    _strategies: Dict[str, Type[Any]] = {}

    @classmethod
    def register(cls, key: str):
        """
        Decorator to register a strategy class under `key`.

        Raises:
            ConfigurationError: If the class lacks a contract method
        """
        def decorator(strategy_cls: Type[Any]) -> Type[Any]:
            for method_name in REQUIRED_METHODS:
                if not callable(getattr(strategy_cls, method_name, None)):
                    raise ConfigurationError(
                        f"Strategy class {strategy_cls.__name__} missing required method '{method_name}'"
                    )

            if key in cls._strategies:
                existing = cls._strategies[key]
                logger.warning(
                    f"Strategy '{key}' already registered by {existing.__name__}, "
                    f"overwriting with {strategy_cls.__name__}"
                )

            cls._strategies[key] = strategy_cls
            logger.debug(f"Registered strategy: {key} -> {strategy_cls.__name__}")
            return strategy_cls

        return decorator

    @classmethod
    def get(cls, key: str) -> Optional[Type[Any]]:
        """Get a strategy class by key, None if unknown."""
        return cls._strategies.get(key)

    @classmethod
    def create(cls, key: str, **params: Any) -> Any:
        """
        Instantiate the strategy registered under `key`.

        Args:
            key: Registry key
            **params: Constructor keyword arguments

        Returns:
            New strategy instance

        Raises:
            UnknownStrategyError: If nothing is registered under `key`
            ConfigurationError: If the constructor rejects the params
        """
        strategy_cls = cls._strategies.get(key)
        if strategy_cls is None:
            raise UnknownStrategyError(
                f"no strategy registered as '{key}' (known: {', '.join(cls.list_all()) or 'none'})"
            )
        try:
            return strategy_cls(**params)
        except TypeError as e:
            raise ConfigurationError(f"invalid params for strategy '{key}': {e}") from e

    @classmethod
    def list_all(cls) -> List[str]:
        """List registered keys in registration order."""
        return list(cls._strategies.keys())

    @classmethod
    def is_registered(cls, key: str) -> bool:
        return key in cls._strategies

    @classmethod
    def unregister(cls, key: str) -> None:
        """Remove a registration; primarily for tests."""
        cls._strategies.pop(key, None)
