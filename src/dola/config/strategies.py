"""
Strategy tree configuration loaded from YAML.

One YAML file per strategy, e.g. config/balances.yaml:

    name: balances
    strategy: balances        # registry key, defaults to name
    enabled: true
    group: accounts           # slash-separated group path, optional
    params:
      refresh_rate: 30

Files are read in sorted filename order, which is also the order strategies
are added to the tree (and therefore the dispatch order).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import yaml

from ..core.errors import ConfigurationError
from ..strategies.registry import StrategyRegistry

if TYPE_CHECKING:
    from ..core.keep import StrategyGroup

logger = logging.getLogger("dola.config.strategies")


@dataclass
class StrategyConfig:
    """
    Configuration for a single strategy loaded from YAML.

    Attributes:
        name: Name of the strategy inside its group
        strategy: Registry key of the strategy class
        enabled: Whether the strategy is added to the tree
        group: Slash-separated group path ("" for the root)
        params: Constructor keyword arguments
    """
    name: str
    strategy: str = ""
    enabled: bool = True
    group: str = ""
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, yaml_data: Dict[str, Any]) -> 'StrategyConfig':
        """
        Create a StrategyConfig from parsed YAML data.

        Raises:
            ConfigurationError: If the name is missing or params is not a mapping
        """
        name = yaml_data.get("name")
        if not name:
            raise ConfigurationError("strategy config is missing 'name'")

        params = yaml_data.get("params") or {}
        if not isinstance(params, dict):
            raise ConfigurationError(f"strategy '{name}': 'params' must be a mapping")

        return cls(
            name=str(name),
            strategy=str(yaml_data.get("strategy", name)),
            enabled=bool(yaml_data.get("enabled", True)),
            group=str(yaml_data.get("group", "") or ""),
            params=params,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.name,
            "strategy": self.strategy,
            "enabled": self.enabled,
            "group": self.group,
            "params": self.params,
        }


def load_strategy_configs(config_dir: Path) -> List[StrategyConfig]:
    """
    Load all strategy configurations from YAML files in `config_dir`.

    Raises:
        ConfigurationError: If the directory is missing or a file is invalid
    """
    config_dir = Path(config_dir)
    if not config_dir.is_dir():
        raise ConfigurationError(f"strategy config directory does not exist: {config_dir}")

    configs: List[StrategyConfig] = []
    for config_file in sorted(config_dir.glob("*.yaml")):
        try:
            with open(config_file, "r") as f:
                yaml_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"failed to parse YAML {config_file}: {e}") from e

        if not yaml_data:
            logger.warning(f"Empty config file: {config_file}")
            continue
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"{config_file}: expected a mapping at top level")

        config = StrategyConfig.from_yaml(yaml_data)
        configs.append(config)
        logger.info(f"Loaded config: {config.name} (strategy={config.strategy}, enabled={config.enabled})")

    logger.info(f"Loaded {len(configs)} strategy configs from {config_dir}")
    return configs


def build_strategy_tree(
    configs: List[StrategyConfig],
    root: 'StrategyGroup',
    defaults: Optional[Dict[str, Dict[str, Any]]] = None,
) -> int:
    """
    Instantiate enabled strategies and add them under `root`.

    Args:
        configs: Configs in the order strategies should be added
        root: Group to build under
        defaults: Per registry key constructor params, overridden by each
            config's own params

    Returns:
        Number of strategies added

    Raises:
        UnknownStrategyError: If a config names an unregistered strategy
        DuplicateStrategyError: If two configs share a name in one group
    """
    added = 0
    for config in configs:
        if not config.enabled:
            logger.info(f"Strategy '{config.name}' disabled, skipping")
            continue

        params = dict((defaults or {}).get(config.strategy, {}))
        params.update(config.params)
        strategy = StrategyRegistry.create(config.strategy, **params)

        group = root
        for part in (p for p in config.group.split("/") if p):
            group = group.group(part)

        group.add(config.name, strategy)
        added += 1

    return added
