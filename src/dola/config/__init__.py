"""
Configuration for dola.

- environment: KeepConfig loaded from environment variables, logging setup
- strategies: YAML strategy tree configs (import dola.config.strategies)
"""

from .environment import KeepConfig, load_config, setup_logging

__all__ = [
    "KeepConfig",
    "load_config",
    "setup_logging",
]
