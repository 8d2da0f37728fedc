"""
dola Environment Configuration.

Loads Keep settings from environment variables (and a .env file, if present)
with sensible defaults.
"""

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..core.errors import ConfigurationError

logger = logging.getLogger("dola.config.environment")

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class KeepConfig:
    """
    Keep configuration loaded from environment variables.

    Attributes:
        log_level: Root logging level name
        log_format: logging format string
        strategy_config_dir: Directory of per-strategy YAML files (optional)
        balances_refresh_seconds: Default refresh rate for BalancesStrategy
        deinit_timeout: Seconds to wait for one deinit() before giving up on it
    """
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    strategy_config_dir: Optional[Path] = None
    balances_refresh_seconds: float = 60.0
    deinit_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "KeepConfig":
        """
        Load configuration from environment variables.

        Returns:
            KeepConfig instance

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed or is
                not positive
        """
        log_level = os.environ.get("DOLA_LOG_LEVEL", "INFO").upper()
        log_format = os.environ.get("DOLA_LOG_FORMAT", DEFAULT_LOG_FORMAT)

        config_dir_str = os.environ.get("DOLA_STRATEGY_CONFIG_DIR", "").strip()
        strategy_config_dir = Path(config_dir_str).expanduser() if config_dir_str else None

        balances_refresh_seconds = _positive_float("DOLA_BALANCES_REFRESH_SECONDS", "60")
        deinit_timeout = _positive_float("DOLA_DEINIT_TIMEOUT", "10")

        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"DOLA_LOG_LEVEL: unknown level '{log_level}'")

        config = cls(
            log_level=log_level,
            log_format=log_format,
            strategy_config_dir=strategy_config_dir,
            balances_refresh_seconds=balances_refresh_seconds,
            deinit_timeout=deinit_timeout,
        )

        logger.info("Loaded dola configuration:")
        logger.info(f"  - Log level: {log_level}")
        logger.info(f"  - Strategy config dir: {strategy_config_dir or 'none'}")
        logger.info(f"  - Balances refresh: {balances_refresh_seconds}s")
        logger.info(f"  - Deinit timeout: {deinit_timeout}s")
        return config


def _positive_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name}: expected a number, got '{raw}'")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name}: must be positive, got {value}")
    return value


def load_config(env_file: Optional[str] = None) -> KeepConfig:
    """Load .env (if any) and build a KeepConfig from the environment."""
    load_dotenv(env_file)
    return KeepConfig.from_env()


def setup_logging(config: KeepConfig) -> logging.Logger:
    """Set up logging for the dola package."""
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=config.log_format,
    )
    return logging.getLogger("dola")
