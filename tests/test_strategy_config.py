"""
Tests for configuration: environment settings, YAML strategy configs and
the strategy registry.
"""

import logging

import pytest

from dola.config.environment import KeepConfig, load_config, setup_logging
from dola.config.strategies import StrategyConfig, build_strategy_tree, load_strategy_configs
from dola.core.errors import ConfigurationError, UnknownStrategyError
from dola.core.keep import StrategyGroup
from dola.strategies.balances import BalancesStrategy
from dola.strategies.protocol import NoopStrategy
from dola.strategies.registry import StrategyRegistry

ENV_VARS = (
    "DOLA_LOG_LEVEL",
    "DOLA_LOG_FORMAT",
    "DOLA_STRATEGY_CONFIG_DIR",
    "DOLA_BALANCES_REFRESH_SECONDS",
    "DOLA_DEINIT_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so teardown also removes values a .env file loaded
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def scratch_key():
    """Registry key removed after the test."""
    key = "test_scratch_strategy"
    yield key
    StrategyRegistry.unregister(key)


class TestKeepConfig:
    """Environment-driven settings."""

    def test_defaults(self, clean_env):
        config = KeepConfig.from_env()
        assert config.log_level == "INFO"
        assert config.strategy_config_dir is None
        assert config.balances_refresh_seconds == 60.0
        assert config.deinit_timeout == 10.0

    def test_reads_environment(self, clean_env, tmp_path):
        clean_env.setenv("DOLA_LOG_LEVEL", "debug")
        clean_env.setenv("DOLA_STRATEGY_CONFIG_DIR", str(tmp_path))
        clean_env.setenv("DOLA_BALANCES_REFRESH_SECONDS", "2.5")
        clean_env.setenv("DOLA_DEINIT_TIMEOUT", "3")

        config = KeepConfig.from_env()
        assert config.log_level == "DEBUG"
        assert config.strategy_config_dir == tmp_path
        assert config.balances_refresh_seconds == 2.5
        assert config.deinit_timeout == 3.0

    @pytest.mark.parametrize("value", ["abc", "0", "-5", "nan", "inf", "-inf"])
    def test_rejects_bad_refresh(self, clean_env, value):
        clean_env.setenv("DOLA_BALANCES_REFRESH_SECONDS", value)
        with pytest.raises(ConfigurationError, match="DOLA_BALANCES_REFRESH_SECONDS"):
            KeepConfig.from_env()

    def test_rejects_unknown_log_level(self, clean_env):
        clean_env.setenv("DOLA_LOG_LEVEL", "chatty")
        with pytest.raises(ConfigurationError):
            KeepConfig.from_env()

    def test_load_config_reads_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DOLA_DEINIT_TIMEOUT=4\nDOLA_LOG_LEVEL=WARNING\n")

        config = load_config(str(env_file))
        assert config.deinit_timeout == 4.0
        assert config.log_level == "WARNING"

    def test_setup_logging_returns_package_logger(self):
        logger = setup_logging(KeepConfig(log_level="DEBUG"))
        assert isinstance(logger, logging.Logger)
        assert logger.name == "dola"


class TestStrategyConfigParsing:
    """StrategyConfig.from_yaml."""

    def test_defaults(self):
        config = StrategyConfig.from_yaml({"name": "balances"})
        assert config.strategy == "balances"
        assert config.enabled is True
        assert config.group == ""
        assert config.params == {}

    def test_full_entry(self):
        config = StrategyConfig.from_yaml({
            "name": "spot_balances",
            "strategy": "balances",
            "enabled": False,
            "group": "spot/accounts",
            "params": {"refresh_rate": 30},
        })
        assert config.to_dict() == {
            "name": "spot_balances",
            "strategy": "balances",
            "enabled": False,
            "group": "spot/accounts",
            "params": {"refresh_rate": 30},
        }

    def test_missing_name(self):
        with pytest.raises(ConfigurationError):
            StrategyConfig.from_yaml({"strategy": "balances"})

    def test_params_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            StrategyConfig.from_yaml({"name": "balances", "params": [1, 2]})


class TestLoadStrategyConfigs:
    """Reading a directory of YAML files."""

    def test_reads_files_in_sorted_order(self, tmp_path):
        (tmp_path / "20_second.yaml").write_text("name: second\nstrategy: noop\n")
        (tmp_path / "10_first.yaml").write_text("name: first\nstrategy: noop\n")
        (tmp_path / "notes.txt").write_text("name: ignored\n")

        configs = load_strategy_configs(tmp_path)
        assert [c.name for c in configs] == ["first", "second"]

    def test_skips_empty_files(self, tmp_path):
        (tmp_path / "empty.yaml").write_text("")
        (tmp_path / "real.yaml").write_text("name: real\n")

        assert [c.name for c in load_strategy_configs(tmp_path)] == ["real"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_strategy_configs(tmp_path / "nope")

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("name: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_strategy_configs(tmp_path)

    def test_top_level_must_be_mapping(self, tmp_path):
        (tmp_path / "list.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_strategy_configs(tmp_path)


class TestBuildStrategyTree:
    """Instantiating configured strategies into a group tree."""

    def test_builds_groups_and_skips_disabled(self):
        root = StrategyGroup()
        configs = [
            StrategyConfig(name="balances", strategy="balances", params={"refresh_rate": 5}),
            StrategyConfig(name="off", strategy="noop", enabled=False),
            StrategyConfig(name="watch", strategy="noop", group="spot/eu"),
        ]

        added = build_strategy_tree(configs, root)

        assert added == 2
        assert [path for path, _ in root.leaves()] == ["balances", "spot/eu/watch"]
        assert isinstance(root.get("balances"), BalancesStrategy)
        assert root.get("balances").refresh_rate == 5.0
        assert isinstance(root.get("spot/eu/watch"), NoopStrategy)

    def test_defaults_are_overridden_by_params(self):
        root = StrategyGroup()
        configs = [
            StrategyConfig(name="fast", strategy="balances", params={"refresh_rate": 1}),
            StrategyConfig(name="default", strategy="balances"),
        ]

        build_strategy_tree(configs, root, defaults={"balances": {"refresh_rate": 45}})

        assert root.get("fast").refresh_rate == 1.0
        assert root.get("default").refresh_rate == 45.0

    def test_unknown_strategy(self):
        with pytest.raises(UnknownStrategyError):
            build_strategy_tree([StrategyConfig(name="x", strategy="does_not_exist")], StrategyGroup())

    def test_bad_params(self):
        with pytest.raises(ConfigurationError):
            build_strategy_tree(
                [StrategyConfig(name="b", strategy="balances", params={"speed": 3})],
                StrategyGroup(),
            )


class TestStrategyRegistry:
    """Decorator registration and creation."""

    def test_builtin_keys(self):
        assert StrategyRegistry.is_registered("noop")
        assert StrategyRegistry.is_registered("balances")
        assert StrategyRegistry.get("noop") is NoopStrategy

    def test_register_and_create(self, scratch_key):
        @StrategyRegistry.register(scratch_key)
        class Threshold(NoopStrategy):
            def __init__(self, threshold: float = 0.5):
                self.threshold = threshold

        strategy = StrategyRegistry.create(scratch_key, threshold=0.8)
        assert isinstance(strategy, Threshold)
        assert strategy.threshold == 0.8
        assert scratch_key in StrategyRegistry.list_all()

    def test_register_rejects_incomplete_class(self, scratch_key):
        with pytest.raises(ConfigurationError, match="deinit"):
            @StrategyRegistry.register(scratch_key)
            class Incomplete:
                async def init(self, keep, venue):
                    pass
                async def on_funding(self, keep, venue, event): pass
                async def on_price(self, keep, venue, event): pass
                async def on_kline(self, keep, venue, event): pass
                async def on_order_book(self, keep, venue, event): pass
                async def on_order(self, keep, venue, event): pass
                async def on_modify(self, keep, venue, event): pass
                async def on_balance_change(self, keep, venue, event): pass
                async def on_unrecognized(self, keep, venue, event): pass

        assert not StrategyRegistry.is_registered(scratch_key)

    def test_create_unknown(self):
        with pytest.raises(UnknownStrategyError, match="nope"):
            StrategyRegistry.create("nope")

    def test_unregister(self, scratch_key):
        StrategyRegistry.register(scratch_key)(NoopStrategy)
        StrategyRegistry.unregister(scratch_key)
        assert StrategyRegistry.get(scratch_key) is None
