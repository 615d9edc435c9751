"""Tests for the .depsolve.local configuration"""

import logging

import pytest

from depsolve.core.config import (
    LOCAL_CONFIG_FILE, SolverConfig, config_from_dict, find_config, load_config,
)
from depsolve.core.constraint import Constraint
from depsolve.core.errors import ConfigError
from depsolve.core.version import Stability


class TestConfigFromDict:

    def test_defaults(self):
        config = config_from_dict({})
        assert config == SolverConfig()
        assert config.minimum_stability is Stability.STABLE
        assert not config.prefer_stable

    def test_all_settings(self):
        config = config_from_dict({
            'minimum-stability': 'beta',
            'prefer-stable': 'yes',
            'prefer-lowest': 'on',
            'ignore-platform-reqs': '1',
            'stability-flag.Vendor/Foo': 'dev',
            'filter-requires.vendor/bar': '>=1.0,<2.0',
        })

        assert config.minimum_stability is Stability.BETA
        assert config.prefer_stable
        assert config.prefer_lowest
        assert config.ignore_platform_reqs
        assert config.stability_flags == {'vendor/foo': Stability.DEV}
        assert config.filter_requires['vendor/bar'].matches(Constraint('==', '1.5.0.0'))
        assert not config.filter_requires['vendor/bar'].matches(Constraint('==', '2.0.0.0'))

    @pytest.mark.parametrize("key,value", [
        ('prefer-stable', 'maybe'),
        ('minimum-stability', 'shiny'),
        ('stability-flag.foo', 'unknown'),
        ('filter-requires.foo', '~>1.0'),
    ])
    def test_invalid_value(self, key, value):
        with pytest.raises(ConfigError):
            config_from_dict({key: value})

    def test_unknown_key(self, caplog):
        with caplog.at_level(logging.WARNING, logger='depsolve.core.config'):
            config = config_from_dict({'colour': 'blue'})

        assert config == SolverConfig()
        assert "Ignoring unknown config key: colour" in caplog.text


class TestLoadConfig:

    def test_load(self, tmp_path):
        path = tmp_path / LOCAL_CONFIG_FILE
        path.write_text(
            "# local overrides\n"
            "\n"
            "minimum-stability = RC\n"
            "prefer-lowest=true\n"
            "not a setting\n"
        )

        config = load_config(path)

        assert config.minimum_stability is Stability.RC
        assert config.prefer_lowest
        assert not config.prefer_stable

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "missing")

    def test_exit_code(self, tmp_path):
        path = tmp_path / LOCAL_CONFIG_FILE
        path.write_text("prefer-stable=perhaps\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.exit_code == 1


class TestFindConfig:

    def test_found(self, tmp_path):
        (tmp_path / LOCAL_CONFIG_FILE).write_text("prefer-stable=true\n")
        assert find_config(tmp_path) == tmp_path / LOCAL_CONFIG_FILE

    def test_not_found(self, tmp_path):
        assert find_config(tmp_path) is None

    def test_current_directory(self, tmp_path, monkeypatch):
        (tmp_path / LOCAL_CONFIG_FILE).write_text("")
        monkeypatch.chdir(tmp_path)
        assert find_config() == tmp_path / LOCAL_CONFIG_FILE
