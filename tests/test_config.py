"""
Unit tests for configuration.

These tests verify:
1. DiscoveryConfig defaults and copies
2. UserConfig parses key=value files, matching keys case-insensitively
3. Unknown keys and invalid values are skipped with a warning
4. A missing config file is created empty
"""

import dataclasses
import logging
from pathlib import Path

import pytest

from gopick.config import DiscoveryConfig, UserConfig


class TestDiscoveryConfig:
    """Tests for the explicit discovery configuration."""

    def test_defaults(self):
        config = DiscoveryConfig()
        assert config.test_prefix == "Test"
        assert config.benchmark_prefix == "Benchmark"
        assert "TestMain" in config.reserved_names
        assert config.subtest_method == "Run"
        assert not config.strict

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DiscoveryConfig().strict = True


class TestUserConfig:
    """Tests for the persistent user settings file."""

    def test_defaults(self):
        config = UserConfig()
        assert config.colorize_output
        assert config.history_file == Path.home() / ".go-test-history"

    @pytest.mark.parametrize("text,expected", [
        ("ColorizeOutput=false", False),
        ("colorize_output=0", False),
        ("COLORIZEOUTPUT=T", True),
        ("# comment\nColorizeOutput=true\n", True),
    ])
    def test_colorize_output(self, text, expected):
        assert UserConfig.from_string(text).colorize_output is expected

    def test_paths_are_expanded(self):
        config = UserConfig.from_string("HistoryFile=~/runs.jsonl\nBenchmarkStore=/tmp/bench.json")
        assert config.history_file == Path.home() / "runs.jsonl"
        assert config.benchmark_store == Path("/tmp/bench.json")

    def test_unknown_key_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gopick"):
            config = UserConfig.from_string("Theme=dark\nColorizeOutput=false")
        assert not config.colorize_output
        assert "Unknown setting Theme" in caplog.text

    def test_invalid_bool_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="gopick"):
            config = UserConfig.from_string("ColorizeOutput=sometimes")
        assert config.colorize_output
        assert "Invalid bool value" in caplog.text

    def test_load_creates_missing_file(self, tmp_path):
        path = tmp_path / "go-test" / "config"
        config = UserConfig.load(path)
        assert path.exists()
        assert config.colorize_output

    def test_load_reads_file(self, tmp_path):
        path = tmp_path / "config"
        path.write_text("ColorizeOutput=false\n")
        assert not UserConfig.load(path).colorize_output
