"""
Configuration for gopick.

Two kinds of configuration live here:

- ``DiscoveryConfig`` is passed explicitly into the classifier, resolver, table
  lookup and engine. There is no module-level flag the engine reads, so a
  discovery call depends only on its arguments.
- ``UserConfig`` holds persistent user settings loaded from a ``key=value``
  file in the user's config directory (``~/.config/go-test/config`` on Linux).
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, FrozenSet, Optional

import click
from dotenv import dotenv_values

logger = logging.getLogger(__name__)

APP_NAME = "go-test"
CONFIG_FILE_NAME = "config"


@dataclass(frozen=True)
class DiscoveryConfig:
    """Settings that control test discovery.

    Attributes:
        test_prefix: Name prefix of test entries
        benchmark_prefix: Name prefix of benchmark entries
        reserved_names: Entries with the test prefix that are not tests
        subtest_method: Method name that launches a subtest (``t.Run``)
        strict: Raise on unexpected node shapes instead of skipping them
        verbose: Log every skipped subtest candidate at DEBUG level
        tolerate_syntax_errors: Discover what parsed instead of failing the file
        max_reference_depth: Bound on identifier-to-identifier reference chains
        test_file_suffix: Suffix of files the directory walker considers
        skip_dirs: Directory names the walker never enters
    """

    test_prefix: str = "Test"
    benchmark_prefix: str = "Benchmark"
    reserved_names: FrozenSet[str] = frozenset({"TestMain"})
    subtest_method: str = "Run"
    strict: bool = False
    verbose: bool = False
    tolerate_syntax_errors: bool = False
    max_reference_depth: int = 8
    test_file_suffix: str = "_test.go"
    skip_dirs: FrozenSet[str] = frozenset({"vendor", "testdata", "node_modules"})


def default_config_dir() -> Path:
    return Path(click.get_app_dir(APP_NAME))


def _parse_bool(value: str) -> bool:
    """Parse a boolean the way Go's strconv.ParseBool does."""
    if value in ("1", "t", "T", "true", "TRUE", "True"):
        return True
    if value in ("0", "f", "F", "false", "FALSE", "False"):
        return False
    raise ValueError(f"invalid bool value '{value}'")


@dataclass
class UserConfig:
    """Persistent user settings.

    The file format is one ``Key=value`` per line, ``#`` starts a comment.
    Keys match field names case-insensitively with underscores removed, so
    ``ColorizeOutput=false`` sets ``colorize_output``.

    Attributes:
        colorize_output: Color PASS lines green and FAIL lines red
        history_file: Where run history is appended
        benchmark_store: Where benchmark results are stored
    """

    colorize_output: bool = True
    history_file: Path = field(default_factory=lambda: Path.home() / ".go-test-history")
    benchmark_store: Path = field(default_factory=lambda: default_config_dir() / "benchmarks.json")

    @classmethod
    def _field_index(cls) -> Dict[str, str]:
        return {f.name.replace("_", "").lower(): f.name for f in fields(cls)}

    def apply(self, values: Dict[str, Optional[str]]) -> "UserConfig":
        """Apply raw ``key -> value`` pairs, skipping anything invalid."""
        index = self._field_index()
        for key, raw in values.items():
            name = index.get(key.replace("_", "").lower())
            if name is None:
                logger.warning("Unknown setting %s", key)
                continue
            if raw is None:
                logger.warning("Setting %s has no value", key)
                continue
            raw = raw.strip()
            if name == "colorize_output":
                try:
                    setattr(self, name, _parse_bool(raw))
                except ValueError:
                    logger.warning("Invalid bool value '%s' for %s", raw, key)
            else:
                setattr(self, name, Path(os.path.expanduser(raw)))
        return self

    @classmethod
    def from_string(cls, text: str) -> "UserConfig":
        """Build a config from file contents held in memory."""
        values = dotenv_values(stream=io.StringIO(text), interpolate=False)
        return cls().apply(values)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "UserConfig":
        """Load the config file, creating an empty one when missing.

        Args:
            path: Config file to read. Defaults to the user config directory.

        Returns:
            UserConfig with defaults for every setting the file leaves out
        """
        path = Path(path) if path is not None else default_config_dir() / CONFIG_FILE_NAME
        logger.debug("Loading config from %s", path)
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
            return cls()
        return cls.from_string(path.read_text(encoding="utf-8"))
