"""Shared pytest configuration and fixtures for gopick tests."""

import shutil
import textwrap
from pathlib import Path

import pytest

from gopick.config import DiscoveryConfig, UserConfig


def pytest_configure(config):
    config.addinivalue_line("markers", "requires_go: needs the go toolchain on PATH")


def pytest_collection_modifyitems(config, items):
    if shutil.which("go") is not None:
        return
    skip = pytest.mark.skip(reason="go toolchain not installed")
    for item in items:
        if "requires_go" in item.keywords:
            item.add_marker(skip)


TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def testdata() -> Path:
    return TESTDATA


@pytest.fixture
def config() -> DiscoveryConfig:
    return DiscoveryConfig()


@pytest.fixture
def strict_config() -> DiscoveryConfig:
    return DiscoveryConfig(strict=True)


@pytest.fixture
def go_module(tmp_path):
    """A temporary Go module; call the fixture value to add files to it.

    >>> go_module("pkg/foo_test.go", "package pkg ...")
    """
    (tmp_path / "go.mod").write_text("module example.com/demo\n\ngo 1.21\n")

    def write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip())
        return path

    write.root = tmp_path
    return write


@pytest.fixture
def user_config(tmp_path) -> UserConfig:
    return UserConfig(
        colorize_output=False,
        history_file=tmp_path / "history",
        benchmark_store=tmp_path / "benchmarks.json",
    )
