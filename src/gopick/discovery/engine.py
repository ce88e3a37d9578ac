"""
End-to-end discovery.

Each function runs the discovery pipeline at a different granularity: an
already-built tree, one file (parse, then discover), or a directory of test
files. Files share no state, so a directory can be processed in parallel and
a failure in one file never affects another.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from gopick.config import DiscoveryConfig
from gopick.discovery.classifier import discover_entries
from gopick.discovery.results import DiscoveryMode, DiscoveryResult, TestCase
from gopick.exceptions import GopickError
from gopick.syntax import SourceTree

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def discover_tree(
    tree: SourceTree,
    mode: DiscoveryMode = DiscoveryMode.TESTS,
    config: Optional[DiscoveryConfig] = None,
) -> DiscoveryResult:
    """Discover the tests defined by an already-parsed file.

    Raises:
        UnexpectedNodeShapeError: Only in strict mode
    """
    config = config or DiscoveryConfig()
    tests, issues = discover_entries(tree.declarations, tree.path, mode, config)
    return DiscoveryResult(path=tree.path, tests=tests, issues=issues)


def discover_source(
    source: Union[str, bytes],
    path: PathLike = "<source>",
    mode: DiscoveryMode = DiscoveryMode.TESTS,
    config: Optional[DiscoveryConfig] = None,
) -> DiscoveryResult:
    """Parse Go source held in memory and discover its tests.

    Raises:
        ParseFailure: If the source does not parse
    """
    from gopick.frontend import parse_source

    config = config or DiscoveryConfig()
    tree = parse_source(source, str(path), tolerate_errors=config.tolerate_syntax_errors)
    return discover_tree(tree, mode, config)


def discover_file(
    path: PathLike,
    mode: DiscoveryMode = DiscoveryMode.TESTS,
    config: Optional[DiscoveryConfig] = None,
) -> DiscoveryResult:
    """Parse one Go file and discover its tests.

    Raises:
        ParseFailure: If the file cannot be read or parsed
        UnexpectedNodeShapeError: Only in strict mode
    """
    from gopick.frontend import parse_file

    config = config or DiscoveryConfig()
    tree = parse_file(path, tolerate_errors=config.tolerate_syntax_errors)
    return discover_tree(tree, mode, config)


def iter_test_files(root: PathLike, config: Optional[DiscoveryConfig] = None) -> Iterator[Path]:
    """Yield test files under ``root`` in a stable, sorted order.

    Directories named in ``config.skip_dirs`` or starting with ``.`` or ``_``
    are not entered, matching what ``go test ./...`` ignores.
    """
    config = config or DiscoveryConfig()
    root = Path(root)
    if root.is_file():
        if root.name.endswith(config.test_file_suffix):
            yield root
        return

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in config.skip_dirs and not d.startswith((".", "_"))
        )
        for filename in sorted(filenames):
            if filename.endswith(config.test_file_suffix):
                yield Path(dirpath) / filename


def _discover_isolated(path: Path, mode: DiscoveryMode, config: DiscoveryConfig) -> DiscoveryResult:
    try:
        return discover_file(path, mode, config)
    except GopickError as exc:
        logger.warning("Skipping %s: %s", path, exc)
        return DiscoveryResult(path=str(path), error=exc)
    except Exception as exc:
        # anything else is still confined to this file
        logger.warning("Skipping %s: %s: %s", path, type(exc).__name__, exc)
        return DiscoveryResult(path=str(path), error=exc)


def discover_directory(
    root: PathLike,
    mode: DiscoveryMode = DiscoveryMode.TESTS,
    config: Optional[DiscoveryConfig] = None,
    workers: Optional[int] = None,
) -> List[DiscoveryResult]:
    """Discover every test file under ``root``.

    Args:
        root: Directory to walk (a single test file is accepted too)
        mode: Tests or benchmarks
        config: Discovery configuration
        workers: Process files on this many threads when greater than 1

    Returns:
        One DiscoveryResult per file, in walk order. Files that failed carry
        the exception in ``error`` and no tests.
    """
    config = config or DiscoveryConfig()
    mode = DiscoveryMode(mode)
    if not Path(root).exists():
        logger.debug("Nothing to discover, %s does not exist", root)
        return []

    files = list(iter_test_files(root, config))
    if workers and workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda p: _discover_isolated(p, mode, config), files))
    return [_discover_isolated(path, mode, config) for path in files]


def collect_tests(results: Iterable[DiscoveryResult]) -> List[TestCase]:
    """Flatten per-file results into one ordered list of tests."""
    tests: List[TestCase] = []
    for result in results:
        tests.extend(result.tests)
    return tests
