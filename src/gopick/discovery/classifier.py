"""
Entry classification.

Selects the top-level declarations of a file that are tests or benchmarks by
name, and turns them into root ``TestCase`` records. In tests mode each root is
followed by the subtests resolved from its body.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from gopick.config import DiscoveryConfig
from gopick.discovery.resolver import SubtestResolver
from gopick.discovery.results import DiscoveryMode, Issue, IssueKind, TestCase, unexpected_shape
from gopick.syntax import Declaration

logger = logging.getLogger(__name__)


def is_entry(declaration: Declaration, mode: DiscoveryMode, config: DiscoveryConfig) -> bool:
    name = declaration.name
    if not isinstance(name, str):
        return False
    if mode is DiscoveryMode.BENCHMARKS:
        return name.startswith(config.benchmark_prefix)
    return name.startswith(config.test_prefix) and name not in config.reserved_names


def classify_entries(
    declarations: Sequence[Declaration],
    mode: DiscoveryMode = DiscoveryMode.TESTS,
    config: Optional[DiscoveryConfig] = None,
) -> List[Declaration]:
    """Return the declarations that are entries for ``mode``, in order."""
    config = config or DiscoveryConfig()
    mode = DiscoveryMode(mode)
    return [d for d in declarations if isinstance(d, Declaration) and is_entry(d, mode, config)]


def discover_entries(
    declarations: Sequence[Declaration],
    path: str,
    mode: DiscoveryMode = DiscoveryMode.TESTS,
    config: Optional[DiscoveryConfig] = None,
) -> Tuple[List[TestCase], List[Issue]]:
    """Build the TestCase records for the entries among ``declarations``.

    Every entry yields its root record even when nothing inside it resolves.
    Benchmarks are listed by name only; their sub-benchmarks are not resolved.

    Args:
        declarations: Top-level declarations of one file
        path: File the declarations came from
        mode: Tests or benchmarks
        config: Discovery configuration

    Returns:
        (tests, issues) in declaration order

    Raises:
        UnexpectedNodeShapeError: Only in strict mode
    """
    config = config or DiscoveryConfig()
    mode = DiscoveryMode(mode)
    benchmark = mode is DiscoveryMode.BENCHMARKS
    resolver = SubtestResolver(config)

    tests: List[TestCase] = []
    issues: List[Issue] = []
    for entry in classify_entries(declarations, mode, config):
        if config.verbose:
            logger.debug("Evaluating %s", entry.name)

        tests.append(TestCase(
            qualified_name=entry.name,
            source_file=path,
            source_line=entry.line,
            is_benchmark=benchmark,
        ))
        if benchmark:
            continue

        try:
            resolution = resolver.resolve(entry.body, entry.name)
        except Exception as exc:
            error = unexpected_shape(exc, entry)
            if config.strict:
                raise error
            logger.warning("Skipping subtests of %s: %s", entry.name, error)
            issues.append(Issue(IssueKind.UNEXPECTED_SHAPE, str(error), entry.line))
            continue
        issues.extend(resolution.issues)
        for name, line in zip(resolution.names, resolution.lines):
            tests.append(TestCase(qualified_name=name, source_file=path, source_line=line))

    return tests, issues
