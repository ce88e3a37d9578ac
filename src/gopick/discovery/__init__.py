"""
Test discovery engine.

This module turns syntax trees into the ordered list of tests a file defines,
including subtests launched with ``t.Run`` from literal names, nested closures
and table-driven loops.

Key components:
- classify_entries / discover_entries: select test or benchmark declarations
- SubtestResolver: recursive resolution of subtest names
- lookup_table_names: per-row names of a literal test table
- lookup_map_keys / lookup_element_values: names ranged over directly
- discover_tree / discover_source / discover_file / discover_directory
- TestCase, Resolution, DiscoveryResult: result types
"""

from .results import (
    DiscoveryMode,
    DiscoveryResult,
    Issue,
    IssueKind,
    Resolution,
    TestCase,
    SEPARATOR,
)
from .tables import (
    find_collection,
    follow_reference,
    lookup_element_values,
    lookup_map_keys,
    lookup_table_names,
)
from .resolver import SubtestResolver, resolve_subtests
from .classifier import classify_entries, discover_entries
from .engine import (
    collect_tests,
    discover_directory,
    discover_file,
    discover_source,
    discover_tree,
    iter_test_files,
)

__all__ = [
    "DiscoveryMode",
    "DiscoveryResult",
    "Issue",
    "IssueKind",
    "Resolution",
    "TestCase",
    "SEPARATOR",
    "find_collection",
    "follow_reference",
    "lookup_element_values",
    "lookup_map_keys",
    "lookup_table_names",
    "SubtestResolver",
    "resolve_subtests",
    "classify_entries",
    "discover_entries",
    "collect_tests",
    "discover_directory",
    "discover_file",
    "discover_source",
    "discover_tree",
    "iter_test_files",
]
