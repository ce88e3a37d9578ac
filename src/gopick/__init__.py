"""
gopick - static discovery of Go tests and subtests, and a picker to run them.

This package parses ``_test.go`` files without compiling them and lists every
test a file defines, including subtests launched with ``t.Run`` from literal
names, nested closures and table-driven loops. A chosen test can then be run
with ``go test``, debugged with ``dlv`` or benchmarked.

Usage:
    >>> import gopick
    >>> result = gopick.discover_file("pkg/foo_test.go")
    >>> [t.qualified_name for t in result.tests]
    ['TestFoo', 'TestFoo/empty input', 'TestFoo/large input']

Key components:
- syntax: language-neutral tree the discovery engine works on
- frontend: tree-sitter based Go parser producing that tree
- discovery: test selection and subtest name resolution
- runner: go test / dlv command construction and execution
"""

from .config import DiscoveryConfig, UserConfig
from .discovery import (
    DiscoveryMode,
    DiscoveryResult,
    TestCase,
    collect_tests,
    discover_directory,
    discover_file,
    discover_source,
    discover_tree,
)
from .exceptions import *

# Version
__version__ = "0.1.0"

__all__ = [
    'DiscoveryConfig',
    'UserConfig',
    'DiscoveryMode',
    'DiscoveryResult',
    'TestCase',
    'collect_tests',
    'discover_directory',
    'discover_file',
    'discover_source',
    'discover_tree',
]
