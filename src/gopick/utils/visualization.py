"""
Test tree visualization.

Renders discovered tests as a text tree, one block per file, with subtests
nested under the test that launches them. Connectors follow the usual
``├──`` / ``└──`` style so nesting reads at a glance.
"""

from typing import Dict, Iterable, List

from ..discovery.results import TestCase


def _insert(tree: Dict[str, dict], segments) -> None:
    node = tree
    for segment in segments:
        node = node.setdefault(segment, {})


def render_tree(tests: Iterable[TestCase]) -> str:
    """Generate a text tree of tests grouped by file.

    Args:
        tests: Discovered tests, in discovery order

    Returns:
        A string with one line per file and per name segment

    Example:
        >>> tests = [TestCase("TestA", "a_test.go"), TestCase("TestA/L1", "a_test.go")]
        >>> print(render_tree(tests))
        a_test.go
        └── TestA
            └── L1
    """
    files: Dict[str, Dict[str, dict]] = {}
    for test in tests:
        _insert(files.setdefault(test.source_file, {}), test.segments)

    lines: List[str] = []
    for path, tree in files.items():
        lines.append(path)
        _render_children(tree, lines, prefix="")
    return "\n".join(lines)


def _render_children(tree: Dict[str, dict], lines: List[str], prefix: str) -> None:
    """Recursively render the children of one node.

    Args:
        tree: Mapping of segment name to its own children
        lines: List to append rendered lines to
        prefix: Indentation carried down from the ancestors
    """
    names = list(tree)
    for i, name in enumerate(names):
        is_last = i == len(names) - 1
        connector = "└── " if is_last else "├── "
        lines.append(prefix + connector + name)
        # Extension for children depends on whether this is the last child
        extension = "    " if is_last else "│   "
        _render_children(tree[name], lines, prefix + extension)


def render_list(tests: Iterable[TestCase], show_location: bool = True) -> str:
    """One qualified name per line, optionally with ``file:line``."""
    lines = []
    for test in tests:
        if show_location:
            lines.append(f"{test.qualified_name}\t{test.source_file}:{test.source_line}")
        else:
            lines.append(test.qualified_name)
    return "\n".join(lines)
