"""
Result types produced by discovery.

``Resolution`` is what every resolver and table lookup step returns: the names
it could determine plus the issues explaining what it had to skip. Expected
failures travel as data rather than exceptions, so skip-and-continue is visible
in the return value and each step can be tested on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from gopick.exceptions import UnexpectedNodeShapeError

SEPARATOR = "/"


class DiscoveryMode(str, Enum):
    """What kind of entries to discover."""

    TESTS = "tests"
    BENCHMARKS = "benchmarks"


class IssueKind(str, Enum):
    AMBIGUOUS = "ambiguous"
    UNEXPECTED_SHAPE = "unexpected_shape"


@dataclass(frozen=True)
class Issue:
    """A subtest candidate that could not be resolved."""

    kind: IssueKind
    reason: str
    line: int = 0

    def __str__(self) -> str:
        where = f"line {self.line}: " if self.line else ""
        return f"{where}{self.kind.value}: {self.reason}"


@dataclass
class Resolution:
    """Names resolved by one step, and the issues it skipped over."""

    names: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    lines: List[int] = field(default_factory=list)

    @classmethod
    def skipped(cls, kind: IssueKind, reason: str, line: int = 0) -> "Resolution":
        return cls(issues=[Issue(kind=kind, reason=reason, line=line)])

    def add(self, name: str, line: int = 0) -> None:
        self.names.append(name)
        self.lines.append(line)

    def extend(self, other: "Resolution") -> "Resolution":
        self.names.extend(other.names)
        self.lines.extend(other.lines)
        self.issues.extend(other.issues)
        return self

    def __bool__(self) -> bool:
        return bool(self.names)


@dataclass(frozen=True)
class TestCase:
    """One discovered test, benchmark or subtest.

    Identity is (source_file, qualified_name). Duplicates are not removed:
    two subtests with the same literal name in user code both appear.
    """

    __test__ = False  # not a pytest test class

    qualified_name: str
    source_file: str
    source_line: int = 0
    is_benchmark: bool = False

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.qualified_name.split(SEPARATOR))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.qualified_name,
            "file": self.source_file,
            "line": self.source_line,
            "benchmark": self.is_benchmark,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestCase":
        return cls(
            qualified_name=data["name"],
            source_file=data["file"],
            source_line=int(data.get("line", 0)),
            is_benchmark=bool(data.get("benchmark", False)),
        )


@dataclass
class DiscoveryResult:
    """Everything discovered in one file."""

    path: str
    tests: List[TestCase] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def join_name(parent: str, segment: str) -> str:
    return parent + SEPARATOR + segment


def unexpected_shape(exc: Exception, node: Any) -> UnexpectedNodeShapeError:
    """Report any failure raised while resolving ``node`` as an unexpected shape.

    Resolution only matches the shapes it knows. A node that breaks it in some
    other way (a missing body, ``None`` where literal text belongs) is the same
    kind of fault and is contained the same way.
    """
    if isinstance(exc, UnexpectedNodeShapeError):
        return exc
    kind = getattr(node, "kind", type(node).__name__)
    error = UnexpectedNodeShapeError(f"malformed {kind} ({type(exc).__name__}: {exc})", node=node)
    error.__cause__ = exc
    return error
