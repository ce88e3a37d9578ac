"""
Table lookup for table-driven subtests.

Given the collection a range loop iterates over, find the composite literal it
was declared as and read one name per row::

    tests := []struct{ name string }{
        {name: "test1"},
        {"test2"},
    }
    for _, tt := range tests {
        t.Run(tt.name, ...)
    }

yields ``["test1", "test2"]`` for the field ``name``.

Rows written without keys are assumed to carry the name in their first
position. That holds for the common ``{"name", input, want}`` layout; finding
the real position would need the struct type, which a syntax-only pass does not
have.
"""

import logging
from typing import Optional, Tuple

from gopick.config import DiscoveryConfig
from gopick.discovery.results import Issue, IssueKind, Resolution, unexpected_shape
from gopick.exceptions import UnexpectedNodeShapeError
from gopick.syntax import (
    Assignment,
    Closure,
    CompositeValue,
    Identifier,
    Indirection,
    KeyedElement,
    Literal,
    PositionalElement,
    SyntaxNode,
)

logger = logging.getLogger(__name__)


def follow_reference(node: Optional[SyntaxNode], config: DiscoveryConfig) -> Tuple[Optional[SyntaxNode], str]:
    """Follow identifiers back to the value they were assigned.

    One ``Indirection`` is unwrapped around the starting expression
    (``range *tests``) and one around each assigned value (``tests := &[]T{}``).

    Args:
        node: Expression to follow
        config: Discovery configuration (bounds the number of hops)

    Returns:
        (value, reason): ``value`` is the first node that is not an identifier,
        or None with ``reason`` explaining where the chain broke.
    """
    if isinstance(node, Indirection):
        node = node.target

    hops = 0
    while isinstance(node, Identifier):
        if hops >= config.max_reference_depth:
            return None, f"reference chain through '{node.name}' is too deep"
        declaration = node.declaration_ref
        if declaration is None:
            return None, f"'{node.name}' is not declared in this file"
        if not isinstance(declaration, Assignment):
            return None, f"'{node.name}' is declared by a {declaration.kind}"
        if declaration.ranged:
            return None, f"'{node.name}' is itself a loop variable"
        value = declaration.value_for(node.name)
        if value is None:
            return None, f"'{node.name}' has no single assigned value"
        if isinstance(value, Indirection):
            value = value.target
        node = value
        hops += 1

    if node is None:
        return None, "expression is empty"
    return node, ""


def find_collection(source: Optional[SyntaxNode], config: DiscoveryConfig) -> Tuple[Optional[CompositeValue], str]:
    """Locate the composite literal a range loop iterates over."""
    node, reason = follow_reference(source, config)
    if node is None:
        return None, reason
    if not isinstance(node, CompositeValue):
        return None, f"iterated value is a {node.kind}, not a literal table"
    return node, ""


def _row_of(element: SyntaxNode) -> SyntaxNode:
    # Map rows are keyed; slice rows are positional or bare.
    if isinstance(element, (PositionalElement, KeyedElement)):
        element = element.value
    if isinstance(element, Indirection):
        element = element.target
    return element


def _check_shape(element: SyntaxNode) -> None:
    if not isinstance(element, (KeyedElement, PositionalElement, Literal, Closure, CompositeValue)):
        kind = element.kind if isinstance(element, SyntaxNode) else type(element).__name__
        raise UnexpectedNodeShapeError(f"unknown row element {kind}", node=element)


def _literal_value(node: Optional[SyntaxNode], config: DiscoveryConfig) -> Tuple[Optional[str], str]:
    value, reason = follow_reference(node, config)
    if value is None:
        return None, reason
    if isinstance(value, Literal):
        return value.value, ""
    return None, f"name is a {value.kind}"


def row_name(row: CompositeValue, field: str, config: DiscoveryConfig) -> Tuple[Optional[str], str]:
    """Name of one table row.

    Raises:
        UnexpectedNodeShapeError: If a row element is not a recognised shape
    """
    for element in row.elements:
        _check_shape(element)

    for element in row.elements:
        if isinstance(element, KeyedElement):
            if element.key_name == field:
                return _literal_value(element.value, config)
            continue
        # first unkeyed element is the assumed name position
        value = element.value if isinstance(element, PositionalElement) else element
        if isinstance(value, (Closure, CompositeValue)):
            return None, f"name position holds a {value.kind}"
        return _literal_value(value, config)

    return None, f"row has no '{field}' field"


def _contain_row(exc: Exception, element, config: DiscoveryConfig, result: Resolution) -> None:
    error = unexpected_shape(exc, element)
    if config.strict:
        raise error
    result.issues.append(_issue(IssueKind.UNEXPECTED_SHAPE, str(error), element))


def lookup_table_names(field: str, source: Optional[SyntaxNode], config: DiscoveryConfig) -> Resolution:
    """Resolve the ``field`` of every row of the table ``source`` refers to.

    Args:
        field: Field name used as the subtest name (``tt.name`` -> ``name``)
        source: The expression the enclosing range loop iterates over
        config: Discovery configuration

    Returns:
        Resolution with one name per resolvable row, in row order

    Raises:
        UnexpectedNodeShapeError: Only in strict mode, for a malformed row
    """
    collection, reason = find_collection(source, config)
    if collection is None:
        return Resolution.skipped(IssueKind.AMBIGUOUS, reason, source.line if source else 0)

    result = Resolution()
    for element in collection.elements:
        try:
            row = _row_of(element)
            if not isinstance(row, CompositeValue):
                kind = row.kind if isinstance(row, SyntaxNode) else type(row).__name__
                result.issues.append(_issue(IssueKind.AMBIGUOUS, f"row is a {kind}", element))
                continue
            name, reason = row_name(row, field, config)
        except Exception as exc:
            _contain_row(exc, element, config, result)
            continue
        if name is None:
            result.issues.append(_issue(IssueKind.AMBIGUOUS, reason, row))
            continue
        result.add(name, row.line)
    return result


def lookup_map_keys(source: Optional[SyntaxNode], config: DiscoveryConfig) -> Resolution:
    """Resolve the literal keys of the map literal ``source`` refers to.

    Used for ``for name, tc := range cases { t.Run(name, ...) }``.
    """
    collection, reason = find_collection(source, config)
    if collection is None:
        return Resolution.skipped(IssueKind.AMBIGUOUS, reason, source.line if source else 0)

    result = Resolution()
    for element in collection.elements:
        if not isinstance(element, KeyedElement):
            result.issues.append(_issue(IssueKind.AMBIGUOUS, "range key of an unkeyed literal is an index", element))
            continue
        try:
            name, reason = _literal_value(element.key, config)
        except Exception as exc:
            _contain_row(exc, element, config, result)
            continue
        if name is None:
            result.issues.append(_issue(IssueKind.AMBIGUOUS, reason, element))
            continue
        result.add(name, element.line)
    return result


def lookup_element_values(source: Optional[SyntaxNode], config: DiscoveryConfig) -> Resolution:
    """Resolve the literal elements of the collection ``source`` refers to.

    Used for ``for _, name := range []string{"a", "b"} { t.Run(name, ...) }``.
    Map values are read the same way.
    """
    collection, reason = find_collection(source, config)
    if collection is None:
        return Resolution.skipped(IssueKind.AMBIGUOUS, reason, source.line if source else 0)

    result = Resolution()
    for element in collection.elements:
        try:
            _check_shape(element)
            value = element.value if isinstance(element, (KeyedElement, PositionalElement)) else element
            name, reason = _literal_value(value, config)
        except Exception as exc:
            _contain_row(exc, element, config, result)
            continue
        if name is None:
            result.issues.append(_issue(IssueKind.AMBIGUOUS, reason, element))
            continue
        result.add(name, element.line)
    return result


def _issue(kind: IssueKind, reason: str, node) -> Issue:
    line = node.line if isinstance(node, SyntaxNode) else 0
    if kind is IssueKind.UNEXPECTED_SHAPE:
        logger.warning("Skipping table row at line %s: %s", line, reason)
    return Issue(kind=kind, reason=reason, line=line)
