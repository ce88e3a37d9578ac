"""
Go frontend: builds ``gopick.syntax`` trees from Go source with tree-sitter.

Only the constructs test discovery cares about are converted faithfully:
function and method declarations, calls, selectors, range loops, closures,
composite literals and the declarations that bind names. Everything else becomes
an ``Opaque`` node.

Identifiers are resolved against a lexical scope chain while the tree is built,
so every ``Identifier`` already points at the ``Assignment`` (or parameter)
that declared it. Package-level ``var`` and ``const`` declarations are bound in
the file scope before any function is converted.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterator, List, Optional, Tuple, Union

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from gopick.exceptions import ParseFailure
from gopick.syntax import (
    Assignment,
    Closure,
    CompositeValue,
    Declaration,
    Identifier,
    Indirection,
    Invocation,
    Iteration,
    KeyedElement,
    Literal,
    MemberAccess,
    Opaque,
    PositionalElement,
    SourceTree,
    SyntaxNode,
)

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tree_sitter_go.language())

LITERAL_TYPES = frozenset({
    "interpreted_string_literal",
    "raw_string_literal",
    "int_literal",
    "float_literal",
    "imaginary_literal",
    "rune_literal",
})

# Unary operators that take or follow a pointer.
INDIRECTION_OPERATORS = frozenset({"&", "*"})

OPAQUE_TEXT_LIMIT = 80


def new_parser() -> Parser:
    """Create a parser for Go. Parsers are not shared between threads."""
    return Parser(GO_LANGUAGE)


class _Scope:
    """One lexical scope: names bound here plus a link to the enclosing scope."""

    def __init__(self, parent: Optional["_Scope"] = None):
        self.parent = parent
        self.bindings: Dict[str, SyntaxNode] = {}

    def bind(self, name: str, declaration: SyntaxNode) -> None:
        if name and name != "_":
            self.bindings[name] = declaration

    def lookup(self, name: str) -> Optional[SyntaxNode]:
        scope: Optional[_Scope] = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None

    def child(self) -> "_Scope":
        return _Scope(self)


def _named(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    return [c for c in node.named_children if c.type != "comment"]


def _has_token(node: Node, token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)


def _line(node: Node) -> int:
    return node.start_point[0] + 1


class GoTreeBuilder:
    """Converts one tree-sitter Go tree into a ``SourceTree``."""

    def __init__(self, source: bytes, path: str):
        self.source = source
        self.path = path

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def build(self, root: Node) -> SourceTree:
        file_scope = _Scope()
        top_level = _named(root)

        for node in top_level:
            if node.type in ("var_declaration", "const_declaration"):
                self._value_declaration(node, file_scope)

        declarations = []
        for node in top_level:
            if node.type in ("function_declaration", "method_declaration"):
                declarations.append(self._declaration(node, file_scope))

        return SourceTree(path=self.path, declarations=tuple(declarations))

    # Declarations

    def _declaration(self, node: Node, scope: _Scope) -> Declaration:
        name_node = node.child_by_field_name("name")
        receiver = None
        function_scope = scope.child()

        if node.type == "method_declaration":
            receiver_list = node.child_by_field_name("receiver")
            receiver = self._receiver_type(receiver_list)
            self._bind_parameters(receiver_list, function_scope)

        self._bind_parameters(node.child_by_field_name("parameters"), function_scope)
        body = node.child_by_field_name("body")

        return Declaration(
            name=self.text(name_node) if name_node is not None else "",
            body=self._block(body, function_scope) if body is not None else (),
            receiver=receiver,
            line=_line(node),
        )

    def _receiver_type(self, receiver_list: Optional[Node]) -> Optional[str]:
        for parameter in _named(receiver_list):
            type_node = parameter.child_by_field_name("type")
            if type_node is not None:
                return self.text(type_node).lstrip("*").split("[", 1)[0].strip()
        return None

    def _bind_parameters(self, parameter_list: Optional[Node], scope: _Scope) -> None:
        for parameter in _named(parameter_list):
            for name in parameter.children_by_field_name("name"):
                scope.bind(self.text(name), Opaque(node_type="parameter", text=self.text(parameter), line=_line(name)))

    # Statements

    def _statement_nodes(self, block: Node) -> Iterator[Node]:
        for child in _named(block):
            if child.type == "statement_list":
                yield from _named(child)
            else:
                yield child

    def _block(self, block: Node, scope: _Scope) -> Tuple[SyntaxNode, ...]:
        statements: List[SyntaxNode] = []
        for node in self._statement_nodes(block):
            statements.extend(self._statement(node, scope))
        return tuple(statements)

    def _statement(self, node: Node, scope: _Scope) -> List[SyntaxNode]:
        kind = node.type

        if kind == "expression_statement":
            return [self._expression(child, scope) for child in _named(node)]

        if kind == "for_statement":
            return [self._loop(node, scope)]

        if kind == "short_var_declaration":
            return [self._short_var(node, scope)]

        if kind in ("var_declaration", "const_declaration"):
            return list(self._value_declaration(node, scope))

        if kind == "assignment_statement":
            return [self._reassignment(node, scope)]

        return [self._opaque(node)]

    def _loop(self, node: Node, scope: _Scope) -> Iteration:
        loop_scope = scope.child()
        source = None

        for clause in _named(node):
            if clause.type == "range_clause":
                left = clause.child_by_field_name("left")
                right = clause.child_by_field_name("right")
                source = self._expression(right, scope) if right is not None else None
                names = tuple(self.text(n) for n in _named(left))
                binding = Assignment(
                    targets=names,
                    values=(source,) if source is not None else (),
                    ranged=True,
                    line=_line(clause),
                )
                if _has_token(clause, ":="):
                    for name in names:
                        loop_scope.bind(name, binding)
            elif clause.type == "for_clause":
                initializer = clause.child_by_field_name("initializer")
                if initializer is not None:
                    self._statement(initializer, loop_scope)

        body = node.child_by_field_name("body")
        return Iteration(
            source=source,
            body=self._block(body, loop_scope) if body is not None else (),
            line=_line(node),
        )

    def _short_var(self, node: Node, scope: _Scope) -> Assignment:
        names = tuple(self.text(n) for n in _named(node.child_by_field_name("left")))
        # right-hand side sees the outer binding, as in tt := tt
        values = tuple(self._expression(v, scope) for v in _named(node.child_by_field_name("right")))
        assignment = Assignment(targets=names, values=values, line=_line(node))
        for name in names:
            scope.bind(name, assignment)
        return assignment

    def _reassignment(self, node: Node, scope: _Scope) -> SyntaxNode:
        operator = node.child_by_field_name("operator")
        left = _named(node.child_by_field_name("left"))
        if operator is None or operator.type != "=" or not all(n.type == "identifier" for n in left):
            return self._opaque(node)

        names = tuple(self.text(n) for n in left)
        values = tuple(self._expression(v, scope) for v in _named(node.child_by_field_name("right")))
        assignment = Assignment(targets=names, values=values, line=_line(node))
        for name in names:
            scope.bind(name, assignment)
        return assignment

    def _value_specs(self, node: Node) -> Iterator[Node]:
        for child in _named(node):
            if child.type in ("var_spec", "const_spec"):
                yield child
            elif child.type in ("var_spec_list", "const_spec_list"):
                yield from self._value_specs(child)

    def _value_declaration(self, node: Node, scope: _Scope) -> List[Assignment]:
        assignments = []
        for spec in self._value_specs(node):
            names = tuple(self.text(n) for n in spec.children_by_field_name("name"))
            values = tuple(self._expression(v, scope) for v in _named(spec.child_by_field_name("value")))
            assignment = Assignment(targets=names, values=values, line=_line(spec))
            for name in names:
                scope.bind(name, assignment)
            assignments.append(assignment)
        return assignments

    # Expressions

    def _expression(self, node: Node, scope: _Scope) -> SyntaxNode:
        kind = node.type

        if kind in ("parenthesized_expression", "literal_element"):
            inner = _named(node)
            return self._expression(inner[0], scope) if inner else self._opaque(node)

        if kind == "identifier":
            name = self.text(node)
            return Identifier(name=name, declaration_ref=scope.lookup(name), line=_line(node))

        if kind == "field_identifier":
            return Identifier(name=self.text(node), line=_line(node))

        if kind in LITERAL_TYPES:
            return Literal(text=self.text(node), line=_line(node))

        if kind == "call_expression":
            callee = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            return Invocation(
                callee=self._expression(callee, scope) if callee is not None else None,
                arguments=tuple(self._expression(a, scope) for a in _named(arguments)),
                line=_line(node),
            )

        if kind == "selector_expression":
            operand = node.child_by_field_name("operand")
            field = node.child_by_field_name("field")
            return MemberAccess(
                target=self._expression(operand, scope) if operand is not None else None,
                member=self.text(field) if field is not None else "",
                line=_line(node),
            )

        if kind == "func_literal":
            closure_scope = scope.child()
            self._bind_parameters(node.child_by_field_name("parameters"), closure_scope)
            body = node.child_by_field_name("body")
            return Closure(
                body=self._block(body, closure_scope) if body is not None else (),
                line=_line(node),
            )

        if kind == "composite_literal":
            return self._composite(node.child_by_field_name("body"), scope, _line(node))

        if kind == "literal_value":
            return self._composite(node, scope, _line(node))

        if kind == "unary_expression":
            operator = node.child_by_field_name("operator")
            operand = node.child_by_field_name("operand")
            if operator is not None and operand is not None and operator.type in INDIRECTION_OPERATORS:
                return Indirection(target=self._expression(operand, scope), line=_line(node))

        return self._opaque(node)

    def _composite(self, body: Optional[Node], scope: _Scope, line: int) -> CompositeValue:
        elements: List[SyntaxNode] = []
        for child in _named(body):
            if child.type == "keyed_element":
                parts = _named(child)
                if len(parts) != 2:
                    elements.append(self._opaque(child))
                    continue
                key, value = parts
                elements.append(KeyedElement(
                    key=self._expression(key, scope),
                    value=self._expression(value, scope),
                    line=_line(child),
                ))
            else:
                elements.append(PositionalElement(value=self._expression(child, scope), line=_line(child)))
        return CompositeValue(elements=tuple(elements), line=line)

    def _opaque(self, node: Node) -> Opaque:
        text = self.text(node)
        if len(text) > OPAQUE_TEXT_LIMIT:
            text = text[:OPAQUE_TEXT_LIMIT] + "..."
        return Opaque(node_type=node.type, text=text, line=_line(node))


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def parse_source(source: Union[str, bytes], path: str = "<source>", tolerate_errors: bool = False) -> SourceTree:
    """Parse Go source into a ``SourceTree``.

    Args:
        source: Go source text
        path: File name recorded on the tree and on discovered tests
        tolerate_errors: Convert what parsed instead of raising on syntax errors

    Returns:
        SourceTree with every top-level function and method declaration

    Raises:
        ParseFailure: If the source has syntax errors and they are not tolerated
    """
    data = source.encode("utf-8") if isinstance(source, str) else source
    tree = new_parser().parse(data)
    root = tree.root_node

    if root.has_error:
        error = _first_error(root)
        line = _line(error) if error is not None else 0
        if not tolerate_errors:
            raise ParseFailure(path, f"syntax error at line {line}")
        logger.warning("%s: syntax error at line %d, discovering what parsed", path, line)

    return GoTreeBuilder(data, path).build(root)


def parse_file(path: Union[str, os.PathLike], tolerate_errors: bool = False) -> SourceTree:
    """Read and parse one Go file.

    Raises:
        ParseFailure: If the file cannot be read, is not UTF-8, or does not parse
    """
    path = os.fspath(path)
    try:
        with open(path, "rb") as f:
            data = f.read()
        data.decode("utf-8")
    except OSError as e:
        raise ParseFailure(path, f"cannot read file: {e}") from e
    except UnicodeDecodeError as e:
        raise ParseFailure(path, f"not valid UTF-8: {e}") from e

    return parse_source(data, path, tolerate_errors=tolerate_errors)
