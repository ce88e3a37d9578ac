"""
Subtest resolution.

Walks the body of a test entry looking for subtest launches (``t.Run(name, fn)``)
and works out the name each one will run under. Nested launches inside the
closure produce deeper names, so the body::

    t.Run("L1", func(t *testing.T) {
        t.Run("L2", func(t *testing.T) {})
    })

inside ``TestRoot`` resolves to ``TestRoot/L1`` and ``TestRoot/L1/L2``.

Each statement is resolved on its own. A statement whose name cannot be
determined contributes nothing and leaves an issue on the returned
``Resolution``; the next statement is resolved regardless. The same holds for
a statement that breaks resolution outright, such as a closure with no body:
it is recorded as an unexpected shape, and only strict mode raises.
"""

import logging
from typing import Optional, Sequence

from gopick.config import DiscoveryConfig
from gopick.discovery.results import Issue, IssueKind, Resolution, join_name, unexpected_shape
from gopick.discovery.tables import follow_reference, lookup_element_values, lookup_map_keys, lookup_table_names
from gopick.exceptions import UnexpectedNodeShapeError
from gopick.syntax import (
    Assignment,
    Closure,
    Identifier,
    Invocation,
    Iteration,
    Literal,
    MemberAccess,
    SyntaxNode,
)

logger = logging.getLogger(__name__)


class SubtestResolver:
    """Resolves the qualified names of subtests launched from a body."""

    def __init__(self, config: Optional[DiscoveryConfig] = None):
        self.config = config or DiscoveryConfig()

    def resolve(self, statements: Sequence[SyntaxNode], parent: str) -> Resolution:
        """Resolve every subtest reachable from ``statements``.

        Args:
            statements: Body of a declaration, closure or loop
            parent: Qualified name of the enclosing test

        Returns:
            Resolution with qualified names in depth-first order

        Raises:
            UnexpectedNodeShapeError: Only in strict mode
        """
        result = Resolution()
        try:
            statements = list(statements)
        except TypeError as exc:
            self._contain(exc, statements, parent, result)
            return result

        for statement in statements:
            try:
                result.extend(self._resolve_statement(statement, parent))
            except Exception as exc:
                self._contain(exc, statement, parent, result)
        return result

    def _contain(self, exc: Exception, node, parent: str, result: Resolution) -> None:
        error = unexpected_shape(exc, node)
        if self.config.strict:
            raise error
        line = node.line if isinstance(node, SyntaxNode) else 0
        logger.warning("Skipping statement in %s at line %s: %s", parent, line, error)
        result.issues.append(Issue(IssueKind.UNEXPECTED_SHAPE, str(error), line))

    def _resolve_statement(self, statement: SyntaxNode, parent: str) -> Resolution:
        if not isinstance(statement, SyntaxNode):
            raise UnexpectedNodeShapeError(
                f"statement is a {type(statement).__name__}, not a syntax node", node=statement
            )

        if isinstance(statement, Iteration):
            # loops repeat launches, they do not add a path segment
            return self.resolve(statement.body, parent)

        if isinstance(statement, Invocation) and self._is_subtest_launch(statement):
            return self._resolve_launch(statement, parent)

        return Resolution()

    def _is_subtest_launch(self, call: Invocation) -> bool:
        callee = call.callee
        return isinstance(callee, MemberAccess) and callee.member == self.config.subtest_method

    def _resolve_launch(self, call: Invocation, parent: str) -> Resolution:
        if not call.arguments:
            return self._skip(IssueKind.AMBIGUOUS, "subtest launch has no name argument", call, parent)

        segments = self.resolve_name(call.arguments[0])
        result = Resolution(issues=list(segments.issues))
        if not segments:
            if self.config.verbose:
                for issue in segments.issues:
                    logger.debug("Unresolved subtest in %s: %s", parent, issue)
            return result

        closure = call.arguments[1] if len(call.arguments) > 1 else None
        for segment in segments.names:
            name = join_name(parent, segment)
            result.add(name, call.line)
            if isinstance(closure, Closure):
                result.extend(self.resolve(closure.body, name))
        return result

    def resolve_name(self, argument: SyntaxNode) -> Resolution:
        """Resolve the name argument of a subtest launch to path segments.

        Args:
            argument: First argument of the launch

        Returns:
            Resolution whose names are unqualified segments. Table lookups
            can produce several.
        """
        if isinstance(argument, Literal):
            result = Resolution()
            result.add(argument.value, argument.line)
            return result

        if isinstance(argument, MemberAccess):
            loop = self._loop_binding(argument.target)
            if loop is None:
                return Resolution.skipped(
                    IssueKind.AMBIGUOUS, f"'{argument.member}' is not read from a loop variable", argument.line
                )
            return lookup_table_names(argument.member, loop.values[0], self.config)

        if isinstance(argument, Identifier):
            return self._resolve_identifier(argument)

        if not isinstance(argument, SyntaxNode):
            raise UnexpectedNodeShapeError(
                f"name argument is a {type(argument).__name__}, not a syntax node", node=argument
            )
        # closures, call results and the like are only known at run time
        return Resolution.skipped(IssueKind.AMBIGUOUS, f"name is a {argument.kind}", argument.line)

    def _resolve_identifier(self, identifier: Identifier) -> Resolution:
        declaration = identifier.declaration_ref
        if isinstance(declaration, Assignment) and declaration.ranged:
            if declaration.values and identifier.name in declaration.targets[:2]:
                source = declaration.values[0]
                # for name := range cases (map keys), for _, name := range names (elements)
                if declaration.targets[0] == identifier.name:
                    return lookup_map_keys(source, self.config)
                return lookup_element_values(source, self.config)
            return Resolution.skipped(
                IssueKind.AMBIGUOUS, f"'{identifier.name}' is not bound by this loop", identifier.line
            )

        value, reason = follow_reference(identifier, self.config)
        if isinstance(value, Literal):
            result = Resolution()
            result.add(value.value, identifier.line)
            return result
        if value is not None:
            reason = f"'{identifier.name}' holds a {value.kind}"
        return Resolution.skipped(IssueKind.AMBIGUOUS, reason, identifier.line)

    def _loop_binding(self, target: Optional[SyntaxNode]) -> Optional[Assignment]:
        """Range clause that introduced ``target`` as its value variable.

        Copies such as ``tt := tt`` are followed.
        """
        for _ in range(self.config.max_reference_depth):
            if not isinstance(target, Identifier):
                return None
            declaration = target.declaration_ref
            if not isinstance(declaration, Assignment):
                return None
            if declaration.ranged:
                if len(declaration.targets) > 1 and declaration.targets[1] == target.name and declaration.values:
                    return declaration
                return None
            target = declaration.value_for(target.name)
        return None

    def _skip(self, kind: IssueKind, reason: str, node: SyntaxNode, parent: str) -> Resolution:
        if self.config.verbose:
            logger.debug("Unresolved subtest in %s at line %d: %s", parent, node.line, reason)
        return Resolution.skipped(kind, reason, node.line)


def resolve_subtests(statements: Sequence[SyntaxNode], parent: str,
                     config: Optional[DiscoveryConfig] = None) -> Resolution:
    """Convenience function to resolve the subtests of one body."""
    return SubtestResolver(config).resolve(statements, parent)
