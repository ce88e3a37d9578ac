"""
Syntax nodes consumed by the discovery engine.

The tree is a small, language-neutral projection of a Go source file that keeps
only what test discovery needs: declarations, calls, selectors, composite
literals, range loops, closures and identifiers with a back-reference to the
node that declared them. Every node is a frozen dataclass, so a discovery pass
cannot mutate the tree it is given.

Identifiers carry ``declaration_ref`` directly. The frontend resolves it once
while building the tree; the resolver only follows the pointer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

# Delimiters Go uses to quote string literals.
QUOTE_CHARS = ('"', "`")

_ESCAPE = re.compile(r"\\(x[0-9A-Fa-f]{2}|[0-7]{3}|u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
    "\\": "\\", "'": "'", '"': '"',
}


def unescape(body: str) -> str:
    """Decode the escape sequences of an interpreted Go string body.

    ``\\x`` and octal escapes are single bytes, so a run of them can spell a
    UTF-8 character.

    >>> unescape(r'say \\"hi\\"')
    'say "hi"'
    """
    out = bytearray()
    pos = 0
    for match in _ESCAPE.finditer(body):
        out += body[pos:match.start()].encode("utf-8")
        code = match.group(1)
        if code[0] == "x":
            out.append(int(code[1:], 16))
        elif code[0] in "01234567" and len(code) == 3:
            out.append(int(code, 8) & 0xFF)
        elif code[0] in "uU":
            out += chr(int(code[1:], 16)).encode("utf-8")
        else:
            out += _SIMPLE_ESCAPES.get(code, "\\" + code).encode("utf-8")
        pos = match.end()
    out += body[pos:].encode("utf-8")
    return out.decode("utf-8", errors="replace")


def strip_quotes(text: str) -> str:
    """Return literal text with every string quoting delimiter removed.

    Interpreted literals (``"..."``) have their escapes decoded first. Raw
    literals are taken as written.

    >>> strip_quotes('"Case A"')
    'Case A'
    >>> strip_quotes('`raw`')
    'raw'
    """
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        text = unescape(text[1:-1])
    for quote in QUOTE_CHARS:
        text = text.replace(quote, "")
    return text


@dataclass(frozen=True, eq=False)
class SyntaxNode:
    """Base class for all syntax nodes.

    Attributes:
        line: 1-based source line of the node, 0 when unknown
    """

    line: int = 0

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, eq=False)
class Literal(SyntaxNode):
    """String or numeric literal, ``text`` is the raw source including quotes."""

    text: str = ""

    @property
    def value(self) -> str:
        return strip_quotes(self.text)


@dataclass(frozen=True, eq=False)
class Identifier(SyntaxNode):
    """A name, with the node that declared it when it could be resolved."""

    name: str = ""
    declaration_ref: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class MemberAccess(SyntaxNode):
    """Selector expression: ``target.member``."""

    target: Optional[SyntaxNode] = None
    member: str = ""


@dataclass(frozen=True, eq=False)
class Invocation(SyntaxNode):
    """Call expression: ``callee(arguments...)``."""

    callee: Optional[SyntaxNode] = None
    arguments: Tuple[SyntaxNode, ...] = ()


@dataclass(frozen=True, eq=False)
class Indirection(SyntaxNode):
    """One level of address-of (``&x``) or dereference (``*x``)."""

    target: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class KeyedElement(SyntaxNode):
    """``key: value`` entry of a composite literal."""

    key: Optional[SyntaxNode] = None
    value: Optional[SyntaxNode] = None

    @property
    def key_name(self) -> Optional[str]:
        """Field name for struct keys, literal value for map keys."""
        if isinstance(self.key, Identifier):
            return self.key.name
        if isinstance(self.key, Literal):
            return self.key.value
        return None


@dataclass(frozen=True, eq=False)
class PositionalElement(SyntaxNode):
    """Unkeyed entry of a composite literal."""

    value: Optional[SyntaxNode] = None


@dataclass(frozen=True, eq=False)
class CompositeValue(SyntaxNode):
    """Struct, array, slice or map literal."""

    elements: Tuple[SyntaxNode, ...] = ()


@dataclass(frozen=True, eq=False)
class Assignment(SyntaxNode):
    """Statement binding one or more names.

    Covers ``:=``, ``var``, ``const`` and range clauses. For a range clause
    (``ranged=True``) ``values`` holds the single iterated collection and
    ``targets`` are the key and value variable names.
    """

    targets: Tuple[str, ...] = ()
    values: Tuple[SyntaxNode, ...] = ()
    ranged: bool = False

    def value_for(self, name: str) -> Optional[SyntaxNode]:
        """Right-hand side bound to ``name``, if there is exactly one."""
        if self.ranged or name not in self.targets:
            return None
        index = self.targets.index(name)
        if len(self.values) == len(self.targets):
            return self.values[index]
        return None


@dataclass(frozen=True, eq=False)
class Closure(SyntaxNode):
    """Function literal."""

    body: Tuple[SyntaxNode, ...] = ()


@dataclass(frozen=True, eq=False)
class Iteration(SyntaxNode):
    """``for ... range source`` loop."""

    source: Optional[SyntaxNode] = None
    body: Tuple[SyntaxNode, ...] = ()


@dataclass(frozen=True, eq=False)
class Declaration(SyntaxNode):
    """Function or method declaration."""

    name: str = ""
    body: Tuple[SyntaxNode, ...] = ()
    receiver: Optional[str] = None


@dataclass(frozen=True, eq=False)
class Opaque(SyntaxNode):
    """Construct with no discovery meaning, kept for diagnostics."""

    node_type: str = ""
    text: str = ""


@dataclass(frozen=True, eq=False)
class SourceTree:
    """Top-level declarations of one source file, in source order."""

    path: str = ""
    declarations: Tuple[Declaration, ...] = field(default_factory=tuple)

