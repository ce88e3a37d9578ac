"""
Syntax tree model.

This module defines the immutable node types the discovery engine walks. The
Go frontend (``gopick.frontend``) builds these trees from source; tests and other
frontends may build them by hand.

Key components:
- SyntaxNode: base class, every node has a best-effort ``line``
- Declaration, Invocation, MemberAccess, CompositeValue, KeyedElement,
  PositionalElement, Literal, Iteration, Closure, Identifier, Indirection
- Assignment: target of identifier declaration references
- Opaque: anything discovery has no pattern for
- SourceTree: the declarations of one file
"""

from .nodes import (
    SyntaxNode,
    Declaration,
    Invocation,
    MemberAccess,
    CompositeValue,
    KeyedElement,
    PositionalElement,
    Literal,
    Iteration,
    Closure,
    Identifier,
    Indirection,
    Assignment,
    Opaque,
    SourceTree,
    QUOTE_CHARS,
    strip_quotes,
)

__all__ = [
    "SyntaxNode",
    "Declaration",
    "Invocation",
    "MemberAccess",
    "CompositeValue",
    "KeyedElement",
    "PositionalElement",
    "Literal",
    "Iteration",
    "Closure",
    "Identifier",
    "Indirection",
    "Assignment",
    "Opaque",
    "SourceTree",
    "QUOTE_CHARS",
    "strip_quotes",
]
