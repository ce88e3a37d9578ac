"""
Source frontends.

Frontends turn source text into ``gopick.syntax`` trees with identifier
declaration references already resolved. The Go frontend uses tree-sitter with
the ``tree-sitter-go`` grammar.
"""

from gopick.frontend.golang import GoTreeBuilder, new_parser, parse_file, parse_source

__all__ = [
    "GoTreeBuilder",
    "new_parser",
    "parse_file",
    "parse_source",
]
