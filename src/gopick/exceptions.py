"""
Exception classes for gopick.

These exceptions signal the error conditions that can escape discovery, command
construction and run history handling. Expected resolution ambiguities are not
exceptions: they are reported as issues on a ``Resolution`` (see
``gopick.discovery.results``).
"""


class GopickError(Exception):
    """Base class for all gopick errors."""
    pass


class ParseFailure(GopickError):
    """Raised when a source file cannot be read or parsed.

    The whole file is skipped. The directory walker catches this per file so
    other files are still discovered.

    Common causes:
        - The file does not exist or cannot be read
        - The file is not valid UTF-8
        - The file contains syntax errors and syntax errors are not tolerated
    """

    def __init__(self, path, message):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")


class UnexpectedNodeShapeError(GopickError):
    """Raised when a node has a shape the resolver has no pattern for.

    Only escapes the resolver in strict mode. In the default tolerant mode the
    offending row or statement is skipped and recorded as an issue.

    Examples:
        - A table row element that is neither keyed nor positional
        - A statement list containing something that is not a syntax node
    """

    def __init__(self, message, node=None):
        self.node = node
        super().__init__(message)


class ModuleRootNotFoundError(GopickError):
    """Raised when no ``go.mod`` exists above the requested target."""
    pass


class ToolNotFoundError(GopickError):
    """Raised when an external tool (``go``, ``dlv``) is missing from PATH."""
    pass


class HistoryError(GopickError):
    """Raised when the run history is empty or cannot be decoded."""
    pass
