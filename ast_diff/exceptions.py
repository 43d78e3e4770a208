"""
Exception types raised by the matching engine.

Contract violations (double mapping, mapping non-isomorphic subtrees,
reading metrics that were never computed) are fatal to the current
match() call. Best-effort heuristics such as scope tagging never raise
these for malformed input; they degrade locally instead.
"""


class AstDiffError(Exception):
    """Base exception for all tree matching errors."""

    pass


class MappingError(AstDiffError):
    """
    A mapping store invariant would be broken.

    Raised when a node would be mapped twice on the same side, or when two
    subtrees handed to the recursive mapping operation are not isomorphic.
    """

    pass


class MetricsError(AstDiffError):
    """Structural metrics were read before being computed, or computed twice."""

    pass


class ScopeError(AstDiffError):
    """A node already carrying a scope id was assigned a different one."""

    pass


class TreeFormatError(AstDiffError, ValueError):
    """A serialized tree could not be turned into nodes."""

    pass
