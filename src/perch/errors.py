"""Perch exception hierarchy.

Shared across the builder, matcher, resolver, store and navigator so every
module raises and catches the same types.

Build-time errors (``BuildError`` subclasses) abort startup and are never
retried.  Everything else is local to a single navigation and propagates to
its caller.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when a ``PerchConfig`` value is invalid."""


class BuildError(PerchError):
    """Raised while building the route tree. No partial tree is exposed."""


class ConflictError(BuildError):
    """Two routes claim the same URL contribution or the same page path."""


class StructureError(BuildError):
    """The route description is malformed (names, roots, root layout)."""


@dataclass(frozen=True, slots=True)
class NotFoundOutcome(PerchError):  # noqa: N818 — an outcome, not a fault
    """No route chain fully matches the requested path.

    Recoverable: the caller maps it to its own not-found presentation.
    """

    path: str
    status: int = 404

    def __str__(self) -> str:
        return f"{self.status}: no route matches {self.path!r}"


class ParamResolutionError(PerchError):
    """A dynamic segment's value could not be resolved.

    The original exception (lookup failure, timeout) is chained as
    ``__cause__``.
    """

    def __init__(self, param: str, raw: str, detail: str = "") -> None:
        self.param = param
        self.raw = raw
        self.detail = detail
        message = f"Could not resolve [{param}] = {raw!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NavigationAbandoned(PerchError):  # noqa: N818 — conventional outcome name
    """A navigation was superseded or cancelled before it completed."""

    def __init__(self, path: str, reason: str = "superseded") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Navigation to {path!r} abandoned ({reason})")


class SessionClosedError(PerchError):
    """The navigation store was used after its session ended."""
