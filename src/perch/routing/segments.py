"""Segment naming grammar.

Classifies raw folder/segment names into the three node kinds::

    "library"    -> Segment("library", STATIC)
    "[videoID]"  -> Segment("[videoID]", DYNAMIC, param="videoID")
    "(home)"     -> Segment("(home)", GROUP)      # invisible in URLs
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from perch.errors import StructureError

# Name reserved for the single root node
ROOT_NAME = "/"

_IDENT_RE = re.compile(r"^\w+$")


class SegmentKind(Enum):
    """Kind of a route node. Member order is matching precedence."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    GROUP = "group"


@dataclass(frozen=True, slots=True)
class Segment:
    """A classified segment name."""

    name: str
    kind: SegmentKind
    param: str | None = None

    @property
    def url_part(self) -> str | None:
        """Pattern contribution to a URL (``None`` for groups)."""
        if self.kind is SegmentKind.GROUP:
            return None
        if self.kind is SegmentKind.DYNAMIC:
            return f"[{self.param}]"
        return self.name


def classify_segment(name: str) -> Segment:
    """Classify a raw segment name.

    Raises:
        StructureError: If the name is empty, contains ``/``, or wraps a
            non-identifier in brackets or parentheses.
    """
    if not name:
        raise StructureError("Segment names must not be empty")
    if "/" in name:
        msg = f"Segment name {name!r} must not contain '/'"
        raise StructureError(msg)

    if name.startswith("[") and name.endswith("]"):
        inner = name[1:-1]
        if not _IDENT_RE.match(inner):
            msg = (
                f"Dynamic segment {name!r} must wrap a single identifier, "
                f"e.g. '[id]'"
            )
            raise StructureError(msg)
        return Segment(name=name, kind=SegmentKind.DYNAMIC, param=inner)

    if name.startswith("(") and name.endswith(")"):
        inner = name[1:-1]
        if not _IDENT_RE.match(inner):
            msg = f"Route group {name!r} must wrap a single identifier, e.g. '(marketing)'"
            raise StructureError(msg)
        return Segment(name=name, kind=SegmentKind.GROUP)

    return Segment(name=name, kind=SegmentKind.STATIC)


def split_path(path: str | Sequence[str]) -> tuple[str, ...]:
    """Split a request path into its non-empty segments.

    Accepts either a URL string or an already-split sequence::

        "/library/playlists/42" -> ("library", "playlists", "42")
        "/"                     -> ()
        ["a", "", "b"]          -> ("a", "b")
        ["a/b", "c"]            -> ("a", "b", "c")
    """
    items = [path] if isinstance(path, str) else path
    parts = [p for item in items for p in item.split("/")]
    return tuple(p for p in parts if p)


def join_path(parts: Sequence[str]) -> str:
    """Join segments back into a canonical URL path (``()`` -> ``"/"``)."""
    return "/" + "/".join(parts)
