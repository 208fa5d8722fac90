"""Path matching against a built route tree.

Depth-first descent with backtracking.  At each URL level the candidates
are the node's children with route groups flattened away, tried static
before dynamic::

    match_path(tree, "/watch/abc123")
    # MatchResult(nodes=(/, (home), watch, [videoID]), params={"videoID": "abc123"})

Groups never consume a segment; they only appear in ``MatchResult.nodes`` so
their layouts are composed.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from perch.errors import NotFoundOutcome
from perch.routing.segments import join_path, split_path
from perch.routing.tree import Page, RouteNode, RouteTree, level_edges, page_chains

logger = logging.getLogger("perch.routing")


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Result of a successful path match.

    Attributes:
        nodes: Matched nodes from root to leaf, traversed groups included.
        params: Dynamic param name -> captured raw string.
    """

    nodes: tuple[RouteNode, ...]
    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatchResult):
            return NotImplemented
        return self.nodes == other.nodes and dict(self.params) == dict(other.params)

    def __hash__(self) -> int:
        return hash((self.nodes, tuple(sorted(self.params.items()))))

    @property
    def leaf(self) -> RouteNode:
        return self.nodes[-1]

    @property
    def page(self) -> Page:
        page = self.leaf.page
        if page is None:
            msg = f"Matched leaf {self.leaf.name!r} owns no page"
            raise ValueError(msg)
        return page

    @property
    def dynamic_nodes(self) -> tuple[RouteNode, ...]:
        """Dynamic nodes of the chain, ancestors first."""
        return tuple(n for n in self.nodes if n.is_dynamic)

    @property
    def path(self) -> str:
        """Canonical URL for this match. Group names never appear."""
        parts: list[str] = []
        for node in self.nodes[1:]:
            if node.is_group:
                continue
            if node.is_dynamic:
                parts.append(self.params[node.param])  # type: ignore[index]
            else:
                parts.append(node.name)
        return join_path(parts)


def match_path(tree: RouteTree, path: str | Sequence[str]) -> MatchResult:
    """Match a request path against *tree*.

    Returns a ``MatchResult`` on success.
    Raises ``NotFoundOutcome`` if no chain reaches a page for the full path.
    """
    parts = split_path(path)
    found = _match_node(tree.root, parts, 0, (tree.root,), {})

    if found is None:
        raise NotFoundOutcome(join_path(parts))

    nodes, params = found
    logger.debug("Matched %s -> %s", join_path(parts), [n.name for n in nodes])
    return MatchResult(nodes=nodes, params=params)


def _match_node(
    node: RouteNode,
    parts: tuple[str, ...],
    index: int,
    chain: tuple[RouteNode, ...],
    params: dict[str, str],
) -> tuple[tuple[RouteNode, ...], dict[str, str]] | None:
    """Recursively match path parts below *node*."""
    # All parts consumed — the node (or a group below it) must own a page
    if index == len(parts):
        groups = next(page_chains(node), None)
        if groups is None:
            return None
        return (*chain, *groups), params

    part = parts[index]

    for edge in level_edges(node):
        child = edge.node
        if child.is_dynamic:
            new_params = {**params, child.param: part}  # type: ignore[dict-item]
        elif child.name == part:
            new_params = params
        else:
            continue

        result = _match_node(child, parts, index + 1, (*chain, *edge.via, child), new_params)
        if result is not None:
            return result

    return None
