"""Route tree data model and builder.

The builder turns an ordered description of ``SegmentSpec`` entries into an
immutable ``RouteTree``.  It runs once at startup; the resulting nodes are
frozen and safe to share across concurrent navigations without locks.

Example::

    tree = build_tree([
        SegmentSpec("/", layout="_layout.html", children=[
            SegmentSpec("(home)", layout="(home)/_layout.html", children=[
                SegmentSpec("feed", page="(home)/feed/page.html"),
                SegmentSpec("[videoID]", page="(home)/[videoID]/page.html"),
            ]),
        ]),
    ])
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from perch.errors import ConflictError, StructureError
from perch.routing.segments import ROOT_NAME, SegmentKind, classify_segment, join_path, split_path

logger = logging.getLogger("perch.routing")


@dataclass(frozen=True, slots=True)
class Layout:
    """A layout wrapper owned by a route node.

    Attributes:
        template_name: Template the renderer loads for this layout.
        target: DOM element ID this layout renders into.
            ``"body"`` for the root layout, e.g. ``"app-content"`` for nested.
    """

    template_name: str
    target: str = "body"


@dataclass(frozen=True, slots=True)
class Page:
    """A leaf page owned by a route node."""

    template_name: str


@dataclass(frozen=True, slots=True)
class SegmentSpec:
    """One entry of a route description, as declared by the application.

    ``layout`` and ``page`` accept a ``Layout``/``Page`` or a bare template
    name.  ``children`` accepts any sequence and is stored as a tuple.
    """

    name: str
    layout: Layout | str | None = None
    page: Page | str | None = None
    children: Sequence["SegmentSpec"] = ()

    def __post_init__(self) -> None:
        if isinstance(self.layout, str):
            object.__setattr__(self, "layout", Layout(self.layout))
        if isinstance(self.page, str):
            object.__setattr__(self, "page", Page(self.page))
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True, slots=True, eq=False)
class RouteNode:
    """One path segment of the route tree.

    Nodes compare by identity: two trees built from the same description are
    distinct trees.
    """

    name: str
    kind: SegmentKind
    param: str | None = None
    children: tuple["RouteNode", ...] = ()
    layout: Layout | None = None
    page: Page | None = None

    @property
    def is_group(self) -> bool:
        return self.kind is SegmentKind.GROUP

    @property
    def is_dynamic(self) -> bool:
        return self.kind is SegmentKind.DYNAMIC

    def child(self, name: str) -> "RouteNode | None":
        """Return the direct child declared as *name*, if any."""
        for node in self.children:
            if node.name == name:
                return node
        return None

    def __repr__(self) -> str:
        return f"RouteNode({self.name!r}, {self.kind.value})"


@dataclass(frozen=True, slots=True)
class Edge:
    """A URL-consuming child reached from a node, through zero or more groups."""

    via: tuple[RouteNode, ...]
    node: RouteNode


def level_edges(node: RouteNode) -> tuple[Edge, ...]:
    """Children that consume the next URL segment below *node*.

    Group children are flattened transparently in declaration order.
    The result is ordered by precedence: every static edge before any
    dynamic edge, declaration order within each kind.
    """
    edges: list[Edge] = []
    _collect_edges(node, (), edges)
    static = [e for e in edges if e.node.kind is SegmentKind.STATIC]
    dynamic = [e for e in edges if e.node.kind is SegmentKind.DYNAMIC]
    return (*static, *dynamic)


def _collect_edges(node: RouteNode, via: tuple[RouteNode, ...], out: list[Edge]) -> None:
    for child in node.children:
        if child.is_group:
            _collect_edges(child, (*via, child), out)
        else:
            out.append(Edge(via=via, node=child))


def page_chains(node: RouteNode) -> Iterator[tuple[RouteNode, ...]]:
    """Group chains below *node* that end at a page for the same URL.

    Yields ``()`` first when *node* owns a page itself, then each chain of
    group nodes (declaration order) whose last group owns a page.
    """
    if node.page is not None:
        yield ()
    for child in node.children:
        if child.is_group:
            for chain in page_chains(child):
                yield (child, *chain)


@dataclass(frozen=True, slots=True)
class RouteInfo:
    """A page-bearing chain, as listed by ``RouteTree.routes()``.

    Attributes:
        pattern: URL pattern, dynamic segments shown as ``[param]``.
        nodes: Nodes from root to the page owner, groups included.
        page: The leaf page.
    """

    pattern: str
    nodes: tuple[RouteNode, ...]
    page: Page


@dataclass(frozen=True, slots=True)
class RouteTree:
    """An immutable, fully validated route tree."""

    root: RouteNode
    _routes: tuple[RouteInfo, ...] = field(default=(), repr=False)

    def routes(self) -> tuple[RouteInfo, ...]:
        """Every page-bearing chain, in depth-first declaration order."""
        return self._routes

    def find(self, pattern: str) -> RouteInfo | None:
        """Return the route declared for a URL *pattern* like ``/watch/[id]``."""
        wanted = join_path(split_path(pattern))
        for info in self._routes:
            if info.pattern == wanted:
                return info
        return None

    def __len__(self) -> int:
        return len(self._routes)


def build_tree(description: SegmentSpec | Sequence[SegmentSpec]) -> RouteTree:
    """Build and validate an immutable route tree.

    *description* is either the root ``SegmentSpec`` (named ``"/"``) or a
    sequence of top-level entries.  In a sequence, at most one entry may be
    the root; every other entry becomes a child of the root.

    Raises:
        StructureError: Several root entries, a missing root layout, or a
            malformed segment name.
        ConflictError: Duplicate sibling names, two static segments at the
            same URL level, a repeated param name along one chain, or two
            pages resolving to the same URL pattern.
    """
    entries = [description] if isinstance(description, SegmentSpec) else list(description)

    roots = [e for e in entries if e.name == ROOT_NAME]
    if len(roots) > 1:
        msg = f"Only one root entry may own the root layout; found {len(roots)}"
        raise StructureError(msg)

    others = tuple(e for e in entries if e.name != ROOT_NAME)
    if roots:
        root_spec = roots[0]
        root_spec = SegmentSpec(
            ROOT_NAME,
            layout=root_spec.layout,
            page=root_spec.page,
            children=(*root_spec.children, *others),
        )
    else:
        root_spec = SegmentSpec(ROOT_NAME, children=others)

    if root_spec.layout is None:
        raise StructureError("The root layout is mandatory but none was declared")

    root = RouteNode(
        name=ROOT_NAME,
        kind=SegmentKind.STATIC,
        children=_build_children(root_spec, params=(), where=ROOT_NAME),
        layout=root_spec.layout,  # type: ignore[arg-type]
        page=root_spec.page,  # type: ignore[arg-type]
    )

    _check_levels(root, ROOT_NAME)
    routes = _collect_routes(root)

    logger.debug("Built route tree with %d route(s)", len(routes))
    return RouteTree(root=root, _routes=routes)


def _build_children(
    spec: SegmentSpec,
    *,
    params: tuple[str, ...],
    where: str,
) -> tuple[RouteNode, ...]:
    """Recursively build the children of *spec* (bottom-up)."""
    seen: set[str] = set()
    nodes: list[RouteNode] = []

    for child in spec.children:
        if child.name in seen:
            msg = f"Duplicate segment {child.name!r} under {where!r}"
            raise ConflictError(msg)
        seen.add(child.name)

        segment = classify_segment(child.name)
        child_params = params
        if segment.param is not None:
            if segment.param in params:
                msg = (
                    f"Parameter [{segment.param}] is captured twice along "
                    f"{where.rstrip('/')}/{child.name}"
                )
                raise ConflictError(msg)
            child_params = (*params, segment.param)

        child_where = f"{where.rstrip('/')}/{child.name}"
        nodes.append(RouteNode(
            name=child.name,
            kind=segment.kind,
            param=segment.param,
            children=_build_children(child, params=child_params, where=child_where),
            layout=child.layout,  # type: ignore[arg-type]
            page=child.page,  # type: ignore[arg-type]
        ))

    return tuple(nodes)


def _check_levels(node: RouteNode, where: str) -> None:
    """Reject static segments that collide at one URL level through groups."""
    owners: dict[str, Edge] = {}
    for edge in level_edges(node):
        if edge.node.kind is SegmentKind.STATIC:
            if edge.node.name in owners:
                first = _describe(owners[edge.node.name])
                msg = (
                    f"Static segment {edge.node.name!r} under {where!r} is declared "
                    f"twice: {first} and {_describe(edge)}"
                )
                raise ConflictError(msg)
            owners[edge.node.name] = edge

    for child in node.children:
        child_where = where if child.is_group else f"{where.rstrip('/')}/{child.name}"
        _check_levels(child, child_where)


def _describe(edge: Edge) -> str:
    return "/".join([*(g.name for g in edge.via), edge.node.name])


def _collect_routes(root: RouteNode) -> tuple[RouteInfo, ...]:
    """Collect every page-bearing chain and reject ambiguous leaves."""
    found: list[RouteInfo] = []
    _walk_routes(root, (root,), (), found)

    by_shape: dict[tuple[str, ...], RouteInfo] = {}
    for info in found:
        shape = _shape(info.nodes)
        if shape in by_shape:
            first = by_shape[shape]
            msg = (
                f"Ambiguous page for {info.pattern!r}: "
                f"{_chain_name(first.nodes)} and {_chain_name(info.nodes)}"
            )
            raise ConflictError(msg)
        by_shape[shape] = info
    return tuple(found)


def _shape(nodes: tuple[RouteNode, ...]) -> tuple[str, ...]:
    # Dynamic segments match the same URLs whatever their param name
    return tuple(
        "[]" if n.is_dynamic else n.name
        for n in nodes[1:]
        if not n.is_group
    )


def _walk_routes(
    node: RouteNode,
    chain: tuple[RouteNode, ...],
    url_parts: tuple[str, ...],
    out: list[RouteInfo],
) -> None:
    if node.page is not None:
        out.append(RouteInfo(pattern=join_path(url_parts), nodes=chain, page=node.page))
    for child in node.children:
        if child.is_group:
            parts = url_parts
        elif child.is_dynamic:
            parts = (*url_parts, f"[{child.param}]")
        else:
            parts = (*url_parts, child.name)
        _walk_routes(child, (*chain, child), parts, out)


def _chain_name(nodes: tuple[RouteNode, ...]) -> str:
    return "/" + "/".join(n.name for n in nodes[1:])
