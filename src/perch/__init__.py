"""Perch — filesystem routing with nested layouts for web clients.

Maps a folder hierarchy to URL paths, composes layout chains, resolves
dynamic segments asynchronously, and keeps per-session navigation state.

Basic usage::

    from perch import NavigationStore, Navigator, discover_tree

    tree = discover_tree("pages")            # once, at startup

    with NavigationStore() as nav:           # once per session
        navigator = Navigator(tree, nav)
        result = await navigator.navigate("/library/playlists/42")
        result.chain.layouts                 # root layout first
        nav.is_active("/library")            # True
"""

import importlib

__version__ = "0.1.0"
__all__ = [
    "BuildError",
    "ConflictError",
    "KidaRenderer",
    "Layout",
    "MatchResult",
    "NavigationAbandoned",
    "NavigationPolicy",
    "NavigationResult",
    "NavigationState",
    "NavigationStore",
    "Navigator",
    "NotFoundOutcome",
    "Page",
    "ParamResolutionError",
    "ParamResolvers",
    "PerchConfig",
    "PerchError",
    "RenderChain",
    "RouteTree",
    "SegmentSpec",
    "SessionClosedError",
    "SidebarMode",
    "StructureError",
    "build_tree",
    "compose",
    "discover_tree",
    "match_path",
    "resolve_params",
]

# Public name -> (module, attribute)
_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    # Errors
    "BuildError": ("perch.errors", "BuildError"),
    "ConflictError": ("perch.errors", "ConflictError"),
    "NavigationAbandoned": ("perch.errors", "NavigationAbandoned"),
    "NotFoundOutcome": ("perch.errors", "NotFoundOutcome"),
    "ParamResolutionError": ("perch.errors", "ParamResolutionError"),
    "PerchError": ("perch.errors", "PerchError"),
    "SessionClosedError": ("perch.errors", "SessionClosedError"),
    "StructureError": ("perch.errors", "StructureError"),
    # Configuration
    "NavigationPolicy": ("perch._internal.types", "NavigationPolicy"),
    "PerchConfig": ("perch.config", "PerchConfig"),
    "SidebarMode": ("perch._internal.types", "SidebarMode"),
    # Route tree
    "Layout": ("perch.routing.tree", "Layout"),
    "Page": ("perch.routing.tree", "Page"),
    "RouteTree": ("perch.routing.tree", "RouteTree"),
    "SegmentSpec": ("perch.routing.tree", "SegmentSpec"),
    "build_tree": ("perch.routing.tree", "build_tree"),
    "discover_tree": ("perch.routing.discovery", "discover_tree"),
    "MatchResult": ("perch.routing.matcher", "MatchResult"),
    "match_path": ("perch.routing.matcher", "match_path"),
    # Params, layouts, rendering
    "ParamResolvers": ("perch.params", "ParamResolvers"),
    "resolve_params": ("perch.params", "resolve_params"),
    "RenderChain": ("perch.layouts", "RenderChain"),
    "compose": ("perch.layouts", "compose"),
    "KidaRenderer": ("perch.rendering", "KidaRenderer"),
    # Navigation
    "NavigationState": ("perch.navigation", "NavigationState"),
    "NavigationStore": ("perch.navigation", "NavigationStore"),
    "NavigationResult": ("perch.navigator", "NavigationResult"),
    "Navigator": ("perch.navigator", "Navigator"),
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    try:
        module_name, attr = _LAZY_IMPORTS[name]
    except KeyError:
        raise AttributeError(f"module 'perch' has no attribute {name!r}") from None
    return getattr(importlib.import_module(module_name), attr)
