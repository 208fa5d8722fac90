"""Navigation pipeline: match -> resolve params -> commit -> compose -> render.

Only param resolution suspends; everything else runs without yielding.
The active path is committed exactly once per successful navigation, after
params resolve and before anything renders.  A navigation that fails to
match or resolve leaves the store untouched.

With the default ``LATEST_ISSUED`` policy, starting a navigation abandons
the previous one still in flight on the same navigator: its param
resolution is cancelled and it raises ``NavigationAbandoned`` instead of
committing.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import anyio

from perch._internal.types import NavigationPolicy
from perch.config import PerchConfig
from perch.errors import NavigationAbandoned
from perch.layouts import RenderChain, compose
from perch.navigation import NavigationStore
from perch.params import ParamResolvers, ResolvedParams, resolve_params
from perch.rendering import Renderer
from perch.routing.matcher import MatchResult, match_path
from perch.routing.tree import RouteTree

logger = logging.getLogger("perch.navigator")


@dataclass(frozen=True, slots=True)
class NavigationResult:
    """Everything a completed navigation produced.

    Attributes:
        match: The matched chain and raw captures.
        params: Raw and resolved param values.
        chain: The composed layout chain.
        body: The rendered result, or ``None`` without a renderer.
    """

    match: MatchResult
    params: ResolvedParams
    chain: RenderChain
    body: Any = None

    @property
    def path(self) -> str:
        return self.match.path


class Navigator:
    """Runs navigations for one session against a shared route tree.

    The tree is shared read-only across sessions.  The store is this
    session's; the navigator only references it.
    """

    __slots__ = ("_inflight", "config", "renderer", "resolvers", "store", "tree")

    def __init__(
        self,
        tree: RouteTree,
        store: NavigationStore,
        *,
        resolvers: ParamResolvers | None = None,
        renderer: Renderer | None = None,
        config: PerchConfig | None = None,
    ) -> None:
        self.tree = tree
        self.store = store
        self.resolvers = resolvers or ParamResolvers()
        self.renderer = renderer
        self.config = config or PerchConfig()
        self._inflight: anyio.CancelScope | None = None

    async def navigate(
        self,
        path: str | Sequence[str],
        *,
        target: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> NavigationResult:
        """Navigate to *path*.

        Args:
            path: Requested URL path or its segments.
            target: DOM element to re-render (partial navigation). ``None``
                renders the full layout chain.
            context: Extra render context.

        Raises:
            NotFoundOutcome: No route matches *path*.
            ParamResolutionError: A dynamic segment failed to resolve.
            NavigationAbandoned: A newer navigation superseded this one.
        """
        match = match_path(self.tree, path)

        if self.store.policy is NavigationPolicy.LATEST_ISSUED:
            self.abandon()
        ticket = self.store.begin_navigation(match.path)

        scope = anyio.CancelScope()
        self._inflight = scope
        try:
            with scope:
                resolved = await resolve_params(
                    match,
                    self.resolvers,
                    timeout=self.config.resolve_timeout,
                )
        finally:
            if self._inflight is scope:
                self._inflight = None

        if scope.cancelled_caught:
            logger.debug("Navigation #%d to %s cancelled", ticket.sequence, match.path)
            raise NavigationAbandoned(match.path, "cancelled")

        if not self.store.commit(ticket, match.path):
            raise NavigationAbandoned(match.path)

        chain = compose(match, resolved)
        body = None
        if self.renderer is not None:
            render_ctx = {
                **(context or {}),
                **resolved.values,
                "params": dict(resolved.raw),
                "nav": self.store,
            }
            body = chain.render(self.renderer, render_ctx, target=target)

        return NavigationResult(match=match, params=resolved, chain=chain, body=body)

    def abandon(self) -> bool:
        """Cancel the navigation in flight, if any. Returns whether one was."""
        if self._inflight is None:
            return False
        self._inflight.cancel()
        self._inflight = None
        return True

    @property
    def pending(self) -> bool:
        """Whether a navigation is currently resolving params."""
        return self._inflight is not None
