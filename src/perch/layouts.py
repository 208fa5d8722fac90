"""Layout chain composition.

Turns a match into the ordered render chain: root layout outermost, each
deeper layout inside the previous one, the leaf page innermost.  Nodes
without a layout add nothing to the chain.

The renderer composes nested layouts inside-out.  A ``target`` (the DOM
element the client asks to replace, e.g. from ``HX-Target``) determines how
deep to render — only the layouts from the one owning that element down are
rendered, preserving the outer shell on the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from perch.routing.tree import Layout, Page

if TYPE_CHECKING:
    from perch.params import ResolvedParams
    from perch.rendering import Renderer
    from perch.routing.matcher import MatchResult


@dataclass(frozen=True, slots=True)
class RenderChain:
    """Ordered sequence of layouts from root (outermost) to deepest, plus the page.

    Attributes:
        layouts: Layouts ordered outermost first. ``layouts[0]`` is always
            the root layout.
        page: The leaf page, rendered innermost.
        params: Resolved params for the match, if resolution ran.
    """

    layouts: tuple[Layout, ...]
    page: Page
    params: ResolvedParams | None = None

    def find_start_index(self, target: str | None) -> int | None:
        """Find the layout index to start rendering from for a given target.

        Each layout declares the DOM element it renders *into*.  When the
        target matches a layout's target, we render from that layout onward.

        Returns ``None`` if *target* is ``None`` or matches no layout
        (treat as fragment).
        """
        if target is None:
            return None
        target_id = target.lstrip("#")
        for i, layout in enumerate(self.layouts):
            if layout.target == target_id:
                return i
        return None

    def render(
        self,
        renderer: Renderer,
        context: dict[str, Any] | None = None,
        *,
        target: str | None = None,
    ) -> Any:
        """Render the page wrapped in its layout chain.

        - **No target**: render every layout nested around the page.
        - **Target matches a layout**: render from that layout down.
        - **Target matches no layout**: return the page as-is (fragment).
        """
        context = context or {}
        content = renderer.render_page(self.page, context)

        if target is None:
            layouts = self.layouts
        else:
            idx = self.find_start_index(target)
            if idx is None:
                return content
            layouts = self.layouts[idx:]

        # Innermost layout first (last in the tuple), then outward
        for layout in reversed(layouts):
            content = renderer.render_layout(layout, content, context)
        return content


def compose(match: MatchResult, resolved: ResolvedParams | None = None) -> RenderChain:
    """Assemble the render chain for *match*, outermost layout first."""
    layouts = tuple(node.layout for node in match.nodes if node.layout is not None)
    return RenderChain(layouts=layouts, page=match.page, params=resolved)
