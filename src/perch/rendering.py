"""Render contract and the kida adapter.

Perch never interprets rendering internals.  It hands the renderer a
``Page`` or a ``Layout`` plus context and gets back an opaque result.
``KidaRenderer`` is the bundled implementation: pages and layouts are kida
templates, and every layout fills its ``{% block content %}`` slot with the
markup rendered below it.
"""

from typing import Any, Protocol, runtime_checkable

from kida import Environment, FileSystemLoader

from perch.config import PerchConfig
from perch.routing.tree import Layout, Page


@runtime_checkable
class Renderer(Protocol):
    """What the layout compositor needs from a rendering engine."""

    def render_page(self, page: Page, context: dict[str, Any]) -> Any: ...

    def render_layout(self, layout: Layout, content: Any, context: dict[str, Any]) -> Any: ...


def create_environment(config: PerchConfig | None = None) -> Environment:
    """Create a kida Environment loading templates from ``config.pages_dir``.

    Template names match the ones discovery records (relative to the pages
    directory, ``/``-separated).
    """
    config = config or PerchConfig()
    return Environment(
        loader=FileSystemLoader(str(config.pages_dir)),
        autoescape=config.autoescape,
        auto_reload=config.auto_reload,
    )


class KidaRenderer:
    """Render pages and layouts as kida templates.

    Usage::

        renderer = KidaRenderer(create_environment(config))
        html = chain.render(renderer, {"title": "Feed"})
    """

    __slots__ = ("env",)

    def __init__(self, env: Environment) -> None:
        self.env = env

    def render_page(self, page: Page, context: dict[str, Any]) -> str:
        template = self.env.get_template(page.template_name)
        return template.render(context)

    def render_layout(self, layout: Layout, content: Any, context: dict[str, Any]) -> str:
        template = self.env.get_template(layout.template_name)
        return template.render_with_blocks({"content": content}, **context)
