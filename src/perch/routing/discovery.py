"""Filesystem route discovery for the pages/ directory.

Walks the pages directory tree and discovers:
- ``_layout.html`` files as layouts
- ``page.html`` files as leaf pages

Directory names follow the segment grammar: ``[param]`` directories
capture a path parameter, ``(group)`` directories share a layout without
appearing in URLs, anything else is a literal path segment::

    pages/
      _layout.html            # Root layout (target: body)
      (home)/
        _layout.html          # Group layout (target: app-content)
        feed/page.html        # /feed
        [videoID]/page.html   # /{videoID}
      library/
        page.html             # /library
        playlists/[listID]/page.html
"""

import re
from pathlib import Path

from perch.config import PerchConfig
from perch.routing.segments import ROOT_NAME
from perch.routing.tree import Layout, Page, RouteTree, SegmentSpec, build_tree

# Regex to extract {# target: element_id #} from layout templates
_TARGET_RE = re.compile(r"\{#\s*target:\s*(\S+)\s*#\}")


def discover_tree(
    pages_dir: str | Path | None = None,
    config: PerchConfig | None = None,
) -> RouteTree:
    """Walk a pages directory and build its route tree.

    Args:
        pages_dir: Path to the pages directory. Defaults to
            ``config.pages_dir``.
        config: Discovery settings (file names). Defaults to ``PerchConfig()``.

    Raises:
        FileNotFoundError: If the directory does not exist.
        BuildError: If the discovered structure is invalid.
    """
    config = config or PerchConfig()
    root = Path(pages_dir if pages_dir is not None else config.pages_dir).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Pages directory not found: {root}")

    return build_tree(discover_specs(root, config))


def discover_specs(root: Path, config: PerchConfig) -> SegmentSpec:
    """Describe *root* as a root ``SegmentSpec`` without building it."""
    return _describe_directory(root, root, ROOT_NAME, config)


def _describe_directory(
    directory: Path,
    root: Path,
    name: str,
    config: PerchConfig,
) -> SegmentSpec:
    """Recursively describe a directory and its subdirectories."""
    layout: Layout | None = None
    layout_file = directory / config.layout_file
    if layout_file.is_file():
        layout = Layout(
            template_name=_template_name(layout_file, root),
            target=_parse_layout_target(layout_file),
        )

    page: Page | None = None
    page_file = directory / config.page_file
    if page_file.is_file():
        page = Page(template_name=_template_name(page_file, root))

    children: list[SegmentSpec] = []
    for item in sorted(directory.iterdir()):
        if not item.is_dir():
            continue
        if item.name.startswith("_") or item.name.startswith("."):
            continue
        children.append(_describe_directory(item, root, item.name, config))

    return SegmentSpec(name, layout=layout, page=page, children=children)


def _template_name(file: Path, root: Path) -> str:
    return file.relative_to(root).as_posix()


def _parse_layout_target(layout_file: Path) -> str:
    """Extract the target element ID from a layout template.

    Looks for ``{# target: element_id #}`` in the template.
    Defaults to ``"body"`` if not found.
    """
    content = layout_file.read_text(encoding="utf-8")
    match = _TARGET_RE.search(content)
    if match:
        return match.group(1)
    return "body"
