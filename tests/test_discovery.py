"""Tests for perch.routing.discovery — building trees from a pages/ directory."""

from pathlib import Path

import pytest

from perch.config import PerchConfig
from perch.errors import ConflictError, StructureError
from perch.routing.discovery import discover_tree
from perch.routing.matcher import match_path
from perch.routing.tree import Layout, Page


def _write(root: Path, relative: str, content: str = "") -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def pages(tmp_path: Path) -> Path:
    root = tmp_path / "pages"
    _write(root, "_layout.html", "<body>{% block content %}{% end %}</body>")
    _write(root, "(home)/_layout.html", "{# target: app-content #}\n<main>{% block content %}{% end %}</main>")
    _write(root, "(home)/feed/page.html", "feed")
    _write(root, "(home)/[videoID]/page.html", "video")
    _write(root, "library/page.html", "library")
    _write(root, "library/playlists/[listID]/page.html", "playlist")
    _write(root, "_partials/card.html", "card")
    _write(root, ".cache/page.html", "hidden")
    return root


class TestDiscoverTree:
    def test_layouts_and_targets(self, pages: Path) -> None:
        tree = discover_tree(pages)
        assert tree.root.layout == Layout("_layout.html", target="body")
        home = tree.root.child("(home)")
        assert home is not None
        assert home.layout == Layout("(home)/_layout.html", target="app-content")

    def test_pages(self, pages: Path) -> None:
        tree = discover_tree(pages)
        patterns = {r.pattern: r.page for r in tree.routes()}
        assert patterns == {
            "/feed": Page("(home)/feed/page.html"),
            "/[videoID]": Page("(home)/[videoID]/page.html"),
            "/library": Page("library/page.html"),
            "/library/playlists/[listID]": Page("library/playlists/[listID]/page.html"),
        }

    def test_skips_private_and_hidden_dirs(self, pages: Path) -> None:
        tree = discover_tree(pages)
        names = [c.name for c in tree.root.children]
        assert "_partials" not in names
        assert ".cache" not in names

    def test_discovered_tree_matches(self, pages: Path) -> None:
        tree = discover_tree(pages)
        match = match_path(tree, "/xyz")
        assert [n.name for n in match.nodes] == ["/", "(home)", "[videoID]"]
        assert dict(match.params) == {"videoID": "xyz"}

    def test_uses_config_pages_dir(self, pages: Path) -> None:
        tree = discover_tree(config=PerchConfig(pages_dir=pages))
        assert len(tree) == 4

    def test_custom_file_names(self, tmp_path: Path) -> None:
        root = tmp_path / "app"
        _write(root, "layout.kida", "")
        _write(root, "about/index.kida", "")
        config = PerchConfig(layout_file="layout.kida", page_file="index.kida")
        tree = discover_tree(root, config)
        assert tree.root.layout == Layout("layout.kida")
        assert tree.find("/about") is not None

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            discover_tree(tmp_path / "nope")

    def test_missing_root_layout(self, tmp_path: Path) -> None:
        _write(tmp_path, "about/page.html", "")
        with pytest.raises(StructureError):
            discover_tree(tmp_path)

    def test_ambiguous_group_pages(self, tmp_path: Path) -> None:
        _write(tmp_path, "_layout.html", "")
        _write(tmp_path, "(a)/page.html", "")
        _write(tmp_path, "(b)/page.html", "")
        with pytest.raises(ConflictError):
            discover_tree(tmp_path)
