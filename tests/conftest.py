"""Shared fixtures for perch tests.

``video_tree`` is the reference tree used across modules::

    /                   _layout.html          (R)
      (home)/           (home)/_layout.html   (H)
        feed/           page F
        [videoID]/      page V
      library/          library/_layout.html  (L, target: app-content)
        page.html
        history/        page
        playlists/
          [listID]/     page
            [trackID]/  page
"""

import pytest

from perch.navigation import NavigationStore
from perch.routing.tree import Layout, RouteTree, SegmentSpec, build_tree

ROOT = Layout("_layout.html")
HOME = Layout("(home)/_layout.html")
LIBRARY = Layout("library/_layout.html", target="app-content")


def video_description() -> SegmentSpec:
    return SegmentSpec("/", layout=ROOT, children=[
        SegmentSpec("(home)", layout=HOME, children=[
            SegmentSpec("feed", page="(home)/feed/page.html"),
            SegmentSpec("[videoID]", page="(home)/[videoID]/page.html"),
        ]),
        SegmentSpec("library", layout=LIBRARY, page="library/page.html", children=[
            SegmentSpec("history", page="library/history/page.html"),
            SegmentSpec("playlists", children=[
                SegmentSpec("[listID]", page="library/playlists/[listID]/page.html", children=[
                    SegmentSpec(
                        "[trackID]",
                        page="library/playlists/[listID]/[trackID]/page.html",
                    ),
                ]),
            ]),
        ]),
    ])


@pytest.fixture
def video_tree() -> RouteTree:
    return build_tree(video_description())


@pytest.fixture
def store():
    with NavigationStore() as nav:
        yield nav
