"""Shared enums and type aliases used across perch modules."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeAlias

# Dynamic-parameter resolver — receives the raw captured value (plus any
# ancestor params it names) and returns the resolved value, maybe awaitable
Resolver: TypeAlias = Callable[..., Any | Awaitable[Any]]

# Navigation store listener — receives the new NavigationState snapshot
Listener: TypeAlias = Callable[[Any], None]


class SidebarMode(Enum):
    """How the navigation sidebar is presented."""

    EXPANDED = "expanded"
    COLLAPSED_ICONS = "collapsed-icons"
    HIDDEN = "hidden"


class NavigationPolicy(Enum):
    """Which navigation wins when completions arrive out of order.

    ``LATEST_ISSUED``: the most recently started navigation owns the active
    path; older ones are abandoned and their commits refused.

    ``LATEST_COMPLETED``: whichever navigation finishes last owns it.
    """

    LATEST_ISSUED = "latest-issued"
    LATEST_COMPLETED = "latest-completed"
