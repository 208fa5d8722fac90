"""Session-scoped navigation state.

A ``NavigationStore`` holds the two pieces of interactive state every
navigation-aware component shares: the sidebar mode and the active path.
It is created at session start and passed explicitly to the components
that need it — never a module-level singleton, so concurrent sessions stay
isolated::

    with NavigationStore(config) as nav:
        navigator = Navigator(tree, nav, resolvers=resolvers)
        await navigator.navigate("/library/playlists/42")
        nav.is_active("/library")            # True
        nav.is_active("/library/history")    # False

Thread safety:
    The state is a frozen ``NavigationState`` snapshot.  Writers build a new
    snapshot and swap the reference under a ``threading.Lock``; readers just
    read the reference, so they observe either the old or the new snapshot,
    never a mix of the two.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from perch._internal.types import Listener, NavigationPolicy, SidebarMode
from perch.config import PerchConfig
from perch.errors import SessionClosedError
from perch.routing.segments import join_path, split_path

logger = logging.getLogger("perch.navigation")

# Order used by ``toggle_sidebar()``
_SIDEBAR_CYCLE: tuple[SidebarMode, ...] = (
    SidebarMode.EXPANDED,
    SidebarMode.COLLAPSED_ICONS,
    SidebarMode.HIDDEN,
)


@dataclass(frozen=True, slots=True)
class NavigationState:
    """Immutable snapshot of the shared navigation state.

    ``version`` increases by one on every swap.
    """

    sidebar_mode: SidebarMode
    active_path: str
    version: int = 0


@dataclass(frozen=True, slots=True)
class NavigationTicket:
    """Issued when a navigation starts; presented again to commit it."""

    sequence: int
    path: str


class NavigationStore:
    """Shared, atomically swapped sidebar mode and active path.

    Args:
        config: Supplies the initial sidebar mode, the initial active path
            and the out-of-order completion policy.
    """

    __slots__ = ("_closed", "_issued", "_listeners", "_lock", "_policy", "_state")

    def __init__(self, config: PerchConfig | None = None) -> None:
        config = config or PerchConfig()
        self._state = NavigationState(
            sidebar_mode=config.default_sidebar_mode,
            active_path=normalize_path(config.root_path),
        )
        self._policy = config.navigation_policy
        self._lock = threading.Lock()
        self._issued = 0
        self._listeners: list[Listener] = []
        self._closed = False

    # -- Reads --

    @property
    def policy(self) -> NavigationPolicy:
        return self._policy

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> NavigationState:
        """Return the current state as one consistent snapshot."""
        return self._state

    def get_sidebar_mode(self) -> SidebarMode:
        return self._state.sidebar_mode

    def get_active_path(self) -> str:
        return self._state.active_path

    def is_active(self, candidate: str | Sequence[str]) -> bool:
        """Whether *candidate* is a segment-wise prefix of the active path.

        ``/library`` is active under ``/library/playlists/42``;
        ``/lib`` and ``/library/history`` are not.  ``/`` is always active.
        """
        wanted = split_path(candidate)
        active = split_path(self._state.active_path)
        return active[: len(wanted)] == wanted

    # -- Writes --

    def set_sidebar_mode(self, mode: SidebarMode | str) -> None:
        """Set the sidebar mode. Accepts a ``SidebarMode`` or its value."""
        mode = SidebarMode(mode)
        self._swap(lambda s: replace(s, sidebar_mode=mode))

    def toggle_sidebar(self) -> SidebarMode:
        """Advance to the next sidebar mode and return it.

        Cycles expanded -> collapsed icons -> hidden -> expanded.
        """
        def advance(state: NavigationState) -> NavigationState:
            i = _SIDEBAR_CYCLE.index(state.sidebar_mode)
            return replace(state, sidebar_mode=_SIDEBAR_CYCLE[(i + 1) % len(_SIDEBAR_CYCLE)])

        return self._swap(advance).sidebar_mode

    def set_active_path(self, path: str | Sequence[str]) -> None:
        """Record *path* as the active path unconditionally."""
        normalized = normalize_path(path)
        self._swap(lambda s: replace(s, active_path=normalized))

    def begin_navigation(self, path: str | Sequence[str]) -> NavigationTicket:
        """Issue a ticket for a navigation that is about to start."""
        with self._lock:
            self._check_open()
            self._issued += 1
            return NavigationTicket(sequence=self._issued, path=normalize_path(path))

    def is_current(self, ticket: NavigationTicket) -> bool:
        """Whether no navigation was issued after *ticket*."""
        return ticket.sequence == self._issued

    def commit(self, ticket: NavigationTicket, path: str | Sequence[str] | None = None) -> bool:
        """Apply a completed navigation's path according to the policy.

        Under ``LATEST_ISSUED`` the commit is refused if a newer navigation
        was issued meanwhile.  Under ``LATEST_COMPLETED`` it always applies.

        Returns:
            Whether the active path was updated.
        """
        normalized = normalize_path(path if path is not None else ticket.path)
        with self._lock:
            self._check_open()
            if self._policy is NavigationPolicy.LATEST_ISSUED and ticket.sequence != self._issued:
                logger.debug(
                    "Refusing stale commit #%d for %s (latest is #%d)",
                    ticket.sequence, normalized, self._issued,
                )
                return False
            state = replace(
                self._state, active_path=normalized, version=self._state.version + 1,
            )
            self._state = state
            listeners = list(self._listeners)

        logger.debug("Active path -> %s (#%d)", normalized, ticket.sequence)
        self._notify(listeners, state)
        return True

    # -- Listeners --

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with each new snapshot. Returns an unsubscribe callable."""
        with self._lock:
            self._check_open()
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # -- Lifecycle --

    def close(self) -> None:
        """End the session. Further writes raise ``SessionClosedError``."""
        with self._lock:
            self._closed = True
            self._listeners.clear()

    def __enter__(self) -> "NavigationStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Internals --

    def _swap(self, change: Callable[[NavigationState], NavigationState]) -> NavigationState:
        with self._lock:
            self._check_open()
            state = change(self._state)
            state = replace(state, version=self._state.version + 1)
            self._state = state
            listeners = list(self._listeners)
        self._notify(listeners, state)
        return state

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Navigation store is closed")

    @staticmethod
    def _notify(listeners: list[Listener], state: NavigationState) -> None:
        # A failing listener never stops the others
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Navigation listener %r failed", listener)

    def __repr__(self) -> str:
        s = self._state
        return f"<NavigationStore {s.active_path!r} {s.sidebar_mode.value} v{s.version}>"


def normalize_path(path: str | Sequence[str]) -> str:
    """Canonical form of a path: leading ``/``, no empty or trailing segments."""
    return join_path(split_path(path))
