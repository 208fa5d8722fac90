"""Perch configuration.

PerchConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path

from perch._internal.types import NavigationPolicy, SidebarMode
from perch.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class PerchConfig:
    """Routing and navigation configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = PerchConfig(pages_dir="app", resolve_timeout=5.0)
    """

    # Filesystem discovery
    pages_dir: str | Path = "pages"
    layout_file: str = "_layout.html"
    page_file: str = "page.html"

    # Navigation state defaults
    default_sidebar_mode: SidebarMode = SidebarMode.EXPANDED
    root_path: str = "/"
    navigation_policy: NavigationPolicy = NavigationPolicy.LATEST_ISSUED

    # Param resolution (seconds, None = wait indefinitely)
    resolve_timeout: float | None = None

    # Templates
    autoescape: bool = True
    auto_reload: bool = False

    def __post_init__(self) -> None:
        if not self.layout_file or "/" in self.layout_file:
            msg = f"layout_file must be a bare file name, got {self.layout_file!r}"
            raise ConfigurationError(msg)
        if not self.page_file or "/" in self.page_file:
            msg = f"page_file must be a bare file name, got {self.page_file!r}"
            raise ConfigurationError(msg)
        if self.layout_file == self.page_file:
            msg = "layout_file and page_file must differ"
            raise ConfigurationError(msg)
        if not self.root_path.startswith("/"):
            msg = f"root_path must start with '/', got {self.root_path!r}"
            raise ConfigurationError(msg)
        if self.resolve_timeout is not None and self.resolve_timeout <= 0:
            msg = f"resolve_timeout must be positive, got {self.resolve_timeout!r}"
            raise ConfigurationError(msg)
