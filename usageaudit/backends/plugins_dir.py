"""Plugin registry backed by a plugins directory on disk.

A plugin is a ``*.php`` file, either directly in the plugins directory or
one level down, whose header comment carries ``Plugin Name:``.  Its install
path is the file path relative to the plugins directory, using ``/``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterable

from usageaudit.errors import RegistryUnavailable
from usageaudit.models import ExtensionRecord

logger = logging.getLogger(__name__)

# Only the head of each file is read for headers.
HEADER_BYTES = 8192

_NAME_HEADER = re.compile(r"^[ \t/*#@]*Plugin Name:(.*)$", re.IGNORECASE | re.MULTILINE)


def read_plugin_name(path: Path) -> str | None:
    """Return the ``Plugin Name:`` header of *path*, or None if it has none."""
    try:
        with open(path, "rb") as f:
            head = f.read(HEADER_BYTES).decode("utf-8", errors="replace")
    except OSError:
        return None
    m = _NAME_HEADER.search(head)
    if m is None:
        return None
    # Trailing "*/" closes a one-line header comment.
    name = re.sub(r"\s*(?:\*/|\?>).*$", "", m.group(1)).strip()
    return name or None


def find_plugin_files(plugins_dir: Path) -> dict[str, str]:
    """Map install path -> display name for every plugin under *plugins_dir*."""
    found: dict[str, str] = {}
    candidates: list[Path] = []
    for child in sorted(plugins_dir.iterdir()):
        if child.name.startswith("."):
            continue
        if child.is_dir():
            candidates.extend(
                sorted(f for f in child.iterdir() if f.suffix == ".php" and f.is_file())
            )
        elif child.suffix == ".php" and child.is_file():
            candidates.append(child)

    for path in candidates:
        name = read_plugin_name(path)
        if name is None:
            continue
        found[path.relative_to(plugins_dir).as_posix()] = name
    return found


class PluginDirectoryRegistry:
    """``ExtensionRegistry`` reading plugin headers from disk.

    *active_plugins* is called on every inventory read so activation state
    is always current.
    """

    def __init__(
        self,
        plugins_dir: str | Path,
        active_plugins: Callable[[], Iterable[str]] = lambda: (),
    ) -> None:
        self.plugins_dir = Path(plugins_dir).expanduser()
        self._active_plugins = active_plugins

    def list_installed(self) -> list[ExtensionRecord]:
        if not self.plugins_dir.is_dir():
            raise RegistryUnavailable(f"plugins directory not found: {self.plugins_dir}")
        try:
            plugins = find_plugin_files(self.plugins_dir)
        except OSError as exc:
            raise RegistryUnavailable(f"cannot list {self.plugins_dir}: {exc}") from exc
        active = set(self._active_plugins())
        logger.debug("Found %d plugin file(s) in %s", len(plugins), self.plugins_dir)
        return [
            ExtensionRecord(install_path=path, display_name=name, is_active=path in active)
            for path, name in plugins.items()
        ]

    def is_active(self, install_path: str) -> bool:
        return install_path in set(self._active_plugins())
