"""Backend registry — loading and selection of host backends."""

from __future__ import annotations

import importlib
import logging
from importlib.metadata import entry_points
from typing import Any, Callable

from usageaudit.backends.memory import open_snapshot
from usageaudit.backends.sqlite import open_sqlite
from usageaudit.errors import BackendError
from usageaudit.probes.base import HostPlatform

logger = logging.getLogger(__name__)

BackendFactory = Callable[..., HostPlatform]

BUILTIN_BACKENDS: dict[str, BackendFactory] = {
    "snapshot": open_snapshot,
    "sqlite": open_sqlite,
}

ENTRY_POINT_GROUP = "usageaudit.backends"


def _load_entry_point_backends() -> dict[str, BackendFactory]:
    """Load backends registered via the ``usageaudit.backends`` entry-point group."""
    backends: dict[str, BackendFactory] = {}
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            backends[ep.name] = ep.load()
        except Exception as exc:
            logger.warning("Skipping broken backend entry point %r: %s", ep.name, exc)
    return backends


def load_import_backend(import_string: str) -> BackendFactory:
    """Load a factory from ``pkg.module:callable`` (the part after ``import:``)."""
    try:
        module_path, attr = import_string.rsplit(":", 1)
        mod = importlib.import_module(module_path)
        return getattr(mod, attr)
    except (ValueError, ImportError, AttributeError) as exc:
        raise BackendError(f"cannot import backend {import_string!r}: {exc}") from exc


def list_backends() -> dict[str, BackendFactory]:
    """Built-in backends overlaid with entry-point backends, by name."""
    backends = dict(BUILTIN_BACKENDS)
    for name, factory in _load_entry_point_backends().items():
        backends.setdefault(name, factory)
    return backends


def resolve_backend(spec: str) -> BackendFactory:
    """Return the factory for *spec*.

    ``<name>``     — built-in or entry-point backend
    ``import:...`` — factory from an import string
    """
    if spec.startswith("import:"):
        return load_import_backend(spec[len("import:"):])
    if spec in BUILTIN_BACKENDS:
        return BUILTIN_BACKENDS[spec]
    backends = _load_entry_point_backends()
    if spec not in backends:
        raise BackendError(f"No backend named '{spec}'")
    return backends[spec]


def open_backend(spec: str, **options: Any) -> HostPlatform:
    """Resolve *spec* and open it with *options* (db_path, plugins_dir, ...)."""
    factory = resolve_backend(spec)
    host = factory(**options)
    logger.info("Opened %s backend", getattr(host, "name", spec))
    return host
