"""Snapshot backend — an in-memory host, optionally loaded from YAML.

Snapshot file format::

    table_prefix: wp_
    plugins:
      - path: akismet/akismet.php
        name: Akismet
        active: true
    options:
      akismet_key: abc123
    postmeta:
      - [_akismet_result, "false"]
    posts:
      - {status: publish, content: "[contact-form-7 id=1]", excerpt: ""}
    tables: [wp_akismet_log]
    cron:                      # omit for a host without a scheduler
      "1700000000":
        akismet_scheduled_delete: {abc: {schedule: daily}}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from usageaudit.backends.cron import cron_job_counts
from usageaudit.errors import BackendError, SchedulerUnavailable
from usageaudit.models import ExtensionRecord
from usageaudit.slug import ascii_lower, contains_slug

logger = logging.getLogger(__name__)


@dataclass
class Post:
    status: str = "publish"
    content: str = ""
    excerpt: str = ""


# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------


class MemoryRegistry:
    def __init__(self, records: Iterable[ExtensionRecord]) -> None:
        self._records = list(records)

    def list_installed(self) -> list[ExtensionRecord]:
        return list(self._records)

    def is_active(self, install_path: str) -> bool:
        return any(r.is_active for r in self._records if r.install_path == install_path)


class MemoryKeyValueStore:
    """Key/value pairs searched by substring on either side."""

    def __init__(self, pairs: Iterable[tuple[str, Any]]) -> None:
        self._pairs = [(str(k), "" if v is None else str(v)) for k, v in pairs]

    def _count(self, needle: str) -> int:
        return sum(
            1 for k, v in self._pairs
            if contains_slug(k, needle) or contains_slug(v, needle)
        )

    count_options = _count
    count_metadata = _count


class MemoryContentStore:
    def __init__(self, posts: Iterable[Post]) -> None:
        self._posts = list(posts)

    def count_content(self, needles: Iterable[str], excluded_statuses: Iterable[str]) -> int:
        needles = list(needles)
        excluded = set(excluded_statuses)
        return sum(
            1 for p in self._posts
            if p.status not in excluded
            and any(contains_slug(p.content, n) or contains_slug(p.excerpt, n) for n in needles)
        )


class MemoryTableCatalog:
    def __init__(self, tables: Iterable[str], table_prefix: str = "wp_") -> None:
        self._tables = sorted(set(tables))
        self.table_prefix = table_prefix

    def count_tables(self, prefix: str) -> int:
        folded = ascii_lower(prefix)
        return sum(1 for t in self._tables if ascii_lower(t).startswith(folded))


class MemoryScheduler:
    def __init__(self, counts: Mapping[str, int] | None) -> None:
        self._counts = None if counts is None else dict(counts)

    def job_counts(self) -> Mapping[str, int]:
        if self._counts is None:
            raise SchedulerUnavailable("no cron data in snapshot")
        return dict(self._counts)


# ---------------------------------------------------------------------------
# Host
# ---------------------------------------------------------------------------


class SnapshotSite:
    """A complete host held in memory.

    Passing ``cron=None`` models a host without a scheduler.
    """

    name = "snapshot"

    def __init__(
        self,
        plugins: Iterable[ExtensionRecord] = (),
        options: Mapping[str, Any] | None = None,
        postmeta: Iterable[tuple[str, Any]] = (),
        posts: Iterable[Post] = (),
        tables: Iterable[str] = (),
        cron: Mapping[str, int] | None = None,
        table_prefix: str = "wp_",
    ) -> None:
        self.registry = MemoryRegistry(plugins)
        self.options = MemoryKeyValueStore((options or {}).items())
        self.metadata = MemoryKeyValueStore(postmeta)
        self.content = MemoryContentStore(posts)
        self.tables = MemoryTableCatalog(tables, table_prefix)
        self.scheduler = MemoryScheduler(cron) if cron is not None else None

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_snapshot(path: str | Path) -> SnapshotSite:
    """Parse a YAML snapshot file into a :class:`SnapshotSite`."""
    p = Path(path).expanduser()
    if not p.is_file():
        raise BackendError(f"snapshot file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise BackendError(f"invalid snapshot {p}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise BackendError(f"snapshot {p} must be a mapping")
    return snapshot_from_dict(raw)


_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}


def _as_bool(value: Any, path: Any) -> bool:
    """Read a plugin's ``active`` flag; quoted YAML booleans are accepted."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        folded = value.strip().lower()
        if folded in _TRUE_STRINGS:
            return True
        if folded in _FALSE_STRINGS:
            return False
    raise BackendError(f"invalid active flag {value!r} for plugin {path!r}")


def snapshot_from_dict(raw: Mapping[str, Any]) -> SnapshotSite:
    plugins = [
        ExtensionRecord(
            install_path=str(entry.get("path") or ""),
            display_name=str(entry.get("name", "") or ""),
            is_active=_as_bool(entry.get("active"), entry.get("path")),
        )
        for entry in raw.get("plugins") or []
        if isinstance(entry, dict)
    ]

    options = raw.get("options") or {}
    if not isinstance(options, dict):
        options = {}

    postmeta: list[tuple[str, Any]] = []
    for entry in raw.get("postmeta") or []:
        if isinstance(entry, dict):
            postmeta.append((str(entry.get("key", "")), entry.get("value")))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            postmeta.append((str(entry[0]), entry[1]))

    posts = [
        Post(
            status=str(entry.get("status", "publish")),
            content=str(entry.get("content", "") or ""),
            excerpt=str(entry.get("excerpt", "") or ""),
        )
        for entry in raw.get("posts") or []
        if isinstance(entry, dict)
    ]

    cron_raw = raw.get("cron")
    cron = cron_job_counts(cron_raw) if cron_raw is not None else None

    site = SnapshotSite(
        plugins=plugins,
        options=options,
        postmeta=postmeta,
        posts=posts,
        tables=[str(t) for t in raw.get("tables") or []],
        cron=cron,
        table_prefix=str(raw.get("table_prefix", "wp_")),
    )
    logger.debug("Loaded snapshot with %d plugin(s)", len(plugins))
    return site


def open_snapshot(snapshot_path: str | None = None, **_: Any) -> SnapshotSite:
    """Backend factory for ``--backend snapshot``."""
    if not snapshot_path:
        raise BackendError("snapshot backend needs snapshot_path (--snapshot)")
    return load_snapshot(snapshot_path)
