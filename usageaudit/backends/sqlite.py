"""SQLite backend — a host database laid out like the platform's own tables.

Expected tables (``wp_`` being the configurable prefix)::

    wp_options  (option_name TEXT, option_value TEXT)
    wp_postmeta (meta_key TEXT, meta_value TEXT)
    wp_posts    (post_content TEXT, post_excerpt TEXT, post_status TEXT)

``active_plugins`` and ``cron`` are options holding JSON.  All lookups use
``LIKE`` with escaped wildcards.  SQLite's ``LIKE`` ignores case for ASCII
letters only; the snapshot backend compares the same way (``slug.ascii_lower``)
so both backends count non-ASCII text identically.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping

from usageaudit.backends.cron import cron_job_counts
from usageaudit.backends.plugins_dir import PluginDirectoryRegistry
from usageaudit.errors import BackendError, SchedulerUnavailable
from usageaudit.slug import LIKE_ESCAPE, contains_pattern, prefix_pattern

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^[A-Za-z0-9_]*$")
_ESCAPE = f"ESCAPE '{LIKE_ESCAPE}'"


class SqliteSite:
    """Read-only view of a host database.

    Connections are opened lazily, one per thread, so the engine's thread
    pool can query concurrently.
    """

    name = "sqlite"

    def __init__(
        self,
        db_path: str | Path,
        plugins_dir: str | Path | None = None,
        table_prefix: str = "wp_",
    ) -> None:
        self.db_path = Path(db_path).expanduser()
        if not self.db_path.is_file():
            raise BackendError(f"database not found: {self.db_path}")
        if not _PREFIX_RE.match(table_prefix):
            raise BackendError(f"invalid table prefix: {table_prefix!r}")
        if plugins_dir is None:
            raise BackendError("sqlite backend needs plugins_dir (--plugins-dir)")

        self.table_prefix = table_prefix
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._lock = threading.Lock()

        self.registry = PluginDirectoryRegistry(plugins_dir, self.active_plugins)
        self.options = self
        self.metadata = self
        self.content = self
        self.tables = self
        self.scheduler = self

    # ── connection ──────────────────────────────────────────────

    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            # Each connection is only queried by its own thread; close() may run elsewhere.
            conn = sqlite3.connect(
                f"file:{self.db_path}?mode=ro", uri=True, check_same_thread=False,
            )
            self._local.conn = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    def _scalar(self, sql: str, params: Iterable[Any] = ()) -> Any:
        row = self._conn().execute(sql, tuple(params)).fetchone()
        return row[0] if row else None

    def _option(self, name: str) -> str | None:
        return self._scalar(
            f"SELECT option_value FROM {self.table_prefix}options WHERE option_name = ?",
            (name,),
        )

    def close(self) -> None:
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local = threading.local()

    # ── registry support ────────────────────────────────────────

    def active_plugins(self) -> list[str]:
        raw = self._option("active_plugins")
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("active_plugins option is not JSON; treating all plugins as inactive")
            return []
        if isinstance(value, dict):
            value = list(value.values())
        return [str(v) for v in value] if isinstance(value, list) else []

    # ── surfaces ────────────────────────────────────────────────

    def count_options(self, needle: str) -> int:
        like = contains_pattern(needle)
        return int(self._scalar(
            f"SELECT COUNT(*) FROM {self.table_prefix}options "
            f"WHERE option_name LIKE ? {_ESCAPE} OR option_value LIKE ? {_ESCAPE}",
            (like, like),
        ) or 0)

    def count_metadata(self, needle: str) -> int:
        like = contains_pattern(needle)
        return int(self._scalar(
            f"SELECT COUNT(*) FROM {self.table_prefix}postmeta "
            f"WHERE meta_key LIKE ? {_ESCAPE} OR meta_value LIKE ? {_ESCAPE}",
            (like, like),
        ) or 0)

    def count_content(self, needles: Iterable[str], excluded_statuses: Iterable[str]) -> int:
        likes = [contains_pattern(n) for n in needles]
        if not likes:
            return 0
        excluded = list(excluded_statuses)
        clauses = []
        params: list[str] = []
        for column in ("post_content", "post_excerpt"):
            for like in likes:
                clauses.append(f"{column} LIKE ? {_ESCAPE}")
                params.append(like)
        sql = f"SELECT COUNT(*) FROM {self.table_prefix}posts WHERE ({' OR '.join(clauses)})"
        if excluded:
            sql += f" AND post_status NOT IN ({', '.join('?' for _ in excluded)})"
            params.extend(excluded)
        return int(self._scalar(sql, params) or 0)

    def count_tables(self, prefix: str) -> int:
        return int(self._scalar(
            f"SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name LIKE ? {_ESCAPE}",
            (prefix_pattern(prefix),),
        ) or 0)

    def job_counts(self) -> Mapping[str, int]:
        raw = self._option("cron")
        if raw is None:
            return {}
        try:
            cron = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SchedulerUnavailable(f"cron option is not JSON: {exc}") from exc
        return cron_job_counts(cron)


def open_sqlite(
    db_path: str | None = None,
    plugins_dir: str | None = None,
    table_prefix: str = "wp_",
    **_: Any,
) -> SqliteSite:
    """Backend factory for ``--backend sqlite``."""
    if not db_path:
        raise BackendError("sqlite backend needs db_path (--db)")
    return SqliteSite(db_path, plugins_dir=plugins_dir, table_prefix=table_prefix)
