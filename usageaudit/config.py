"""Unified configuration loader for usageaudit.

Configuration is resolved in priority order: **project > user > defaults**.

1. **Project-level** — ``.usageaudit.yml`` in (or above) the working directory.
2. **User-level** — ``~/.usageaudit/config.yml``.
3. **Built-in defaults** — the original weights and statuses.

Both files share the same format::

    analysis:
      weights: {options: 2, metadata: 2, content: 3, tables: 2, cron: 1}
      excluded_statuses: [auto-draft, trash]
      workers: 1

    backend:
      name: sqlite
      db_path: site.db
      plugins_dir: wp-content/plugins
      table_prefix: wp_

    report:
      format: text
      color: true

Project-level values override user-level values.  CLI flags override both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from usageaudit.probes.probes import DEFAULT_EXCLUDED_STATUSES
from usageaudit.scoring import ScoringPolicy

CONFIG_FILENAME = ".usageaudit.yml"
USER_CONFIG_DIR = Path.home() / ".usageaudit"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yml"

REPORT_FORMATS = ("text", "json", "csv")
_SECTIONS = ("analysis", "backend", "report")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class AnalysisConfig:
    """Engine sub-configuration."""

    policy: ScoringPolicy = field(default_factory=ScoringPolicy)
    excluded_statuses: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_STATUSES)
    )
    workers: int = 1


@dataclass
class BackendConfig:
    """Host backend sub-configuration."""

    name: str = "sqlite"
    db_path: str | None = None
    snapshot_path: str | None = None
    plugins_dir: str | None = None
    table_prefix: str = "wp_"

    def factory_options(self) -> dict[str, Any]:
        """Keyword arguments handed to the backend factory."""
        return {
            "db_path": self.db_path,
            "snapshot_path": self.snapshot_path,
            "plugins_dir": self.plugins_dir,
            "table_prefix": self.table_prefix,
        }


@dataclass
class ReportConfig:
    format: str = "text"
    color: bool = True


@dataclass
class UsageAuditConfig:
    """Top-level configuration container."""

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    # Where the effective config was loaded from (None = defaults only).
    project_config_path: str | None = None
    user_config_path: str | None = None


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(
    search_path: str | None = None,
    config_path: str | Path | None = None,
) -> UsageAuditConfig:
    """Load merged configuration (project > user > defaults).

    Parameters
    ----------
    search_path:
        Directory to search for ``.usageaudit.yml``.  When *None*, only
        the user-level file (and defaults) are considered.
    config_path:
        Explicit config file path.  When given, *only* this file is
        loaded (no project/user search).
    """
    if config_path is not None:
        raw = _load_yaml(Path(config_path))
        cfg = _raw_to_config(raw)
        cfg.project_config_path = str(config_path) if raw is not None else None
        return cfg

    user_raw = _load_yaml(USER_CONFIG_PATH)
    user_source = str(USER_CONFIG_PATH) if user_raw else None

    project_raw: dict | None = None
    project_source: str | None = None
    if search_path is not None:
        project_path = _find_project_config(search_path)
        if project_path is not None:
            project_raw = _load_yaml(project_path)
            project_source = str(project_path)

    cfg = _raw_to_config(_merge_raw(project_raw, user_raw))
    cfg.project_config_path = project_source
    cfg.user_config_path = user_source
    return cfg


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _find_project_config(search_path: str) -> Path | None:
    """Search for ``.usageaudit.yml`` in *search_path* and ancestors."""
    p = Path(search_path)
    candidates = [p / CONFIG_FILENAME]
    for parent in p.parents:
        candidates.append(parent / CONFIG_FILENAME)
        if (parent / ".git").exists():
            break
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _load_yaml(path: Path) -> dict | None:
    """Load a YAML file, returning *None* on missing/invalid files."""
    path = path.expanduser()
    if not path.is_file():
        return None
    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError):
        return None
    return raw if isinstance(raw, dict) else None


def _merge_raw(project: dict | None, user: dict | None) -> dict:
    """Merge project and user raw dicts section by section (project wins)."""
    base: dict = {}
    for layer in (user, project):
        if not layer:
            continue
        for key in _SECTIONS:
            section = layer.get(key)
            if isinstance(section, dict):
                base.setdefault(key, {}).update(section)
    return base


def _section(raw: dict, key: str) -> dict:
    section = raw.get(key, {})
    return section if isinstance(section, dict) else {}


def _raw_to_config(raw: dict | None) -> UsageAuditConfig:
    """Convert a raw YAML dict to a ``UsageAuditConfig``."""
    if not raw:
        return UsageAuditConfig()

    analysis_raw = _section(raw, "analysis")
    backend_raw = _section(raw, "backend")
    report_raw = _section(raw, "report")

    weights = analysis_raw.get("weights")
    statuses = analysis_raw.get("excluded_statuses")
    analysis = AnalysisConfig(
        policy=ScoringPolicy.from_mapping(weights if isinstance(weights, dict) else None),
        excluded_statuses=(
            _as_list(statuses) if statuses is not None else list(DEFAULT_EXCLUDED_STATUSES)
        ),
        workers=_as_int(analysis_raw.get("workers"), 1, minimum=1),
    )

    backend = BackendConfig(
        name=str(backend_raw.get("name", "sqlite")),
        db_path=_as_opt_str(backend_raw.get("db_path")),
        snapshot_path=_as_opt_str(backend_raw.get("snapshot_path")),
        plugins_dir=_as_opt_str(backend_raw.get("plugins_dir")),
        table_prefix=str(backend_raw.get("table_prefix", "wp_")),
    )

    fmt = str(report_raw.get("format", "text")).lower()
    report = ReportConfig(
        format=fmt if fmt in REPORT_FORMATS else "text",
        color=bool(report_raw.get("color", True)),
    )

    return UsageAuditConfig(analysis=analysis, backend=backend, report=report)


def _as_list(val: object) -> list[str]:
    """Coerce a value to a list of strings."""
    if isinstance(val, list):
        return [str(v) for v in val]
    if isinstance(val, str):
        return [val]
    return []


def _as_opt_str(val: object) -> str | None:
    return None if val is None or val == "" else str(val)


def _as_int(val: object, default: int, minimum: int = 0) -> int:
    try:
        n = int(val)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return n if n >= minimum else default
