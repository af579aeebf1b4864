"""Data models used throughout usageaudit."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator

# ---------------------------------------------------------------------------
# Probe kind
# ---------------------------------------------------------------------------


class ProbeKind(str, enum.Enum):
    """The five data surfaces probed for an extension's footprint."""

    OPTIONS = "options"
    METADATA = "metadata"
    CONTENT = "content"
    TABLES = "tables"
    CRON = "cron"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Extension record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtensionRecord:
    """One installed extension as reported by the registry."""

    install_path: str
    display_name: str = ""
    is_active: bool = False


# ---------------------------------------------------------------------------
# Probe result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProbeResult:
    """Match count from one probe for one extension."""

    kind: ProbeKind
    count: int = 0
    degraded: bool = False

    @property
    def present(self) -> bool:
        return self.count > 0


# ---------------------------------------------------------------------------
# Report row
# ---------------------------------------------------------------------------

EXPORT_FIELDS: tuple[str, ...] = (
    "name",
    "slug",
    "install_path",
    "is_active",
    "options_count",
    "metadata_count",
    "content_count",
    "tables_count",
    "cron_count",
    "usage_score",
)


@dataclass(frozen=True)
class UsageReportRow:
    """Usage footprint of a single extension."""

    name: str
    slug: str
    install_path: str
    is_active: bool
    options_count: int = 0
    metadata_count: int = 0
    content_count: int = 0
    tables_count: int = 0
    cron_count: int = 0
    usage_score: int = 0

    def count_for(self, kind: ProbeKind) -> int:
        return getattr(self, f"{kind.value}_count")

    def as_record(self) -> tuple:
        """Field values in export column order."""
        return tuple(getattr(self, name) for name in EXPORT_FIELDS)


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisWarning:
    """A non-fatal condition recorded during a run."""

    kind: str  # malformed_path | probe_degraded | duplicate_path
    install_path: str
    message: str
    probe: ProbeKind | None = None


# ---------------------------------------------------------------------------
# Analysis result (aggregate)
# ---------------------------------------------------------------------------


@dataclass
class AnalysisResult:
    """Ranked rows of one analysis run, plus anything that degraded."""

    rows: list[UsageReportRow] = field(default_factory=list)
    warnings: list[AnalysisWarning] = field(default_factory=list)

    def __iter__(self) -> Iterator[UsageReportRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> UsageReportRow:
        return self.rows[index]

    # ---- helpers ----
    @property
    def degraded_probes(self) -> list[AnalysisWarning]:
        return [w for w in self.warnings if w.kind == "probe_degraded"]
