"""Footprint probes — count slug references on each data surface."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from usageaudit.errors import ProbeDegraded, SchedulerUnavailable
from usageaudit.models import ProbeKind, ProbeResult
from usageaudit.probes.base import (
    ContentStore,
    HostPlatform,
    MetadataStore,
    OptionsStore,
    SchedulerRegistry,
    TableCatalog,
)
from usageaudit.slug import contains_slug

logger = logging.getLogger(__name__)

# Content in these states is ephemeral or discarded.
DEFAULT_EXCLUDED_STATUSES: tuple[str, ...] = ("auto-draft", "trash")


# ---------------------------------------------------------------------------
# Individual probes
# ---------------------------------------------------------------------------


def probe_options(slug: str, store: OptionsStore) -> int:
    return int(store.count_options(slug))


def probe_metadata(slug: str, store: MetadataStore) -> int:
    return int(store.count_metadata(slug))


def probe_content(
    slug: str,
    store: ContentStore,
    excluded_statuses: Iterable[str] = DEFAULT_EXCLUDED_STATUSES,
) -> int:
    """Count live content referencing *slug*, as a shortcode (``[slug``) or plain text."""
    return int(store.count_content(["[" + slug, slug], tuple(excluded_statuses)))


def probe_tables(slug: str, catalog: TableCatalog) -> int:
    """Count tables named ``<table_prefix><slug>*``; rows inside are not counted."""
    return int(catalog.count_tables(catalog.table_prefix + slug))


def probe_cron(slug: str, scheduler: SchedulerRegistry | None) -> int:
    """Total scheduled instances across every hook whose name contains *slug*."""
    if scheduler is None:
        return 0
    return sum(
        int(count)
        for hook, count in scheduler.job_counts().items()
        if contains_slug(str(hook), slug)
    )


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


@dataclass
class ProbeOutcome:
    """All five probe results for one extension."""

    results: dict[ProbeKind, ProbeResult] = field(default_factory=dict)
    degraded: list[ProbeDegraded] = field(default_factory=list)

    def counts(self) -> dict[ProbeKind, int]:
        return {kind: r.count for kind, r in self.results.items()}


def _probe_table(
    host: HostPlatform,
    excluded_statuses: Iterable[str],
) -> list[tuple[ProbeKind, Callable[[str], int]]]:
    return [
        (ProbeKind.OPTIONS, lambda s: probe_options(s, host.options)),
        (ProbeKind.METADATA, lambda s: probe_metadata(s, host.metadata)),
        (ProbeKind.CONTENT, lambda s: probe_content(s, host.content, excluded_statuses)),
        (ProbeKind.TABLES, lambda s: probe_tables(s, host.tables)),
        (ProbeKind.CRON, lambda s: probe_cron(s, host.scheduler)),
    ]


def run_probes(
    slug: str,
    install_path: str,
    host: HostPlatform,
    excluded_statuses: Iterable[str] = DEFAULT_EXCLUDED_STATUSES,
) -> ProbeOutcome:
    """Run every probe for *slug*.

    A probe whose surface raises is reported as degraded with count 0;
    the remaining probes still run.
    """
    outcome = ProbeOutcome()
    for kind, probe in _probe_table(host, tuple(excluded_statuses)):
        try:
            count = probe(slug)
        except Exception as exc:
            if isinstance(exc, SchedulerUnavailable):
                reason = str(exc) or "scheduler unavailable"
            else:
                logger.debug("%s probe failed for %s", kind, install_path, exc_info=True)
                reason = f"{type(exc).__name__}: {exc}"
            outcome.degraded.append(ProbeDegraded(str(kind), install_path, reason))
            outcome.results[kind] = ProbeResult(kind, 0, degraded=True)
            continue
        logger.debug("%s probe for %s (%s): %d", kind, install_path, slug, count)
        outcome.results[kind] = ProbeResult(kind, max(count, 0))
    return outcome
