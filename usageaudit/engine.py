"""Analysis engine — inventory, probes, scoring and ranking for one run."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from usageaudit.errors import MalformedPath, RegistryUnavailable
from usageaudit.models import (
    AnalysisResult,
    AnalysisWarning,
    ExtensionRecord,
    ProbeKind,
    UsageReportRow,
)
from usageaudit.probes.base import ExtensionRegistry, HostPlatform
from usageaudit.probes.probes import DEFAULT_EXCLUDED_STATUSES, run_probes
from usageaudit.ranking import rank
from usageaudit.scoring import DEFAULT_POLICY, ScoringPolicy, score
from usageaudit.slug import derive_slug

logger = logging.getLogger(__name__)


def load_inventory(registry: ExtensionRegistry) -> list[ExtensionRecord]:
    """Read every installed extension from *registry*.

    Any failure is fatal and surfaces as :class:`RegistryUnavailable`.
    """
    try:
        records = list(registry.list_installed())
    except RegistryUnavailable:
        raise
    except Exception as exc:
        raise RegistryUnavailable(f"cannot read extension registry: {exc}") from exc
    logger.info("Loaded %d installed extension(s)", len(records))
    return records


class AnalysisEngine:
    """Computes the ranked usage report for every installed extension.

    All host access goes through *host*; nothing is read from global state.
    With ``workers > 1`` extensions are probed on a thread pool, which only
    changes wall-clock time: rows are ranked after collection.
    """

    def __init__(
        self,
        host: HostPlatform,
        policy: ScoringPolicy = DEFAULT_POLICY,
        excluded_statuses: Iterable[str] = DEFAULT_EXCLUDED_STATUSES,
        workers: int = 1,
    ) -> None:
        self.host = host
        self.policy = policy
        self.excluded_statuses = tuple(excluded_statuses)
        self.workers = max(1, int(workers))

    def run_analysis(self) -> AnalysisResult:
        records = load_inventory(self.host.registry)
        result = AnalysisResult()

        unique: list[ExtensionRecord] = []
        seen: set[str] = set()
        for record in records:
            if record.install_path in seen:
                result.warnings.append(AnalysisWarning(
                    kind="duplicate_path",
                    install_path=record.install_path,
                    message="install path listed more than once; keeping the first entry",
                ))
                continue
            seen.add(record.install_path)
            unique.append(record)

        if self.workers > 1 and len(unique) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                analysed = list(pool.map(self._analyse, unique))
        else:
            analysed = [self._analyse(r) for r in unique]

        rows: list[UsageReportRow] = []
        for row, warnings in analysed:
            result.warnings.extend(warnings)
            if row is not None:
                rows.append(row)

        for warning in result.warnings:
            logger.warning("%s: %s", warning.install_path or "<empty>", warning.message)

        result.rows = rank(rows)
        logger.info(
            "Analysed %d extension(s), %d warning(s)",
            len(result.rows), len(result.warnings),
        )
        return result

    # ── per-extension ───────────────────────────────────────────

    def _analyse(
        self, record: ExtensionRecord,
    ) -> tuple[UsageReportRow | None, list[AnalysisWarning]]:
        try:
            slug = derive_slug(record.install_path)
        except MalformedPath as exc:
            return None, [AnalysisWarning(
                kind="malformed_path",
                install_path=record.install_path,
                message=str(exc),
            )]

        outcome = run_probes(slug, record.install_path, self.host, self.excluded_statuses)
        warnings = [
            AnalysisWarning(
                kind="probe_degraded",
                install_path=record.install_path,
                message=str(d),
                probe=ProbeKind(d.probe),
            )
            for d in outcome.degraded
        ]

        counts = outcome.counts()
        row = UsageReportRow(
            name=record.display_name or slug,
            slug=slug,
            install_path=record.install_path,
            is_active=bool(record.is_active),
            options_count=counts.get(ProbeKind.OPTIONS, 0),
            metadata_count=counts.get(ProbeKind.METADATA, 0),
            content_count=counts.get(ProbeKind.CONTENT, 0),
            tables_count=counts.get(ProbeKind.TABLES, 0),
            cron_count=counts.get(ProbeKind.CRON, 0),
            usage_score=score(counts, self.policy),
        )
        return row, warnings


def run_analysis(host: HostPlatform, **kwargs) -> AnalysisResult:
    """Convenience wrapper: ``AnalysisEngine(host, **kwargs).run_analysis()``."""
    return AnalysisEngine(host, **kwargs).run_analysis()
