"""Ranking — deterministic order of report rows."""

from __future__ import annotations

from typing import Iterable

from usageaudit.models import UsageReportRow


def rank_key(row: UsageReportRow) -> tuple:
    """Score desc, active before inactive, name asc (case-insensitive)."""
    return (-row.usage_score, not row.is_active, row.name.casefold())


def rank(rows: Iterable[UsageReportRow]) -> list[UsageReportRow]:
    """Return *rows* sorted by :func:`rank_key`.

    ``sorted`` is stable, so rows equal on every key keep their input order.
    """
    return sorted(rows, key=rank_key)
