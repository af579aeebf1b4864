"""Scoring — weighted presence score over the five probe counts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from usageaudit.models import ProbeKind

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: dict[ProbeKind, int] = {
    ProbeKind.OPTIONS: 2,
    ProbeKind.METADATA: 2,
    ProbeKind.CONTENT: 3,
    ProbeKind.TABLES: 2,
    ProbeKind.CRON: 1,
}


@dataclass(frozen=True)
class ScoringPolicy:
    """Weight per probe; a probe contributes its weight when its count > 0."""

    weights: Mapping[ProbeKind, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object] | None) -> ScoringPolicy:
        """Build a policy from ``{"options": 2, ...}``.

        Missing, unknown or invalid entries keep the default weight.
        """
        weights = dict(DEFAULT_WEIGHTS)
        for key, value in (raw or {}).items():
            try:
                kind = ProbeKind(str(key).lower())
            except ValueError:
                logger.warning("Ignoring weight for unknown probe %r", key)
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                logger.warning("Ignoring invalid weight %r for %s", value, kind)
                continue
            weights[kind] = value
        return cls(weights=weights)

    @property
    def max_score(self) -> int:
        return sum(self.weights.values())

    def weight(self, kind: ProbeKind) -> int:
        return self.weights.get(kind, 0)


DEFAULT_POLICY = ScoringPolicy()


def score(counts: Mapping[ProbeKind, int], policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    """Sum the weights of every probe whose count is positive."""
    return sum(policy.weight(kind) for kind, count in counts.items() if count > 0)


# ---------------------------------------------------------------------------
# Bands (renderer hints)
# ---------------------------------------------------------------------------


def score_band(usage_score: int) -> str:
    """``unused`` (0-1), ``maybe`` (2-3) or ``used`` (4+)."""
    if usage_score <= 1:
        return "unused"
    if usage_score <= 3:
        return "maybe"
    return "used"
