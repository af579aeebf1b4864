"""Flatten a host cron array into hook -> instance counts."""

from __future__ import annotations

from typing import Any, Mapping


def cron_job_counts(cron: Any) -> dict[str, int]:
    """Sum scheduled instances per hook.

    The host stores ``{timestamp: {hook: {instance_key: event}}}`` plus
    bookkeeping entries such as ``"version": 2``; anything that is not a
    mapping at either level is skipped.
    """
    counts: dict[str, int] = {}
    if not isinstance(cron, Mapping):
        return counts
    for hooks in cron.values():
        if not isinstance(hooks, Mapping):
            continue
        for hook, instances in hooks.items():
            n = len(instances) if isinstance(instances, (Mapping, list, tuple)) else 0
            counts[str(hook)] = counts.get(str(hook), 0) + n
    return counts
