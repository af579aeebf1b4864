"""Exception hierarchy for usageaudit."""

from __future__ import annotations


class UsageAuditError(Exception):
    """Base class for every error raised by usageaudit."""


class RegistryUnavailable(UsageAuditError):
    """The extension inventory could not be read; the run is aborted."""


class ProbeDegraded(UsageAuditError):
    """A probe's data surface failed; its count falls back to 0."""

    def __init__(self, probe: str, install_path: str, reason: str) -> None:
        super().__init__(f"{probe} probe degraded for {install_path}: {reason}")
        self.probe = probe
        self.install_path = install_path
        self.reason = reason


class MalformedPath(UsageAuditError):
    """An install path cannot be turned into a usable slug."""

    def __init__(self, install_path: str, reason: str = "empty install path") -> None:
        super().__init__(f"malformed install path {install_path!r}: {reason}")
        self.install_path = install_path
        self.reason = reason


class SchedulerUnavailable(UsageAuditError):
    """The host scheduler cannot be enumerated."""


class BackendError(UsageAuditError):
    """A host backend is unknown or cannot be opened."""
