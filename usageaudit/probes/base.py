"""Collaborator protocols — what the engine needs from a host platform."""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, runtime_checkable

from usageaudit.models import ExtensionRecord


@runtime_checkable
class ExtensionRegistry(Protocol):
    """Inventory of installed extensions."""

    def list_installed(self) -> list[ExtensionRecord]:
        """Return every installed extension, active or not."""
        ...

    def is_active(self, install_path: str) -> bool:
        """Whether the extension at *install_path* is currently enabled.

        Single-extension lookup for callers outside the engine; a full run
        reads the flag from each :meth:`list_installed` record instead.
        """
        ...


class OptionsStore(Protocol):
    """Global key-value settings."""

    def count_options(self, needle: str) -> int:
        """Count settings whose key OR value contains *needle*."""
        ...


class MetadataStore(Protocol):
    """Per-item key-value metadata."""

    def count_metadata(self, needle: str) -> int:
        """Count metadata entries whose key OR value contains *needle*."""
        ...


class ContentStore(Protocol):
    """Free-text documents with a lifecycle status."""

    def count_content(self, needles: Iterable[str], excluded_statuses: Iterable[str]) -> int:
        """Count items whose body or excerpt contains any of *needles*.

        Items whose status is in *excluded_statuses* are never counted, and
        an item matching several needles or fields counts once.
        """
        ...


class TableCatalog(Protocol):
    """Auxiliary table namespace."""

    table_prefix: str

    def count_tables(self, prefix: str) -> int:
        """Count table names starting with *prefix*."""
        ...


class SchedulerRegistry(Protocol):
    """Pending and recurring scheduled jobs."""

    def job_counts(self) -> Mapping[str, int]:
        """Map each job hook name to its number of scheduled instances.

        May raise :class:`usageaudit.errors.SchedulerUnavailable`.
        """
        ...


@runtime_checkable
class HostPlatform(Protocol):
    """Bundle of every capability a backend hands to the engine.

    ``scheduler`` may be ``None`` when the host has no scheduler.
    """

    name: str
    registry: ExtensionRegistry
    options: OptionsStore
    metadata: MetadataStore
    content: ContentStore
    tables: TableCatalog
    scheduler: SchedulerRegistry | None

    def close(self) -> None:
        ...
