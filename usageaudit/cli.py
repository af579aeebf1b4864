"""CLI — click-based command-line interface."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from usageaudit.backends.registry import list_backends, open_backend
from usageaudit.config import REPORT_FORMATS, load_config
from usageaudit.engine import AnalysisEngine
from usageaudit.errors import BackendError, RegistryUnavailable
from usageaudit.report import render, resolve_output_path


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
def main() -> None:
    """usageaudit — which plugins is this site actually using?"""


# ───────────────────────────────────────────────────────────────────
# run
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.option("--backend", "backend_spec", default=None,
              help="sqlite | snapshot | <entry point> | import:pkg.module:factory")
@click.option("--db", "db_path", default=None, type=click.Path(),
              help="SQLite host database (sqlite backend).")
@click.option("--snapshot", "snapshot_path", default=None, type=click.Path(),
              help="YAML site snapshot (snapshot backend).")
@click.option("--plugins-dir", "plugins_dir", default=None, type=click.Path(),
              help="Plugins directory to read plugin headers from.")
@click.option("--table-prefix", "table_prefix", default=None,
              help="Host table prefix (default: wp_).")
@click.option("--workers", "workers", default=None, type=click.IntRange(min=1),
              help="Probe extensions on N threads (default 1).")
@click.option("--format", "fmt", default=None,
              type=click.Choice(list(REPORT_FORMATS), case_sensitive=False),
              help="Output format.")
@click.option("--output", "output", default=None, type=click.Path(),
              help="Write the report to a file (or directory) instead of stdout.")
@click.option("--no-color", "no_color", is_flag=True, default=False,
              help="Disable ANSI colours in text output.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True),
              help="Load only this config file.")
@click.option("-v", "--verbose", is_flag=True, default=False,
              help="Debug logging on stderr.")
def run(
    backend_spec: str | None,
    db_path: str | None,
    snapshot_path: str | None,
    plugins_dir: str | None,
    table_prefix: str | None,
    workers: int | None,
    fmt: str | None,
    output: str | None,
    no_color: bool,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Analyse every installed plugin and print the ranked usage report."""
    _setup_logging(verbose)

    # --- load config (.usageaudit.yml) ---
    cfg = load_config(search_path=str(Path.cwd()), config_path=config_path)

    # CLI flags override config values
    backend_cfg = cfg.backend
    if db_path is not None:
        backend_cfg.db_path = db_path
    if snapshot_path is not None:
        backend_cfg.snapshot_path = snapshot_path
    if plugins_dir is not None:
        backend_cfg.plugins_dir = plugins_dir
    if table_prefix is not None:
        backend_cfg.table_prefix = table_prefix
    effective_backend = backend_spec or (
        "snapshot" if snapshot_path and not db_path else backend_cfg.name
    )
    effective_fmt = (fmt or cfg.report.format).lower()
    effective_workers = workers if workers is not None else cfg.analysis.workers
    color = cfg.report.color and not no_color and output is None

    # --- backend ---
    try:
        host = open_backend(effective_backend, **backend_cfg.factory_options())
    except BackendError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    # --- analysis ---
    engine = AnalysisEngine(
        host,
        policy=cfg.analysis.policy,
        excluded_statuses=cfg.analysis.excluded_statuses,
        workers=effective_workers,
    )
    try:
        result = engine.run_analysis()
    except RegistryUnavailable as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    finally:
        host.close()

    # --- output ---
    text = render(result, effective_fmt, color=color)
    if output:
        dest = resolve_output_path(output, effective_fmt)
        try:
            dest.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        except OSError as exc:
            click.echo(f"Error: cannot write report to {dest}: {exc.strerror or exc}", err=True)
            sys.exit(1)
        click.echo(f"Report written to {dest}", err=True)
    else:
        click.echo(text, nl=not text.endswith("\n"))


# ───────────────────────────────────────────────────────────────────
# backends
# ───────────────────────────────────────────────────────────────────

@main.group()
def backends() -> None:
    """Inspect available host backends."""


@backends.command("list")
def backends_list() -> None:
    """List available backends."""
    all_backends = list_backends()
    click.echo(f"{'Name':<20} {'Factory'}")
    click.echo("-" * 60)
    for name in sorted(all_backends):
        factory = all_backends[name]
        click.echo(f"{name:<20} {factory.__module__}.{factory.__qualname__}")
