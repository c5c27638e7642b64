from __future__ import annotations

import sys
from typing import Optional

import typer

from sodex_indexer.config import get_settings
from sodex_indexer.orchestrator import load_snapshot, run_indexer
from sodex_indexer.reporter import SORT_FIELDS, print_summary, print_top_accounts
from sodex_indexer.utils.logging import configure_logging, get_logger

app = typer.Typer(help="SoDEX account indexer CLI.")
log = get_logger(__name__)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"address={settings.address_url_template} | pnl={settings.pnl_url_template}\n"
        f"start_id={settings.start_id} step={settings.probe_step} "
        f"concurrency={settings.concurrency} timeout={settings.request_timeout_seconds}s "
        f"retries={settings.retry_count} delay={settings.retry_delay_seconds}s\n"
        f"snapshot={settings.snapshot_path}"
    )


@app.command()
def run(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Snapshot file to read and update (default from settings).",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        min=1,
        help="Number of enrichment workers (default from settings).",
    ),
    start_id: Optional[int] = typer.Option(
        None,
        "--start-id",
        min=0,
        help="Lowest account id to process (default from settings).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Scan and enrich but do not write the snapshot.",
    ),
    json_logs: Optional[bool] = typer.Option(
        None,
        "--json-logs/--no-json-logs",
        help="Emit JSON log lines (default from settings).",
    ),
) -> None:
    """
    Discover new accounts, refresh every account's stats and save the snapshot.
    """
    settings = get_settings()
    overrides = {
        key: value
        for key, value in {
            "snapshot_path": output,
            "concurrency": concurrency,
            "start_id": start_id,
            "log_json": json_logs,
        }.items()
        if value is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        summary = run_indexer(settings, persist=not dry_run)
    except OSError as exc:
        log.error(f"[RUN FAILED] Could not write snapshot: {exc}")
        typer.echo(f"Failed to write snapshot {settings.snapshot_path}: {exc}", err=True)
        raise typer.Exit(code=1)

    print_summary(summary)
    typer.echo(f"Success! {summary['enriched']} users saved to {summary['snapshot_path']}")


@app.command()
def show(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Snapshot file to read (default from settings).",
    ),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of accounts to list."),
    sort_by: str = typer.Option(
        "pnl",
        "--sort-by",
        "-s",
        help=f"Field to rank by ({', '.join(SORT_FIELDS)}).",
    ),
) -> None:
    """
    Print the top accounts of an existing snapshot.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    if sort_by not in SORT_FIELDS:
        raise typer.BadParameter(
            f"must be one of {', '.join(SORT_FIELDS)}", param_hint="--sort-by"
        )
    snapshot = load_snapshot(output or settings.snapshot_path)
    print_top_accounts(snapshot, limit=limit, sort_by=sort_by)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
