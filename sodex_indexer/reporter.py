from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from rich import box
from rich.console import Console
from rich.table import Table

from sodex_indexer.domain.models import AccountRecord, Snapshot

_SUMMARY_ROWS = [
    ("range_start", "Range start"),
    ("range_end", "Range end (frontier)"),
    ("previous_latest", "Previous frontier"),
    ("probes", "Frontier probes"),
    ("targets", "Ids processed"),
    ("enriched", "Users enriched"),
    ("new_users", "New users"),
    ("skipped", "Skipped (no address)"),
    ("failed", "Failed"),
    ("stats_missing", "Stats unavailable"),
    ("cache_hits", "Address cache hits"),
    ("address_lookups", "Address lookups"),
    ("requests_sent", "HTTP requests"),
    ("total_users", "Users in snapshot"),
]

SORT_FIELDS = ("pnl", "volume")


def _as_decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return Decimal(0)
    return Decimal(0) if amount.is_nan() else amount


def _format_amount(value: str) -> str:
    return f"{_as_decimal(value):,.2f}"


def print_summary(summary: Dict[str, Any], console: Console | None = None) -> None:
    """
    Render a run summary as a rich table.
    """
    console = console or Console()

    title = "SoDEX Indexer Run"
    if not summary.get("persisted", True):
        title = f"{title} [yellow](dry run)[/yellow]"

    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    for key, label in _SUMMARY_ROWS:
        if key in summary:
            value = summary[key]
            table.add_row(label, f"{value:,}" if isinstance(value, int) else str(value))

    duration = summary.get("duration_seconds")
    if duration is not None:
        table.add_row("Duration (s)", f"{duration:.1f}")
    peak_rss = summary.get("peak_rss_bytes")
    if peak_rss:
        table.add_row("Peak memory (MB)", f"{peak_rss / (1024 * 1024):.2f}")
    if summary.get("snapshot_path"):
        table.add_row("Snapshot", summary["snapshot_path"])

    console.print(table)


def top_accounts(snapshot: Snapshot, limit: int = 20, sort_by: str = "pnl") -> List[AccountRecord]:
    """Accounts with the highest `sort_by` value (decimal comparison), best first."""
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field '{sort_by}'. Available: {', '.join(SORT_FIELDS)}")
    return sorted(
        snapshot.users,
        key=lambda user: _as_decimal(getattr(user, sort_by)),
        reverse=True,
    )[:limit]


def print_top_accounts(
    snapshot: Snapshot,
    limit: int = 20,
    sort_by: str = "pnl",
    console: Console | None = None,
) -> None:
    """
    Render the top accounts of a snapshot as a rich table.
    """
    console = console or Console()

    if not snapshot.users:
        console.print("[yellow]Snapshot has no users.[/yellow]")
        return

    table = Table(
        title=f"Top {limit} accounts by {sort_by}",
        box=box.ROUNDED,
        caption=f"{snapshot.total_users:,} users, updated {snapshot.updated_at}",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Id", justify="right", style="cyan", no_wrap=True)
    table.add_column("Address", style="blue")
    table.add_column("Volume", justify="right", style="green")
    table.add_column("PnL", justify="right", style="bold green")

    for rank, user in enumerate(top_accounts(snapshot, limit, sort_by), start=1):
        pnl_style = "red" if _as_decimal(user.pnl) < 0 else "green"
        table.add_row(
            str(rank),
            str(user.id),
            user.address,
            _format_amount(user.volume),
            f"[{pnl_style}]{_format_amount(user.pnl)}[/{pnl_style}]",
        )

    console.print(table)


__all__ = ["print_summary", "print_top_accounts", "top_accounts", "SORT_FIELDS"]
