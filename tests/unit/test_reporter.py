from __future__ import annotations

import pytest
from rich.console import Console

from sodex_indexer.domain.models import AccountRecord, Snapshot
from sodex_indexer.reporter import print_summary, print_top_accounts, top_accounts


def _snapshot() -> Snapshot:
    return Snapshot.from_records(
        [
            AccountRecord(id=1000, address="0xa", volume="500", pnl="9.5"),
            AccountRecord(id=1001, address="0xb", volume="90", pnl="10"),
            AccountRecord(id=1002, address="0xc", volume="1000.01", pnl="-4"),
        ]
    )


def test_top_accounts_compares_as_decimals():
    assert [u.id for u in top_accounts(_snapshot(), sort_by="pnl")] == [1001, 1000, 1002]
    assert [u.id for u in top_accounts(_snapshot(), limit=2, sort_by="volume")] == [1002, 1000]


def test_top_accounts_rejects_unknown_field():
    with pytest.raises(ValueError, match="Unknown sort field"):
        top_accounts(_snapshot(), sort_by="address")


def test_print_top_accounts_renders_rows():
    console = Console(record=True, width=160)

    print_top_accounts(_snapshot(), limit=3, console=console)

    text = console.export_text()
    assert "Top 3 accounts by pnl" in text
    assert "1,000.01" in text
    assert "-4.00" in text


def test_print_top_accounts_handles_empty_snapshot():
    console = Console(record=True)

    print_top_accounts(Snapshot.empty(), console=console)

    assert "no users" in console.export_text()


def test_print_summary_renders_counts():
    console = Console(record=True, width=120)

    print_summary(
        {
            "range_start": 1000,
            "range_end": 1003,
            "enriched": 4,
            "total_users": 4,
            "persisted": False,
            "duration_seconds": 1.234,
            "snapshot_path": "sodex_data.json",
        },
        console=console,
    )

    text = console.export_text()
    assert "dry run" in text
    assert "Users enriched" in text
    assert "sodex_data.json" in text
