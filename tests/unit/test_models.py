from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from sodex_indexer.domain.models import AccountRecord, Snapshot, utc_timestamp


def test_record_keeps_decimal_strings_verbatim() -> None:
    record = AccountRecord(id=1, address="0xa", volume="0.10000000000000000001", pnl="-5")

    assert record.volume == "0.10000000000000000001"
    assert record.volume_decimal() == Decimal("0.10000000000000000001")
    assert record.pnl_decimal() == Decimal("-5")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, "0"), ("", "0"), (12, "12"), (0.1, "0.1"), (Decimal("1.50"), "1.50")],
)
def test_record_coerces_amounts_to_strings(raw, expected) -> None:
    assert AccountRecord(id=1, address="0xa", volume=raw).volume == expected


def test_record_requires_address() -> None:
    with pytest.raises(ValidationError):
        AccountRecord(id=1, address="")


def test_record_is_immutable() -> None:
    record = AccountRecord(id=1, address="0xa")
    with pytest.raises(ValidationError):
        record.address = "0xb"


def test_from_records_sorts_and_deduplicates_last_wins() -> None:
    snapshot = Snapshot.from_records(
        [
            AccountRecord(id=3, address="0x3"),
            AccountRecord(id=1, address="0x1", pnl="1"),
            AccountRecord(id=2, address="0x2"),
            AccountRecord(id=1, address="0x1", pnl="2"),
        ]
    )

    assert [u.id for u in snapshot.users] == [1, 2, 3]
    assert snapshot.users[0].pnl == "2"
    assert snapshot.total_users == len(snapshot.users) == 3


def test_snapshot_without_total_counts_users() -> None:
    snapshot = Snapshot.model_validate({"users": [{"id": 1, "address": "0x1"}]})
    assert snapshot.total_users == 1


def test_snapshot_stored_total_is_replaced_by_user_count() -> None:
    snapshot = Snapshot.model_validate(
        {"total_users": 99, "users": [{"id": 1, "address": "0x1"}]}
    )
    assert snapshot.total_users == 1


def test_utc_timestamp_format() -> None:
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2024-01-01T00:00:00.000Z")
