"""
Domain models for the SoDEX account indexer.

`AccountRecord` is one enriched account as persisted in the snapshot file;
`Snapshot` is the whole file. Volumes and PnL stay decimal strings end to end
so no precision is lost between the upstream JSON and our output.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Set

from pydantic import BaseModel, Field, field_validator, model_validator


def decimal_string(value: Any) -> str:
    """Decimal amount as a string; missing or empty values become "0"."""
    if value is None or value == "":
        return "0"
    if isinstance(value, bool):
        raise ValueError("boolean is not a decimal amount")
    if isinstance(value, float):
        # repr() keeps the shortest round-tripping form, e.g. 0.1 -> "0.1"
        return repr(value)
    return str(value)


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class AccountRecord(BaseModel):
    """
    One account with its resolved address and cumulative trading statistics.
    """

    id: int = Field(..., description="Sequential account id assigned upstream.")
    address: str = Field(..., min_length=1, description="Chain address of the account.")
    volume: str = Field("0", description="Cumulative quote volume (decimal string).")
    pnl: str = Field("0", description="Cumulative PnL (decimal string).")

    model_config = {
        "frozen": True,
    }

    @field_validator("volume", "pnl", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> str:
        return decimal_string(value)

    def volume_decimal(self) -> Decimal:
        return Decimal(self.volume)

    def pnl_decimal(self) -> Decimal:
        return Decimal(self.pnl)


class Snapshot(BaseModel):
    """
    The persisted dataset: every enriched account, ascending by id.
    """

    updated_at: str = Field(default_factory=utc_timestamp)
    total_users: int = Field(0, ge=0)
    users: List[AccountRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _count_users(self) -> "Snapshot":
        # The stored count is informational; the user list is authoritative.
        self.total_users = len(self.users)
        return self

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(updated_at=utc_timestamp(), total_users=0, users=[])

    @classmethod
    def from_records(cls, records: List[AccountRecord], updated_at: str | None = None) -> "Snapshot":
        """Build a snapshot, deduplicating by id (last wins) and sorting ascending."""
        by_id: Dict[int, AccountRecord] = {}
        for record in records:
            by_id[record.id] = record
        users = [by_id[account_id] for account_id in sorted(by_id)]
        return cls(
            updated_at=updated_at or utc_timestamp(),
            total_users=len(users),
            users=users,
        )

    def address_map(self) -> Dict[int, str]:
        return {user.id: user.address for user in self.users}

    def known_ids(self) -> Set[int]:
        return {user.id for user in self.users}


__all__ = ["AccountRecord", "Snapshot", "decimal_string", "utc_timestamp"]
