"""
Interfaces and result contracts shared by the pipeline stages.

The frontier scanner and the enrichment pool only talk to the upstream through
the `AccountDirectory` protocol, so tests can hand them an in-memory directory
and the real `SodexApi` can be swapped without touching the stages.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Protocol, TypedDict, runtime_checkable


class TradingStats(NamedTuple):
    """Cumulative trading statistics of one account, as decimal strings."""

    volume: str = "0"
    pnl: str = "0"


@runtime_checkable
class AccountDirectory(Protocol):
    """
    Read access to the upstream account registry.

    Every method degrades to a falsy answer when the upstream cannot be
    reached; none of them raise for transport problems.
    """

    async def account_exists(self, account_id: int) -> bool:
        """True when the address endpoint reports success for `account_id`."""
        ...

    async def lookup_address(self, account_id: int) -> Optional[str]:
        """The chain address of `account_id`, or None if unresolved."""
        ...

    async def fetch_trading_stats(self, account_id: int) -> Optional[TradingStats]:
        """Cumulative volume and PnL of `account_id`, or None if the fetch failed."""
        ...


class RunSummary(TypedDict, total=False):
    """
    Metrics of one indexing pass, returned by the orchestrator and rendered by
    the reporter.
    """

    range_start: int
    range_end: int
    previous_latest: int
    targets: int
    probes: int
    enriched: int
    skipped: int
    failed: int
    stats_missing: int
    cache_hits: int
    address_lookups: int
    requests_sent: int
    total_users: int
    new_users: int
    snapshot_path: str
    persisted: bool
    duration_seconds: float
    peak_rss_bytes: Optional[int]


__all__ = [
    "AccountDirectory",
    "RunSummary",
    "TradingStats",
]
