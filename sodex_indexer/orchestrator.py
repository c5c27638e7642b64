"""
Orchestrator for one indexing pass: load, scan, enrich, merge, persist.

Usage (example from CLI):
    from sodex_indexer.orchestrator import run_indexer

    summary = run_indexer()
    print(summary["total_users"])

The snapshot is written once, at the end, to `settings.snapshot_path`. An
interrupted run leaves the previous snapshot untouched.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable, Optional

import httpx

from sodex_indexer.config import Settings, get_settings
from sodex_indexer.domain.models import AccountRecord, Snapshot, utc_timestamp
from sodex_indexer.infrastructure.http_client import FetchClient
from sodex_indexer.infrastructure.snapshot_store import SnapshotStore
from sodex_indexer.infrastructure.sodex_api import SodexApi
from sodex_indexer.pipeline.abstract import RunSummary
from sodex_indexer.pipeline.enrichment import EnrichmentPool, ProgressCallback
from sodex_indexer.pipeline.frontier import FrontierScanner
from sodex_indexer.utils.logging import get_logger
from sodex_indexer.utils.profiler import profile_block

log = get_logger(__name__)


def merge_records(
    previous: Snapshot,
    fresh: Iterable[AccountRecord],
    updated_at: Optional[str] = None,
) -> Snapshot:
    """
    Combine the previous snapshot with this run's records.

    Fresh records replace previous ones with the same id; previous records
    that were not refreshed this run are kept as they were. The result is
    unique by id and sorted ascending.
    """
    return Snapshot.from_records(
        [*previous.users, *fresh],
        updated_at=updated_at or utc_timestamp(),
    )


async def run_indexer_async(
    settings: Optional[Settings] = None,
    persist: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> RunSummary:
    """
    Run one discovery-and-enrichment pass.

    Parameters
    ----------
    settings : Settings | None
        Effective configuration. Defaults to `get_settings()`.
    persist : bool
        Whether to write the merged snapshot to disk.
    transport : httpx.AsyncBaseTransport | None
        Custom transport for the HTTP client (tests use `httpx.MockTransport`).
    on_progress : callable | None
        Forwarded to the enrichment pool.

    Returns
    -------
    RunSummary
        Counts and timings of the pass.

    Raises
    ------
    OSError
        If the final snapshot cannot be written.
    """
    settings = settings or get_settings()
    store = SnapshotStore(settings.snapshot_path)

    with profile_block("index-run") as stats:
        previous = store.load()
        address_cache = previous.address_map()

        async with FetchClient(settings, transport=transport) as client:
            api = SodexApi(client, settings)
            scanner = FrontierScanner(api, settings.start_id, settings.probe_step)
            frontier = await scanner.scan(address_cache.keys())

            log.info(
                f"[RUN] Processing ids {frontier.start_id} to {frontier.latest_id} "
                f"({frontier.size} users)",
                extra={"range_start": frontier.start_id, "range_end": frontier.latest_id},
            )

            pool = EnrichmentPool(
                api,
                address_cache,
                concurrency=settings.concurrency,
                progress_every=settings.progress_every,
                on_progress=on_progress,
            )
            enrichment = await pool.run(frontier.target_ids())
            requests_sent = client.requests_sent

        merged = merge_records(previous, enrichment.records)
        if persist:
            store.save(merged)
        else:
            log.info("[PERSIST] Dry run, snapshot not written", extra={"path": str(store.path)})

    known_before = previous.known_ids()
    summary = RunSummary(
        range_start=frontier.start_id,
        range_end=frontier.latest_id,
        previous_latest=frontier.previous_latest,
        targets=frontier.size,
        probes=frontier.probes,
        enriched=enrichment.enriched,
        skipped=enrichment.skipped,
        failed=enrichment.failed,
        stats_missing=enrichment.stats_missing,
        cache_hits=enrichment.cache_hits,
        address_lookups=enrichment.address_lookups,
        requests_sent=requests_sent,
        total_users=merged.total_users,
        new_users=sum(1 for r in enrichment.records if r.id not in known_before),
        snapshot_path=str(store.path),
        persisted=persist,
        duration_seconds=round(stats.duration_seconds, 2),
        peak_rss_bytes=stats.peak_rss_bytes,
    )

    log.info(
        f"[RUN COMPLETE] {enrichment.enriched} users enriched, "
        f"{merged.total_users} in snapshot {store.path}",
        extra=dict(summary),
    )
    return summary


def run_indexer(
    settings: Optional[Settings] = None,
    persist: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunSummary:
    """
    Synchronous entry point around `run_indexer_async`.

    Raises
    ------
    RuntimeError
        If called from inside a running event loop; await
        `run_indexer_async` there instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(run_indexer_async(settings, persist=persist, transport=transport))
    raise RuntimeError(
        "run_indexer() cannot be called from an async context; await run_indexer_async()"
    )


def load_snapshot(path: Path | str) -> Snapshot:
    return SnapshotStore(path).load()


__all__ = [
    "load_snapshot",
    "merge_records",
    "run_indexer",
    "run_indexer_async",
]
