"""
Enrichment worker pool.

A fixed number of asyncio workers drain one shared queue of account ids. For
each id a worker resolves the address (address cache first, upstream second),
fetches the cumulative trading statistics and emits an `AccountRecord`:

- unresolved address  -> no record for this id
- stats fetch failed  -> record with volume "0" and pnl "0"
- anything unexpected -> logged, no record, the worker moves on

Addresses never change for an id, so the cache built from the previous
snapshot is trusted as-is and is only ever read here.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Mapping, Optional

from sodex_indexer.domain.models import AccountRecord
from sodex_indexer.pipeline.abstract import AccountDirectory, TradingStats
from sodex_indexer.utils.logging import get_logger

log = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class EnrichmentResult:
    records: List[AccountRecord] = field(default_factory=list)
    processed: int = 0
    cache_hits: int = 0
    address_lookups: int = 0
    skipped: int = 0
    stats_missing: int = 0
    failed_ids: List[int] = field(default_factory=list)

    @property
    def enriched(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


class EnrichmentPool:
    """
    Bounded-concurrency enrichment of a batch of account ids.

    Parameters
    ----------
    directory : AccountDirectory
        Upstream lookups (address and trading statistics).
    address_cache : Mapping[int, str]
        Known id -> address pairs from the previous snapshot. Read-only.
    concurrency : int
        Number of worker tasks.
    progress_every : int
        Log progress each time the number of produced records hits a multiple
        of this value.
    on_progress : callable, optional
        Called with `(produced, total)` at the same moments progress is logged.
    """

    def __init__(
        self,
        directory: AccountDirectory,
        address_cache: Mapping[int, str],
        concurrency: int = 10,
        progress_every: int = 100,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.directory = directory
        self.address_cache = address_cache
        self.concurrency = concurrency
        self.progress_every = max(progress_every, 1)
        self.on_progress = on_progress

    async def run(self, account_ids: Iterable[int]) -> EnrichmentResult:
        queue: asyncio.Queue[int] = asyncio.Queue()
        for account_id in account_ids:
            queue.put_nowait(account_id)
        total = queue.qsize()

        result = EnrichmentResult()
        lock = asyncio.Lock()

        log.info(
            f"[ENRICH] Processing {total} ids with {self.concurrency} workers",
            extra={"total": total, "concurrency": self.concurrency},
        )

        async def worker() -> None:
            while True:
                try:
                    account_id = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    await self._process(account_id, result, lock, total)
                except Exception:  # noqa: BLE001 - one bad id must not take the pool down
                    log.exception(f"[ENRICH] Error on id {account_id}", extra={"account_id": account_id})
                    async with lock:
                        result.failed_ids.append(account_id)
                finally:
                    async with lock:
                        result.processed += 1
                    queue.task_done()

        await asyncio.gather(*(worker() for _ in range(self.concurrency)))

        log.info(
            f"[ENRICH] Done: {result.enriched} records, {result.skipped} skipped, "
            f"{result.failed} failed",
            extra={
                "enriched": result.enriched,
                "skipped": result.skipped,
                "failed": result.failed,
                "cache_hits": result.cache_hits,
                "stats_missing": result.stats_missing,
            },
        )
        return result

    async def _resolve_address(self, account_id: int, result: EnrichmentResult) -> Optional[str]:
        address = self.address_cache.get(account_id)
        if address:
            result.cache_hits += 1
            return address
        result.address_lookups += 1
        return await self.directory.lookup_address(account_id)

    async def _process(
        self,
        account_id: int,
        result: EnrichmentResult,
        lock: asyncio.Lock,
        total: int,
    ) -> None:
        address = await self._resolve_address(account_id, result)
        if not address:
            log.debug(f"[ENRICH] id {account_id} has no address, skipping")
            async with lock:
                result.skipped += 1
            return

        stats = await self.directory.fetch_trading_stats(account_id)
        if stats is None:
            stats = TradingStats()
            async with lock:
                result.stats_missing += 1

        record = AccountRecord(id=account_id, address=address, volume=stats.volume, pnl=stats.pnl)
        async with lock:
            result.records.append(record)
            produced = len(result.records)

        if produced % self.progress_every == 0:
            log.info(f"Progress: {produced}/{total}", extra={"produced": produced, "total": total})
            if self.on_progress is not None:
                self.on_progress(produced, total)


__all__ = ["EnrichmentPool", "EnrichmentResult"]
