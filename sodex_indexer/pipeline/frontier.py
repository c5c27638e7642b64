"""
Frontier scanner: find the highest account id that currently exists.

Account ids are handed out sequentially, so instead of walking every id we
start from the highest id we already know, probe the next one, and then keep
striding forward (`probe_step`) while probes succeed. The first failed probe
ends the scan. Ids between the last good probe and the failed one are not
checked; a later run picks them up since it starts probing right after the
frontier this run found.

A probe that fails after the fetch client's retries is indistinguishable from
an id that does not exist yet; both stop the scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sodex_indexer.pipeline.abstract import AccountDirectory
from sodex_indexer.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class FrontierResult:
    start_id: int
    latest_id: int
    previous_latest: int
    probes: int

    @property
    def size(self) -> int:
        return max(self.latest_id - self.start_id + 1, 0)

    def target_ids(self) -> range:
        """Every id from the configured floor through the frontier, inclusive."""
        return range(self.start_id, self.latest_id + 1)


class FrontierScanner:
    """
    Sequential forward prober. One probe in flight at a time.
    """

    def __init__(self, directory: AccountDirectory, start_id: int, probe_step: int) -> None:
        if probe_step < 1:
            raise ValueError(f"probe_step must be >= 1, got {probe_step}")
        self.directory = directory
        self.start_id = start_id
        self.probe_step = probe_step

    async def scan(self, known_ids: Iterable[int] = ()) -> FrontierResult:
        latest = max([*known_ids, self.start_id])
        previous_latest = latest
        check_id = latest + 1
        probes = 0

        log.info(f"[FRONTIER] Scanning forward from id {latest}", extra={"latest_id": latest})
        while True:
            probes += 1
            if not await self.directory.account_exists(check_id):
                break
            latest = check_id
            log.debug(f"[FRONTIER] id {check_id} exists", extra={"probe_id": check_id})
            check_id = latest + self.probe_step

        log.info(
            f"[FRONTIER] Latest id {latest} after {probes} probes "
            f"({latest - previous_latest} past previous frontier)",
            extra={"latest_id": latest, "previous_latest": previous_latest, "probes": probes},
        )
        return FrontierResult(
            start_id=self.start_id,
            latest_id=latest,
            previous_latest=previous_latest,
            probes=probes,
        )


__all__ = ["FrontierResult", "FrontierScanner"]
