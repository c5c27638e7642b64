"""
Pytest configuration for the SoDEX account indexer.

Provides fixtures for:
- Settings pointed at a temporary snapshot file and fake upstream hosts
- An in-memory AccountDirectory for unit tests of the pipeline stages
- A fake SoDEX upstream served through httpx.MockTransport for end-to-end runs
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import httpx
import pytest

from sodex_indexer.config import Settings, get_settings
from sodex_indexer.pipeline.abstract import AccountDirectory, TradingStats

ADDRESS_HOST = "api.sodex.test"
PNL_HOST = "data.sodex.test"


def address_of(account_id: int) -> str:
    return f"0x{account_id:040x}"


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "sodex_data.json"


@pytest.fixture
def test_settings(snapshot_path: Path) -> Settings:
    """
    Settings with no retry delay, a short timeout and fake upstream hosts.
    """
    return Settings(
        address_url_template=f"https://{ADDRESS_HOST}/mainnet/chain/user/{{account_id}}/address",
        pnl_url_template=f"https://{PNL_HOST}/api/v1/perps/pnl/overview?account_id={{account_id}}",
        concurrency=4,
        start_id=1000,
        probe_step=5,
        request_timeout_seconds=1.0,
        retry_count=2,
        retry_delay_seconds=0.0,
        snapshot_path=str(snapshot_path),
        progress_every=100,
        log_level="DEBUG",
    )


@pytest.fixture
def write_snapshot(snapshot_path: Path) -> Callable[[Iterable[int]], Path]:
    """Write a prior snapshot containing the given ids with their canonical addresses."""

    def _write(ids: Iterable[int], volume: str = "1", pnl: str = "1") -> Path:
        users = [
            {"id": i, "address": address_of(i), "volume": volume, "pnl": pnl} for i in sorted(ids)
        ]
        snapshot_path.write_text(
            json.dumps(
                {"updated_at": "2024-01-01T00:00:00.000Z", "total_users": len(users), "users": users}
            ),
            encoding="utf-8",
        )
        return snapshot_path

    return _write


class FakeDirectory(AccountDirectory):
    """
    In-memory AccountDirectory.

    `addresses` holds the accounts that exist; ids in `stats_failures` answer
    None for statistics; ids in `explode` raise from `lookup_address`.
    """

    def __init__(
        self,
        addresses: Optional[Dict[int, str]] = None,
        stats: Optional[Dict[int, TradingStats]] = None,
        stats_failures: Iterable[int] = (),
        explode: Iterable[int] = (),
        yield_control: bool = False,
    ) -> None:
        self.addresses = addresses or {}
        self.stats = stats or {}
        self.stats_failures: Set[int] = set(stats_failures)
        self.explode: Set[int] = set(explode)
        self.yield_control = yield_control
        self.probes: List[int] = []
        self.address_calls: Counter[int] = Counter()
        self.stats_calls: Counter[int] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def _io(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.yield_control:
                await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

    async def account_exists(self, account_id: int) -> bool:
        self.probes.append(account_id)
        return account_id in self.addresses

    async def lookup_address(self, account_id: int) -> Optional[str]:
        self.address_calls[account_id] += 1
        await self._io()
        if account_id in self.explode:
            raise RuntimeError(f"boom {account_id}")
        return self.addresses.get(account_id)

    async def fetch_trading_stats(self, account_id: int) -> Optional[TradingStats]:
        self.stats_calls[account_id] += 1
        await self._io()
        if account_id in self.stats_failures:
            return None
        return self.stats.get(account_id, TradingStats(volume="100.5", pnl="-3.25"))


@pytest.fixture
def make_directory() -> Callable[..., FakeDirectory]:
    return FakeDirectory


class FakeUpstream:
    """
    Fake SoDEX endpoints for httpx.MockTransport.

    - `accounts`: ids that exist (address endpoint answers code 0)
    - ids missing from `accounts` answer code 1 ("user not found")
    - `address_errors` / `stats_errors`: ids answered with HTTP 500
    - `stats`: per-id PnL overview payload override
    """

    def __init__(self, accounts: Iterable[int] = ()) -> None:
        self.accounts: Set[int] = set(accounts)
        self.address_errors: Set[int] = set()
        self.stats_errors: Set[int] = set()
        self.stats: Dict[int, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, int]] = []

    def calls_for(self, kind: str) -> List[int]:
        return [account_id for call_kind, account_id in self.calls if call_kind == kind]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == ADDRESS_HOST:
            account_id = int(request.url.path.split("/")[-2])
            self.calls.append(("address", account_id))
            if account_id in self.address_errors:
                return httpx.Response(500, json={"error": "internal"})
            if account_id not in self.accounts:
                return httpx.Response(200, json={"code": 1, "msg": "user not found"})
            return httpx.Response(
                200, json={"code": 0, "data": {"address": address_of(account_id)}}
            )

        if request.url.host == PNL_HOST:
            account_id = int(request.url.params["account_id"])
            self.calls.append(("stats", account_id))
            if account_id in self.stats_errors:
                return httpx.Response(500, json={"error": "internal"})
            data = self.stats.get(
                account_id,
                {"cumulative_quote_volume": f"{account_id}.5", "cumulative_pnl": "-1.25"},
            )
            return httpx.Response(200, json={"code": 0, "data": data})

        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()
