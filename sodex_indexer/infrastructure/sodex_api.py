"""
SoDEX upstream endpoints.

Both endpoints answer with a JSON envelope. The address endpoint signals
success with `code == 0`:

    {"code": 0, "data": {"address": "0xabc..."}}

The PnL overview endpoint carries cumulative figures as decimal strings:

    {"code": 0, "data": {"cumulative_quote_volume": "1234.5", "cumulative_pnl": "-12.3"}}
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sodex_indexer.config import Settings
from sodex_indexer.domain.models import decimal_string
from sodex_indexer.infrastructure.http_client import FetchClient
from sodex_indexer.pipeline.abstract import AccountDirectory, TradingStats


def _data(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = payload.get("data")
    return data if isinstance(data, dict) else {}


class SodexApi(AccountDirectory):
    """
    `AccountDirectory` backed by the SoDEX HTTP endpoints.

    Counts the lookups it issues so the run summary can show how much the
    address cache saved.
    """

    def __init__(self, client: FetchClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings
        self.address_lookups = 0
        self.stats_lookups = 0

    async def _address_envelope(self, account_id: int) -> Optional[Dict[str, Any]]:
        self.address_lookups += 1
        payload = await self._client.fetch_json(self._settings.address_url(account_id))
        if payload is None or payload.get("code") != 0:
            return None
        return payload

    async def account_exists(self, account_id: int) -> bool:
        return await self._address_envelope(account_id) is not None

    async def lookup_address(self, account_id: int) -> Optional[str]:
        payload = await self._address_envelope(account_id)
        if payload is None:
            return None
        address = _data(payload).get("address")
        return str(address) if address else None

    async def fetch_trading_stats(self, account_id: int) -> Optional[TradingStats]:
        self.stats_lookups += 1
        payload = await self._client.fetch_json(self._settings.pnl_url(account_id))
        if payload is None:
            return None
        data = _data(payload)
        return TradingStats(
            volume=decimal_string(data.get("cumulative_quote_volume")),
            pnl=decimal_string(data.get("cumulative_pnl")),
        )


__all__ = ["SodexApi"]
