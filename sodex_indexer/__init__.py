"""
SoDEX account indexer - incremental discovery and enrichment of exchange accounts.

Account ids on SoDEX are assigned sequentially. Each run:

- Loads the previous JSON snapshot and its id -> address cache
- Probes forward from the highest known id to find the current frontier
- Enriches every id up to the frontier with its address and cumulative
  volume/PnL using a bounded pool of async workers
- Merges the fresh records into the snapshot and atomically rewrites it

Upstream failures degrade to missing data for a single account; they never
abort the run.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sodex_indexer.config import Settings, get_settings
from sodex_indexer.domain.models import AccountRecord, Snapshot
from sodex_indexer.orchestrator import merge_records, run_indexer, run_indexer_async
from sodex_indexer.pipeline.abstract import AccountDirectory, RunSummary, TradingStats
from sodex_indexer.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "AccountRecord",
    "Snapshot",
    # Orchestration
    "merge_records",
    "run_indexer",
    "run_indexer_async",
    # Pipeline abstractions
    "AccountDirectory",
    "RunSummary",
    "TradingStats",
    # Logging
    "configure_logging",
    "get_logger",
]
