"""
Pipeline package for the SoDEX account indexer.

Re-exports the stage interfaces and the two concurrent stages (frontier scan and
enrichment pool) so downstream code can import from `sodex_indexer.pipeline`.
"""

from sodex_indexer.pipeline.abstract import AccountDirectory, RunSummary, TradingStats
from sodex_indexer.pipeline.enrichment import EnrichmentPool, EnrichmentResult
from sodex_indexer.pipeline.frontier import FrontierResult, FrontierScanner

__all__ = [
    # Abstracts
    "AccountDirectory",
    "RunSummary",
    "TradingStats",
    # Stages
    "EnrichmentPool",
    "EnrichmentResult",
    "FrontierResult",
    "FrontierScanner",
]
