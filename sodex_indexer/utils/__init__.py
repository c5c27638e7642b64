"""
Utilities package for the SoDEX account indexer.

Exports shared helpers for logging and run profiling. Keep this package
lightweight and free of domain-specific logic.
"""

from sodex_indexer.utils.logging import configure_logging, get_logger
from sodex_indexer.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
