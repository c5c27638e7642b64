"""
Infrastructure package for the SoDEX account indexer.

Centralizes I/O concerns: the retrying HTTP client, the SoDEX endpoint adapter
and the JSON snapshot store. Keep this layer focused on I/O and resource
management, decoupled from the pipeline stages.
"""

from sodex_indexer.infrastructure.http_client import FetchClient
from sodex_indexer.infrastructure.snapshot_store import SnapshotStore
from sodex_indexer.infrastructure.sodex_api import SodexApi

__all__ = [
    "FetchClient",
    "SnapshotStore",
    "SodexApi",
]
