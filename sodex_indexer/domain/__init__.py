"""
Domain package for the SoDEX account indexer.

Exports the account and snapshot models shared by the pipeline, the snapshot
store and the reporter.
"""

from sodex_indexer.domain.models import AccountRecord, Snapshot, utc_timestamp

__all__ = [
    "AccountRecord",
    "Snapshot",
    "utc_timestamp",
]
