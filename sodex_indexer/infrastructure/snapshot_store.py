"""
JSON snapshot persistence.

The snapshot file is read once when a run starts and fully replaced when it
finishes. A missing, unreadable or unparsable file is never fatal: the run
starts from an empty snapshot and a warning is logged. A user entry that fails
validation is skipped on its own; the others keep their cached addresses.
Writes go through a temporary file in the same directory followed by `os.replace`, so readers
see either the previous snapshot or the new one, never a truncated file.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import List

from pydantic import ValidationError

from sodex_indexer.domain.models import AccountRecord, Snapshot
from sodex_indexer.utils.logging import get_logger

log = get_logger(__name__)


class SnapshotStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> Snapshot:
        """
        Load the previous snapshot, or an empty one if the file is missing or
        not a JSON object. Individual user entries that fail validation are
        skipped with a warning; the rest of the history is kept.
        """
        if not self.path.exists():
            log.info(f"[SNAPSHOT] No snapshot at {self.path}, starting fresh")
            return Snapshot.empty()

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.warning(
                f"[SNAPSHOT] Could not parse {self.path}, starting fresh",
                extra={"path": str(self.path), "error": str(exc)},
            )
            return Snapshot.empty()
        if not isinstance(raw, dict):
            log.warning(
                f"[SNAPSHOT] {self.path} holds {type(raw).__name__}, not an object; starting fresh",
                extra={"path": str(self.path)},
            )
            return Snapshot.empty()

        entries = raw.get("users") or []
        if not isinstance(entries, list):
            log.warning(
                f"[SNAPSHOT] 'users' in {self.path} is not a list, ignoring it",
                extra={"path": str(self.path)},
            )
            entries = []

        users: List[AccountRecord] = []
        for index, entry in enumerate(entries):
            try:
                users.append(AccountRecord.model_validate(entry))
            except ValidationError as exc:
                account_id = entry.get("id") if isinstance(entry, dict) else None
                log.warning(
                    f"[SNAPSHOT] Skipping invalid user #{index} (id={account_id!r})",
                    extra={"index": index, "account_id": account_id, "error": str(exc)},
                )

        updated_at = raw.get("updated_at")
        snapshot = Snapshot.from_records(
            users, updated_at=updated_at if isinstance(updated_at, str) else None
        )

        log.info(
            f"[SNAPSHOT] Loaded {len(snapshot.users)} users from {self.path}",
            extra={"path": str(self.path), "users": len(snapshot.users)},
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> Path:
        """
        Atomically replace the snapshot file.

        Raises
        ------
        OSError
            If the directory is not writable or the replace fails. This is the
            one failure the run does not recover from.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = snapshot.model_dump(mode="json")

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        log.info(
            f"[PERSIST] {snapshot.total_users} users saved to {self.path}",
            extra={"path": str(self.path), "total_users": snapshot.total_users},
        )
        return self.path


__all__ = ["SnapshotStore"]
