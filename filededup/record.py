"""FileRecord — the unit the agent reports to the aggregation server."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone


def wire_name(name: str) -> str:
    """
    UTF-8-safe form of a filesystem name.

    Undecodable bytes in a POSIX name arrive as lone surrogates, which can't
    be stored server-side; they become U+FFFD instead.
    """
    return os.fsencode(name).decode("utf-8", "replace")


@dataclass(frozen=True)
class FileRecord:
    machine_id: str
    path: str  # absolute containing directory, no filename
    filename: str
    size: int
    mtime: datetime
    hash: str

    @classmethod
    def from_stat(cls, machine_id: str, path: str, filename: str, st, hash_val: str) -> "FileRecord":
        return cls(
            machine_id=machine_id,
            path=wire_name(path),
            filename=wire_name(filename),
            size=st.st_size,
            mtime=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            hash=hash_val,
        )

    def to_dict(self) -> dict:
        """JSON-ready dict in the ingest wire format (mtime as RFC3339)."""
        return {
            "machine_id": self.machine_id,
            "path": self.path,
            "filename": self.filename,
            "size": self.size,
            "mtime": self.mtime.isoformat(),
            "hash": self.hash,
        }
