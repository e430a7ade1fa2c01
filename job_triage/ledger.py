"""
Classification ledger: record id -> latest classification, kept as one JSON
document sorted by score (highest first).

Every upsert rewrites the whole document and fsyncs it before returning, so a
crash can lose at most the classification that was in flight.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from .errors import LedgerCorrupt
from .fileio import atomic_write_text
from .models import STATUSES, LedgerEntry


def sort_by_score(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    # sorted() is stable: equal scores keep their existing relative order.
    return sorted(entries, key=lambda e: e.score, reverse=True)


class Ledger:
    def __init__(self, path: Path, entries: Iterable[LedgerEntry] = ()):
        self.path = Path(path)
        self._entries: Dict[str, LedgerEntry] = {}
        for entry in entries:
            self._entries[entry.record_id] = entry

    @classmethod
    def load(cls, path: Path) -> "Ledger":
        path = Path(path)
        if not path.exists():
            return cls(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError("expected a JSON list of entries")
            entries = [LedgerEntry.from_dict(item) for item in raw]
        except (ValueError, KeyError, TypeError) as e:
            raise LedgerCorrupt(
                f"Cannot read ledger {path}: {e}. Fix or move the file before re-running; "
                f"it is the record of every paid classification."
            ) from e
        return cls(path, entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._entries

    def contains(self, record_id: str) -> bool:
        return record_id in self._entries

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def get(self, record_id: str):
        return self._entries.get(record_id)

    def upsert(self, entry: LedgerEntry) -> None:
        """Insert or overwrite (last write wins), then persist durably."""
        self._entries[entry.record_id] = entry
        self._save()

    def snapshot(self) -> Tuple[LedgerEntry, ...]:
        return tuple(sort_by_score(self._entries.values()))

    def counts_by_status(self) -> Dict[str, int]:
        counts = {status: 0 for status in STATUSES}
        for entry in self._entries.values():
            counts[entry.status] = counts.get(entry.status, 0) + 1
        return counts

    def _save(self) -> None:
        payload = json.dumps([e.to_dict() for e in self.snapshot()], indent=2, ensure_ascii=False)
        atomic_write_text(self.path, payload)
