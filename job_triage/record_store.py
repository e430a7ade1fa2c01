"""
Record store: one <job id>.txt file per harvested posting.

File layout:
    Title: <title>
    Company: <company>
    Location: <location>

    <normalised description text>

The set of *.txt stems is the dedup set for harvesting and the universe of
work for classification. Files are written once and never rewritten.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Set

from .fileio import atomic_write_text
from .models import NOT_AVAILABLE, Record, canonical_job_url

RECORD_SUFFIX = ".txt"
SUMMARY_FILE = "_summary.json"


def parse_record_text(record_id: str, text: str) -> Record:
    """Inverse of Record.as_text(); tolerant of missing or extra header keys."""
    header: Dict[str, str] = {}
    head, sep, body = text.partition("\n\n")
    if not sep:
        head, body = "", text

    for line in head.splitlines():
        key, colon, value = line.partition(":")
        if not colon:
            # Not a header block after all.
            header = {}
            body = text
            break
        header[key.strip().lower()] = value.strip()

    return Record(
        id=record_id,
        title=header.get("title") or NOT_AVAILABLE,
        organization=header.get("company") or NOT_AVAILABLE,
        location=header.get("location") or NOT_AVAILABLE,
        body=body.strip(),
        source_url=canonical_job_url(record_id),
    )


class RecordStore:
    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, record_id: str) -> Path:
        return self.root / f"{record_id}{RECORD_SUFFIX}"

    def _files(self) -> List[Path]:
        if not self.root.exists():
            return []
        return [p for p in self.root.glob(f"*{RECORD_SUFFIX}") if p.is_file()]

    def ids(self) -> Set[str]:
        return {p.stem for p in self._files()}

    def contains(self, record_id: str) -> bool:
        return self._path(record_id).exists()

    def __len__(self) -> int:
        return len(self._files())

    def save(self, record: Record) -> bool:
        """
        Persist a new record durably. Returns False (and writes nothing) if the
        id is already stored.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(record.id)
        if path.exists():
            return False
        atomic_write_text(path, record.as_text())
        return True

    def load(self, record_id: str) -> Record:
        text = self._path(record_id).read_text(encoding="utf-8")
        return parse_record_text(record_id, text)

    def read_text(self, record_id: str) -> str:
        return self._path(record_id).read_text(encoding="utf-8")

    def records(self) -> List[Record]:
        """All records in discovery order (mtime, then id for ties)."""
        files = sorted(self._files(), key=lambda p: (p.stat().st_mtime_ns, p.stem))
        return [parse_record_text(p.stem, p.read_text(encoding="utf-8")) for p in files]

    def write_run_summary(self, records: Iterable[Record]) -> Path:
        """Side file listing the postings saved by the latest harvest pass."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / SUMMARY_FILE
        payload = [r.to_dict() for r in records]
        atomic_write_text(path, json.dumps(payload, indent=2, ensure_ascii=False))
        return path
