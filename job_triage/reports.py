"""
Reports derived from the ledger. Pure functions of a snapshot: safe to delete
and regenerate at any time.
"""

import csv
import io
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .fileio import atomic_write_text
from .ledger import sort_by_score
from .models import STATUS_MAYBE, STATUS_NOT_SUITABLE, STATUS_SUITABLE, LedgerEntry

RULE = "=" * 80
MAYBE_LIMIT = 20

SUMMARY_FILE = "summary.txt"
TOP_MATCHES_FILE = "top-matches.txt"
CSV_FILE = "results.csv"

CSV_FIELDS = ["rank", "record_id", "url", "status", "score", "gaps", "reasoning", "classified_at"]

STATUS_MARKERS = {
    STATUS_SUITABLE: "✓",
    STATUS_MAYBE: "~",
    STATUS_NOT_SUITABLE: "✗",
}


def _fmt_score(score: float) -> str:
    return f"{score:g}/10"


def _header(title: str, now: datetime) -> List[str]:
    return [title, RULE, f"Generated: {now.isoformat(timespec='seconds')}", RULE, ""]


def split_by_status(entries: Iterable[LedgerEntry]) -> Dict[str, List[LedgerEntry]]:
    groups: Dict[str, List[LedgerEntry]] = {s: [] for s in STATUS_MARKERS}
    for entry in sort_by_score(entries):
        groups.setdefault(entry.status, []).append(entry)
    return groups


def summary_report(entries: Sequence[LedgerEntry], now: Optional[datetime] = None) -> str:
    """Detailed report: totals, then suitable and maybe-suitable jobs."""
    now = now or datetime.now()
    groups = split_by_status(entries)
    suitable = groups[STATUS_SUITABLE]
    maybe = groups[STATUS_MAYBE]

    lines = _header("JOB SUITABILITY ANALYSIS REPORT", now)
    lines.append(f"Total Jobs Analyzed: {len(entries)}")
    lines.append(
        f"Suitable: {len(suitable)} | Maybe: {len(maybe)} | "
        f"Not Suitable: {len(groups[STATUS_NOT_SUITABLE])}"
    )
    lines.append("")

    lines += [RULE, "SUITABLE JOBS (Sorted by Score)", RULE, ""]
    for i, entry in enumerate(suitable, 1):
        result = entry.result
        lines.append(f"{i}. {entry.record_id} - Score: {_fmt_score(result.score)}")
        lines.append(f"   LinkedIn: {entry.url}")
        if result.strengths:
            lines.append("   Strengths:")
            lines += [f"   - {s}" for s in result.strengths]
        if result.gaps:
            lines.append("   Gaps:")
            lines += [f"   - {g}" for g in result.gaps]
        if result.reasoning:
            lines.append(f"   Reasoning: {result.reasoning}")
        lines.append(f"   Analyzed: {entry.classified_at}")
        lines.append("")

    if maybe:
        lines += ["", RULE, "MAYBE SUITABLE JOBS (Worth Considering)", RULE, ""]
        for i, entry in enumerate(maybe[:MAYBE_LIMIT], 1):
            result = entry.result
            lines.append(f"{i}. {entry.record_id} - Score: {_fmt_score(result.score)}")
            lines.append(f"   LinkedIn: {entry.url}")
            if result.reasoning:
                lines.append(f"   Reasoning: {result.reasoning}")
            if result.gaps:
                lines.append(f"   Gaps: {', '.join(result.gaps)}")
            lines.append("")

    return "\n".join(lines) + "\n"


def top_matches_report(
    entries: Sequence[LedgerEntry],
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> str:
    """Compact ranking of every classified job by score."""
    now = now or datetime.now()
    ranked = sort_by_score(entries)
    if limit is not None:
        ranked = ranked[:limit]

    lines = _header("TOP JOB MATCHES - QUICK REFERENCE", now)
    for i, entry in enumerate(ranked, 1):
        result = entry.result
        marker = STATUS_MARKERS.get(result.status, "?")
        lines.append(f"{i}. [Score: {_fmt_score(result.score)}] {marker} {entry.record_id}")
        lines.append(f"   LinkedIn: {entry.url}")
        if result.reasoning:
            lines.append(f"   {result.reasoning}")
        if result.gaps:
            lines.append(f"   Gaps: {', '.join(result.gaps)}")
        lines.append("")

    return "\n".join(lines) + "\n"


def csv_report(entries: Sequence[LedgerEntry]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for i, entry in enumerate(sort_by_score(entries), 1):
        writer.writerow({
            "rank": i,
            "record_id": entry.record_id,
            "url": entry.url,
            "status": entry.status,
            "score": entry.score,
            "gaps": "; ".join(entry.result.gaps),
            "reasoning": entry.result.reasoning or "",
            "classified_at": entry.classified_at,
        })
    return buf.getvalue()


def write_reports(
    entries: Sequence[LedgerEntry],
    output_dir: Path,
    now: Optional[datetime] = None,
    top_limit: Optional[int] = None,
) -> Dict[str, Path]:
    """top_limit caps top-matches.txt; None or 0 ranks everything."""
    output_dir = Path(output_dir)
    now = now or datetime.now()
    paths = {
        "summary": output_dir / SUMMARY_FILE,
        "top_matches": output_dir / TOP_MATCHES_FILE,
        "csv": output_dir / CSV_FILE,
    }
    atomic_write_text(paths["summary"], summary_report(entries, now))
    atomic_write_text(paths["top_matches"], top_matches_report(entries, now, limit=top_limit or None))
    atomic_write_text(paths["csv"], csv_report(entries))
    return paths
