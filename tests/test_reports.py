# tests/test_reports.py
import csv
import io
from datetime import datetime

from job_triage.models import ClassificationResult, LedgerEntry, canonical_job_url
from job_triage.reports import (
    MAYBE_LIMIT,
    csv_report,
    summary_report,
    top_matches_report,
    write_reports,
)

NOW = datetime(2026, 10, 17, 8, 0, 0)


def _entry(job_id, status, score, gaps=(), reasoning=None, strengths=()):
    return LedgerEntry(
        record_id=job_id,
        url=canonical_job_url(job_id),
        classified_at="2026-10-17T07:00:00+00:00",
        result=ClassificationResult(
            status=status, score=score, gaps=list(gaps),
            reasoning=reasoning, strengths=list(strengths),
        ),
    )


ENTRIES = [
    _entry("11", "maybe_suitable", 6, gaps=["Go"], reasoning="Partial overlap."),
    _entry("22", "suitable", 8, strengths=["Leadership"], reasoning="Good fit."),
    _entry("33", "not_suitable", 1),
    _entry("44", "suitable", 9.5, gaps=["Kafka", "Scala"]),
]


def test_summary_lists_suitable_by_score_then_maybe():
    text = summary_report(ENTRIES, NOW)

    assert text.startswith("JOB SUITABILITY ANALYSIS REPORT\n")
    assert "Generated: 2026-10-17T08:00:00" in text
    assert "Total Jobs Analyzed: 4" in text
    assert "Suitable: 2 | Maybe: 1 | Not Suitable: 1" in text

    suitable, maybe = text.split("MAYBE SUITABLE JOBS (Worth Considering)")
    assert suitable.index("1. 44 - Score: 9.5/10") < suitable.index("2. 22 - Score: 8/10")
    assert "   - Leadership" in suitable
    assert "   - Kafka" in suitable
    assert "1. 11 - Score: 6/10" in maybe
    assert "Gaps: Go" in maybe
    assert "33" not in text.replace("Total Jobs Analyzed", "")


def test_summary_caps_maybe_section():
    many = [_entry(str(i), "maybe_suitable", 5) for i in range(MAYBE_LIMIT + 5)]
    maybe = summary_report(many, NOW).split("MAYBE SUITABLE JOBS")[1]
    assert f"{MAYBE_LIMIT}. " in maybe
    assert f"{MAYBE_LIMIT + 1}. " not in maybe


def test_summary_without_maybe_has_no_maybe_section():
    text = summary_report([ENTRIES[1]], NOW)
    assert "MAYBE SUITABLE JOBS" not in text


def test_top_matches_ranks_everything():
    text = top_matches_report(ENTRIES, NOW)
    assert "1. [Score: 9.5/10] ✓ 44" in text
    assert "3. [Score: 6/10] ~ 11" in text
    assert "4. [Score: 1/10] ✗ 33" in text

    limited = top_matches_report(ENTRIES, NOW, limit=1)
    assert "44" in limited and "22" not in limited


def test_csv_rows_are_ranked():
    rows = list(csv.DictReader(io.StringIO(csv_report(ENTRIES))))
    assert [r["record_id"] for r in rows] == ["44", "22", "11", "33"]
    assert rows[0]["rank"] == "1"
    assert rows[0]["gaps"] == "Kafka; Scala"
    assert rows[0]["url"] == "https://www.linkedin.com/jobs/view/44"


def test_write_reports_creates_all_files(tmp_path):
    paths = write_reports(ENTRIES, tmp_path / "out", NOW)
    assert set(paths) == {"summary", "top_matches", "csv"}
    for path in paths.values():
        assert path.exists()
    assert paths["summary"].read_text(encoding="utf-8") == summary_report(ENTRIES, NOW)


def test_empty_ledger_reports():
    text = summary_report([], NOW)
    assert "Total Jobs Analyzed: 0" in text
    assert csv_report([]).strip() == ",".join(
        ["rank", "record_id", "url", "status", "score", "gaps", "reasoning", "classified_at"])


def test_write_reports_caps_top_matches(tmp_path):
    paths = write_reports(ENTRIES, tmp_path, NOW, top_limit=2)
    top = paths["top_matches"].read_text(encoding="utf-8")
    assert "44" in top and "22" in top
    assert "] ~ 11" not in top and "33" not in top

    uncapped = write_reports(ENTRIES, tmp_path, NOW, top_limit=0)
    assert "✗ 33" in uncapped["top_matches"].read_text(encoding="utf-8")
