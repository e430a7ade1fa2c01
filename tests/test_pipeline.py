# tests/test_pipeline.py
import os
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone

import pytest
from openai import OpenAIError

from fakes import FakeCard, FakeOpenAI, FakePage, FakeSession
from job_triage.classifier import Classifier
from job_triage.errors import ProfileMissing
from job_triage.ledger import Ledger
from job_triage.models import Record
from job_triage.pipeline import Pipeline
from job_triage.record_store import RecordStore

FIXED_NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)

SUITABLE_9 = {"suitability_status": "suitable", "match_score": 9, "key_gaps": ["Rust"],
              "reasoning": "Strong leadership fit."}
NOT_SUITABLE_2 = {"suitability_status": "not_suitable", "match_score": 2,
                  "reasoning": "Junior IC role."}


def _seed(store, *pairs):
    """Save (id, marker) postings with strictly increasing mtimes."""
    base = 1_700_000_000_000_000_000
    for offset, (job_id, marker) in enumerate(pairs):
        store.save(Record(
            id=job_id,
            title="Role",
            organization="Acme",
            location="Remote",
            body=f"Posting text {marker}",
            source_url=f"https://www.linkedin.com/jobs/view/{job_id}",
        ))
        path = store.root / f"{job_id}.txt"
        os.utime(path, ns=(base + offset, base + offset))


def _pipeline(settings, client, **kwargs):
    classifier = Classifier(client, model="m", profile="My resume")
    pipeline = Pipeline(settings, classifier_factory=lambda: classifier,
                        clock=lambda: FIXED_NOW, **kwargs)
    return pipeline, classifier


def test_classify_orders_ledger_and_reports(settings):
    client = FakeOpenAI({"ALPHA": SUITABLE_9, "BETA": NOT_SUITABLE_2})
    pipeline, classifier = _pipeline(settings, client)
    _seed(pipeline.store, ("2002", "BETA"), ("1001", "ALPHA"))

    stats = pipeline.classify(classifier)

    assert stats.pending == 2
    assert stats.classified == 2
    snapshot = pipeline.ledger.snapshot()
    assert [e.record_id for e in snapshot] == ["1001", "2002"]
    assert snapshot[0].classified_at == FIXED_NOW.isoformat()

    summary = (settings.output_dir / "summary.txt").read_text(encoding="utf-8")
    suitable_section = summary.split("SUITABLE JOBS (Sorted by Score)")[1]
    assert "1001 - Score: 9/10" in suitable_section
    assert "2002" not in summary

    top = (settings.output_dir / "top-matches.txt").read_text(encoding="utf-8")
    assert top.index("1001") < top.index("2002")


def test_classification_is_idempotent(settings):
    client = FakeOpenAI({"ALPHA": SUITABLE_9})
    pipeline, classifier = _pipeline(settings, client)
    _seed(pipeline.store, ("1001", "ALPHA"))

    pipeline.classify(classifier)
    calls = len(client.completions.calls)
    stats = pipeline.classify(classifier)

    assert stats.pending == 0
    assert len(client.completions.calls) == calls


def test_interrupted_run_resumes_from_ledger(settings):
    client = FakeOpenAI({"GAMMA": KeyboardInterrupt()})
    pipeline, classifier = _pipeline(settings, client)
    _seed(pipeline.store, ("1", "ALPHA"), ("2", "GAMMA"), ("3", "BETA"))

    with pytest.raises(KeyboardInterrupt):
        pipeline.classify(classifier)

    reloaded = Ledger.load(settings.results_file)
    assert reloaded.keys() == ["1"]

    fresh = Pipeline(settings)
    assert [r.id for r in fresh.work_set()] == ["2", "3"]


def test_failed_items_get_no_ledger_entry(settings):
    client = FakeOpenAI({
        "ALPHA": SUITABLE_9,
        "BETA": '{"suitability_status": "suitable", "match_score": 11}',
        "GAMMA": OpenAIError("rate limited"),
    })
    pipeline, classifier = _pipeline(settings, client)
    _seed(pipeline.store, ("1", "ALPHA"), ("2", "BETA"), ("3", "GAMMA"))

    stats = pipeline.classify(classifier)

    assert stats.classified == 1
    assert stats.validation_errors == 1
    assert stats.service_errors == 1
    assert pipeline.ledger.keys() == ["1"]
    assert [r.id for r in pipeline.work_set()] == ["2", "3"]


def test_empty_work_set_still_writes_reports(settings):
    pipeline, classifier = _pipeline(settings, FakeOpenAI())
    stats = pipeline.classify(classifier)

    assert stats.pending == 0
    for name in ("summary.txt", "top-matches.txt", "results.csv"):
        assert (settings.output_dir / name).exists()


def test_full_run_harvests_then_classifies(settings):
    session = FakeSession([FakePage([
        FakeCard("1001", details_html="<p>Platform lead ALPHA</p>"),
        FakeCard("2002", details_html="<p>Graduate role BETA</p>"),
    ])])

    @contextmanager
    def session_factory():
        yield session

    client = FakeOpenAI({"ALPHA": SUITABLE_9, "BETA": NOT_SUITABLE_2})
    pipeline, _ = _pipeline(settings, client, session_factory=session_factory)

    summary = pipeline.run()

    assert summary.harvest.saved == 2
    assert summary.classify.classified == 2
    assert summary.total_classified == 2
    assert summary.status_counts["suitable"] == 1
    assert summary.report_paths["ledger"] == settings.results_file
    assert (settings.postings_dir / "_summary.json").exists()
    assert any("New jobs analyzed: 2 of 2" in line for line in summary.lines())


def test_harvest_only_run_skips_classifier(settings):
    session = FakeSession([FakePage([FakeCard("1001")])])

    @contextmanager
    def session_factory():
        yield session

    def no_classifier():
        raise AssertionError("classifier should not be built")

    pipeline = Pipeline(settings, classifier_factory=no_classifier, session_factory=session_factory)
    summary = pipeline.run(skip_classify=True)

    assert summary.classify is None
    assert summary.harvest.saved == 1
    assert (settings.output_dir / "summary.txt").exists()


def test_missing_resume_fails_before_browser(settings):
    opened = []

    @contextmanager
    def session_factory():
        opened.append(True)
        yield FakeSession([])

    pipeline = Pipeline(settings, session_factory=session_factory)
    with pytest.raises(ProfileMissing):
        pipeline.run()
    assert opened == []


def test_existing_records_are_not_recounted(settings):
    store = RecordStore(settings.postings_dir)
    _seed(store, ("1001", "ALPHA"))
    pipeline, classifier = _pipeline(settings, FakeOpenAI({"ALPHA": SUITABLE_9}), store=store)
    pipeline.classify(classifier)

    store2 = RecordStore(settings.postings_dir)
    _seed(store2, ("1001", "ALPHA"), ("3003", "BETA"))
    assert [r.id for r in Pipeline(settings, store=store2).work_set()] == ["3003"]


def test_unusable_score_does_not_stop_the_run(settings):
    client = FakeOpenAI({
        "ALPHA": '{"suitability_status": "suitable", "match_score": 1' + "0" * 400 + "}",
        "BETA": NOT_SUITABLE_2,
    })
    pipeline, classifier = _pipeline(settings, client)
    _seed(pipeline.store, ("1", "ALPHA"), ("2", "BETA"))

    stats = pipeline.classify(classifier)

    assert stats.validation_errors == 1
    assert pipeline.ledger.keys() == ["2"]


def test_top_matches_limit_is_applied(settings):
    client = FakeOpenAI({"ALPHA": SUITABLE_9, "BETA": NOT_SUITABLE_2})
    pipeline, classifier = _pipeline(replace(settings, top_matches_limit=1), client)
    _seed(pipeline.store, ("1001", "ALPHA"), ("2002", "BETA"))
    pipeline.classify(classifier)

    top = (settings.output_dir / "top-matches.txt").read_text(encoding="utf-8")
    assert "1001" in top
    assert "2002" not in top
