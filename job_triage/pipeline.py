"""
End-to-end run: harvest -> record store -> (diff against ledger) -> classify
-> ledger -> reports.

The two phases run one after the other, never overlapped. Each saved posting
and each ledger upsert is durable on its own, so killing the process loses at
most the item in flight and the next run resumes from exactly where this one
stopped.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, ContextManager, Dict, List, Optional

from .classifier import Classifier, load_profile
from .config import Settings, build_client
from .errors import ResponseValidationError, ServiceError
from .harvester import Harvester, HarvestStats
from .ledger import Ledger
from .logs import colour_for_status, colourise
from .models import Record, LedgerEntry, canonical_job_url
from .record_store import RecordStore
from .reports import write_reports
from .session import BrowserSession, connect_session


@dataclass
class ClassifyStats:
    pending: int = 0
    classified: int = 0
    service_errors: int = 0
    validation_errors: int = 0


@dataclass
class RunSummary:
    harvest: Optional[HarvestStats] = None
    classify: Optional[ClassifyStats] = None
    status_counts: Dict[str, int] = field(default_factory=dict)
    total_classified: int = 0
    report_paths: Dict[str, Path] = field(default_factory=dict)

    def lines(self) -> List[str]:
        out = []
        if self.harvest is not None:
            h = self.harvest
            out.append(f"Pages processed: {h.pages}")
            out.append(f"New postings saved: {h.saved}")
            out.append(f"Skipped (already scraped): {h.skipped}")
            out.append(f"Details pane timeouts: {h.panel_timeouts}")
            out.append(f"Harvest errors: {h.errors}")
        if self.classify is not None:
            c = self.classify
            out.append(f"New jobs analyzed: {c.classified} of {c.pending}")
            out.append(f"Service errors: {c.service_errors}")
            out.append(f"Invalid responses: {c.validation_errors}")
        out.append(f"Total jobs in database: {self.total_classified}")
        for status, count in self.status_counts.items():
            out.append(f"{status.replace('_', ' ').title()}: {count}")
        for name, path in self.report_paths.items():
            out.append(f"Report ({name}): {path}")
        return out


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Pipeline:
    def __init__(
        self,
        settings: Settings,
        store: Optional[RecordStore] = None,
        ledger: Optional[Ledger] = None,
        classifier_factory: Optional[Callable[[], Classifier]] = None,
        session_factory: Optional[Callable[[], ContextManager[BrowserSession]]] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings
        self.store = store if store is not None else RecordStore(settings.postings_dir)
        self.ledger = ledger if ledger is not None else Ledger.load(settings.results_file)
        self.classifier_factory = classifier_factory or self._default_classifier
        self.session_factory = session_factory or (lambda: connect_session(settings.cdp_url))
        self.clock = clock
        self.report_paths: Dict[str, Path] = {}

    def _default_classifier(self) -> Classifier:
        s = self.settings
        profile = load_profile(s.profile_file)
        print("Resume loaded")
        client = build_client(s.backend, max_retries=s.llm_max_retries)
        print(f"Using {s.backend.label} ({s.llm_model})")
        return Classifier(
            client,
            model=s.llm_model,
            profile=profile,
            temperature=s.llm_temperature,
            max_chars=s.llm_max_jd_chars,
        )

    # =========================================================================
    # Harvest phase
    # =========================================================================

    def harvest(self, url: Optional[str] = None) -> HarvestStats:
        saved: List[Record] = []
        with self.session_factory() as session:
            harvester = Harvester(session, self.store, self.settings)
            try:
                for record in harvester.harvest(url):
                    saved.append(record)
            finally:
                if saved:
                    path = self.store.write_run_summary(saved)
                    print(f"Summary saved to: {path}")
        print(f"Total unique jobs now: {len(self.store)}")
        return harvester.stats

    # =========================================================================
    # Classification phase
    # =========================================================================

    def work_set(self) -> List[Record]:
        """Stored postings with no ledger entry yet, in discovery order."""
        return [r for r in self.store.records() if not self.ledger.contains(r.id)]

    def regenerate_reports(self) -> Dict[str, Path]:
        self.report_paths = write_reports(
            self.ledger.snapshot(),
            self.settings.output_dir,
            top_limit=self.settings.top_matches_limit,
        )
        return self.report_paths

    def classify(self, classifier: Classifier) -> ClassifyStats:
        print(f"Loaded {len(self.ledger)} previously analyzed jobs")
        work = self.work_set()
        stats = ClassifyStats(pending=len(work))
        print(f"Found {len(self.store)} total job postings")

        if not work:
            print("No new jobs to analyze. All jobs already processed.")
            self.regenerate_reports()
            return stats

        print(f"{len(work)} new jobs to analyze\n")
        for i, record in enumerate(work, 1):
            print(f"[{i}/{len(work)}] Analyzing {record.id}...")
            try:
                result = classifier.classify(record)
            except ServiceError as e:
                print(f"  ✗ Error: {e}")
                stats.service_errors += 1
                continue
            except ResponseValidationError as e:
                print(f"  ✗ Invalid response: {e}")
                stats.validation_errors += 1
                continue

            self.ledger.upsert(LedgerEntry(
                record_id=record.id,
                url=canonical_job_url(record.id),
                classified_at=self.clock().isoformat(),
                result=result,
            ))
            stats.classified += 1
            line = f"  ✓ {result.status.upper()} - Score: {result.score:g}/10"
            print(colourise(line, colour_for_status(result.status)))

            self.regenerate_reports()

        self.regenerate_reports()
        return stats

    # =========================================================================
    # Whole run
    # =========================================================================

    def run(
        self,
        url: Optional[str] = None,
        skip_harvest: bool = False,
        skip_classify: bool = False,
    ) -> RunSummary:
        summary = RunSummary()

        # Missing resume or credentials are fatal; find out before touching the browser.
        classifier = None if skip_classify else self.classifier_factory()

        if not skip_harvest:
            summary.harvest = self.harvest(url)

        if classifier is not None:
            summary.classify = self.classify(classifier)
        else:
            self.regenerate_reports()

        summary.status_counts = self.ledger.counts_by_status()
        summary.total_classified = len(self.ledger)
        summary.report_paths = dict(self.report_paths, ledger=self.settings.results_file)
        return summary
