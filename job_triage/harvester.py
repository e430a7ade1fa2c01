"""
LinkedIn job list harvester.

Walks the two-pane job search UI page by page:

    NAVIGATING -> LOADING_PAGE -> (per card: ACTIVATING -> EXTRACTING -> SKIPPED|SAVED)
               -> PAGINATING -> LOADING_PAGE | DONE

For each card it clicks, waits for the details pane, works out the job ID and,
if the record store does not have it yet, extracts the posting and saves it
straight away. A crash mid-page therefore never loses a posting that was
already saved.

Per-card problems (pane never loads, click fails, odd markup) are counted and
skipped. A login wall or a job list that does not come back after paging
stops the run.
"""

import random
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Set

from .config import Settings, normalise_url
from .errors import AuthenticationRequired, FatalError, PageLoadError
from .models import NOT_AVAILABLE, Record, canonical_job_url, synthesize_job_id
from .record_store import RecordStore
from .session import BrowserSession, Element
from .textrender import html_to_text

# =============================================================================
# DOM selectors (LinkedIn changes markup frequently; most lookups try several)
# =============================================================================

LIST_SELECTOR = 'xpath=//*[@id="main"]/div/div[2]/div[1]/div/ul'
ITEM_SELECTOR = 'xpath=//*[@id="main"]/div/div[2]/div[1]/div/ul/li'
DETAILS_SELECTOR = "#job-details"

TITLE_SELECTORS = [
    "div.job-details-jobs-unified-top-card__job-title h1",
    "div.jobs-unified-top-card__content--two-pane h1",
    "#job-details h1, #job-details h2, #job-details [class*='job-title']",
]

COMPANY_SELECTORS = [
    "div.job-details-jobs-unified-top-card__company-name a",
    "div.job-details-jobs-unified-top-card__company-name",
    "div.jobs-unified-top-card__company-name a",
    'xpath=//*[@id="main"]/div/div[2]/div[2]/div/div[2]/div/div[2]/div[1]/div/div[1]/div/div[1]/div/div[2]',
]

LOCATION_SELECTORS = [
    "div.job-details-jobs-unified-top-card__primary-description-container span.tvm__text",
    "span.job-details-jobs-unified-top-card__bullet",
    'xpath=//*[@id="main"]/div/div[2]/div[2]/div/div[2]/div/div[2]/div[1]/div/div[1]/div/div[1]/div/div[3]',
]

SEE_MORE_SELECTORS = [
    "button.inline-show-more-text__button",
    "button.jobs-description__footer-button",
    "button[aria-label*='See more']",
]

NEXT_BUTTON_SELECTORS = [
    "button[aria-label='View next page']",
    "button.jobs-search-pagination__button--next",
    "button.artdeco-pagination__button--next",
]

# Login modal / password prompt => we are logged out.
LOGIN_WALL_SELECTORS = [
    ".modal__main.w-full",
    "input[type='password']",
]
AUTH_URL_MARKERS = ("checkpoint", "login", "authwall")

JOB_LINK_RE = re.compile(r"/jobs/view/(\d+)|currentJobId=(\d+)")

# After a click the right pane keeps showing the previous posting for a while.
PANEL_SETTLE_MIN_MS = 650
PANEL_SETTLE_MAX_MS = 1200
PANEL_POLL_MS = 250

SCROLL_STEP_PX = 100
SCROLL_STEP_WAIT_MS = 100
MAX_SCROLL_STEPS = 600


class HarvestState(Enum):
    NAVIGATING = "navigating"
    LOADING_PAGE = "loading_page"
    ACTIVATING = "activating"
    EXTRACTING = "extracting"
    SKIPPED = "skipped"
    SAVED = "saved"
    PAGINATING = "paginating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class Cursor:
    """Where we are in this pass. Not persisted; the record store is the progress."""
    page_number: int = 1
    seen: Set[str] = field(default_factory=set)
    has_more: bool = True


@dataclass
class HarvestStats:
    pages: int = 0
    saved: int = 0
    skipped: int = 0
    panel_timeouts: int = 0
    errors: int = 0


# =============================================================================
# Small helpers
# =============================================================================

def clean_text(s: str) -> str:
    """Collapse all whitespace to single spaces, trim edges."""
    return re.sub(r"\s+", " ", (s or "")).strip()


def job_id_from_href(href: str) -> str:
    m = JOB_LINK_RE.search(href or "")
    if not m:
        return ""
    return m.group(1) or m.group(2) or ""


def is_next_disabled(btn: Optional[Element]) -> bool:
    """
    Determine if "Next" is disabled based on common attributes/classnames.
    """
    if btn is None:
        return True
    aria_disabled = (btn.attribute("aria-disabled") or "").lower()
    classes = (btn.attribute("class") or "").lower()
    if aria_disabled == "true" or btn.attribute("disabled") is not None:
        return True
    if "artdeco-button--disabled" in classes or "disabled" in classes.split():
        return True
    return False


# =============================================================================
# Harvester
# =============================================================================

class Harvester:
    def __init__(
        self,
        session: BrowserSession,
        store: RecordStore,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.store = store
        self.settings = settings
        self.rng = rng or random.Random()
        self.state = HarvestState.NAVIGATING
        self.cursor = Cursor()
        self.stats = HarvestStats()
        # Pane markup last read for a card; a fresh card must show something else.
        self._last_panel_html: Optional[str] = None

    # -- public ---------------------------------------------------------------

    def harvest(self, url: Optional[str] = None) -> Iterator[Record]:
        """
        Yield every posting saved during this pass, in extraction order.

        Each record is already on disk by the time it is yielded.
        """
        url = normalise_url(url or self.settings.jobs_url)
        known = len(self.store)
        if known:
            print(f"Found {known} previously scraped jobs - these will be skipped")

        try:
            self.state = HarvestState.NAVIGATING
            print("Navigating to LinkedIn jobs page...")
            self.session.goto(url, self.settings.page_timeout_ms)
            # Give redirects (e.g. to a login page) a moment to land.
            self.session.wait(2000)
            print(f"Current URL: {self.session.current_url()}")
            self._check_auth()

            print("Waiting for job list element...")
            self._wait_for_list()
            print("Job list found!")

            while self.cursor.has_more:
                self.state = HarvestState.LOADING_PAGE
                self.stats.pages += 1
                page_number = self.cursor.page_number
                print(f"\n=== Processing Page {page_number} ===")

                self._load_all_items()
                items = self.session.query_all(ITEM_SELECTOR)
                print(f"Found {len(items)} job listings on page {page_number}")

                for index, item in enumerate(items, 1):
                    record = self._process_item(item, index, len(items))
                    if record is not None:
                        yield record
                    self._human_wait(self.settings.delay_min_ms, self.settings.delay_max_ms)

                if self.settings.max_pages and page_number >= self.settings.max_pages:
                    print(f"Reached MAX_PAGES={self.settings.max_pages}; stopping.")
                    self.cursor.has_more = False
                    break

                self._advance()
        except FatalError:
            self.state = HarvestState.FAILED
            raise

        self.state = HarvestState.DONE
        print("\n=== Scraping Complete ===")
        print(
            f"Successfully scraped {self.stats.saved} NEW job postings "
            f"across {self.stats.pages} pages"
        )
        print(f"Skipped {self.stats.skipped} previously scraped jobs")
        if self.stats.panel_timeouts or self.stats.errors:
            print(
                f"Details pane timeouts: {self.stats.panel_timeouts}, "
                f"errors: {self.stats.errors}"
            )

    # -- per item -------------------------------------------------------------

    def _process_item(self, item: Element, index: int, total: int) -> Optional[Record]:
        label = f"Job {index}/{total} (page {self.cursor.page_number})"
        try:
            self.state = HarvestState.ACTIVATING
            if not item.click():
                print(f"{label}: could not click card, skipping...")
                self.stats.errors += 1
                return None

            if not self.session.wait_for(DETAILS_SELECTOR, self.settings.panel_timeout_ms):
                print(f"{label}: job details panel not found, skipping...")
                self.stats.panel_timeouts += 1
                return None

            self._human_wait(PANEL_SETTLE_MIN_MS, PANEL_SETTLE_MAX_MS)
            if not self._wait_for_fresh_panel():
                print(f"{label}: job details panel still shows the previous job, skipping...")
                self.stats.panel_timeouts += 1
                return None

            job_id = self._job_id(item)
            if job_id in self.cursor.seen or self.store.contains(job_id):
                self._last_panel_html = self._panel_html()
                print(f"{label}: already scraped (ID: {job_id}), skipping...")
                self.stats.skipped += 1
                self.state = HarvestState.SKIPPED
                return None

            self.state = HarvestState.EXTRACTING
            record = self._extract(job_id)
            self._last_panel_html = self._panel_html()
            if record is None:
                print(f"{label}: could not find job details, skipping...")
                self.stats.errors += 1
                return None

            self.cursor.seen.add(job_id)
            if not self.store.save(record):
                self.stats.skipped += 1
                self.state = HarvestState.SKIPPED
                return None

            self.stats.saved += 1
            self.state = HarvestState.SAVED
            print(f"Saved: {job_id}.txt")
            return record
        except FatalError:
            raise
        except Exception as e:
            print(f"Error processing {label}: {e}", file=sys.stderr)
            self.stats.errors += 1
            return None

    def _panel_html(self) -> str:
        details = self.session.query(DETAILS_SELECTOR)
        return details.inner_html() if details is not None else ""

    def _wait_for_fresh_panel(self) -> bool:
        """
        Poll until the details pane differs from what the previous card showed,
        for at most panel_timeout_ms.
        """
        waited = 0
        while True:
            html = self._panel_html()
            if html and html != self._last_panel_html:
                return True
            if waited >= self.settings.panel_timeout_ms:
                return False
            self.session.wait(PANEL_POLL_MS)
            waited += PANEL_POLL_MS

    def _job_id(self, item: Element) -> str:
        for attr in ("data-job-id", "data-occludable-job-id"):
            jid = (item.attribute(attr) or "").strip()
            if jid.isdigit():
                return jid

        link = item.query("a[href*='/jobs/view/']") or item.query("a")
        if link is not None:
            jid = job_id_from_href(link.attribute("href") or "")
            if jid:
                return jid

        return synthesize_job_id()

    def _extract(self, job_id: str) -> Optional[Record]:
        self._expand_see_more()

        details = self.session.query(DETAILS_SELECTOR)
        if details is None:
            return None

        body = html_to_text(details.inner_html())
        return Record(
            id=job_id,
            title=self._first_text(TITLE_SELECTORS),
            organization=self._first_text(COMPANY_SELECTORS),
            location=self._first_text(LOCATION_SELECTORS),
            body=body,
            source_url=canonical_job_url(job_id),
        )

    def _first_text(self, selectors: List[str]) -> str:
        for sel in selectors:
            el = self.session.query(sel)
            if el is None:
                continue
            txt = clean_text(el.text())
            if txt:
                return txt
        return NOT_AVAILABLE

    def _expand_see_more(self) -> None:
        for sel in SEE_MORE_SELECTORS:
            btn = self.session.query(sel)
            if btn is not None and btn.click():
                self.session.wait(200)
                return

    # -- page level -----------------------------------------------------------

    def _check_auth(self) -> None:
        for sel in LOGIN_WALL_SELECTORS:
            if self.session.query(sel) is not None:
                raise AuthenticationRequired(
                    "LinkedIn is requiring authentication. "
                    "Please log in manually in the browser, then re-run."
                )
        current = (self.session.current_url() or "").lower()
        if any(marker in current for marker in AUTH_URL_MARKERS):
            raise AuthenticationRequired(
                f"LinkedIn redirected to {current}. "
                "Please log in manually in the browser, then re-run."
            )

    def _wait_for_list(self) -> None:
        if not self.session.wait_for(LIST_SELECTOR, self.settings.page_timeout_ms):
            raise PageLoadError(
                f"Job list did not appear within {self.settings.page_timeout_ms} ms "
                f"(page {self.cursor.page_number})."
            )

    def _load_all_items(self) -> None:
        """
        LinkedIn virtualises the left list: cards only render once scrolled to.
        Scroll in small steps until we have passed a scroll height that has
        stopped growing.
        """
        height = self.session.scroll_height(LIST_SELECTOR)
        if height is None:
            return
        position = 0
        steps = 0
        while position < height and steps < MAX_SCROLL_STEPS:
            self.session.scroll_by(LIST_SELECTOR, SCROLL_STEP_PX)
            position += SCROLL_STEP_PX
            steps += 1
            self.session.wait(SCROLL_STEP_WAIT_MS)
            grown = self.session.scroll_height(LIST_SELECTOR)
            if grown is not None and grown > height:
                height = grown
        self.session.wait(1000)

    def _find_next_button(self) -> Optional[Element]:
        for sel in NEXT_BUTTON_SELECTORS:
            btn = self.session.query(sel)
            if btn is not None:
                return btn
        return None

    def _advance(self) -> None:
        self.state = HarvestState.PAGINATING
        print("\nLooking for next page button...")
        self.session.scroll_to_bottom()
        self.session.wait(1000)

        btn = self._find_next_button()
        if btn is None:
            print("No next button found - reached last page")
            self.cursor.has_more = False
            return
        if is_next_disabled(btn):
            print("Next button is disabled - reached last page")
            self.cursor.has_more = False
            return

        print("Clicking next button...")
        if not btn.click():
            raise PageLoadError(
                f"Could not click Next on page {self.cursor.page_number}.")

        print("Waiting for next page to load...")
        self._human_wait(3000, 5000)
        self._wait_for_list()
        self._check_auth()
        self.cursor.page_number += 1
        print(f"Successfully loaded page {self.cursor.page_number}")

    def _human_wait(self, min_ms: int, max_ms: int) -> None:
        """Randomised pause; keeps the click rate looking human."""
        if max_ms <= 0:
            return
        self.session.wait(int(self.rng.uniform(min_ms, max_ms)))
