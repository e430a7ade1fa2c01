"""
Browser session capability used by the harvester.

The harvester only needs a handful of operations (go to a URL, find elements,
read text, click, wait for something to show up, scroll). BrowserSession and
Element describe exactly that; PlaywrightSession implements it on top of a
Chrome that the user already started with remote debugging and logged into.

Expected misses (selector not found, click intercepted, wait timed out) are
returned as None/False. Anything else Playwright raises on the page (tab or
browser closed, CDP connection dropped) becomes SessionUnavailable; a
navigation that times out becomes PageLoadError.
"""

import sys
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .errors import PageLoadError, SessionUnavailable


class Element(ABC):
    @abstractmethod
    def click(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def text(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def inner_html(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def query(self, selector: str) -> Optional["Element"]:
        raise NotImplementedError


class BrowserSession(ABC):
    @abstractmethod
    def goto(self, url: str, timeout_ms: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def current_url(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def query(self, selector: str) -> Optional[Element]:
        raise NotImplementedError

    @abstractmethod
    def query_all(self, selector: str) -> List[Element]:
        raise NotImplementedError

    @abstractmethod
    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        """True once selector matches, False if timeout_ms passes first."""
        raise NotImplementedError

    @abstractmethod
    def scroll_height(self, selector: str) -> Optional[int]:
        raise NotImplementedError

    @abstractmethod
    def scroll_by(self, selector: str, pixels: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def scroll_to_bottom(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def wait(self, ms: int) -> None:
        raise NotImplementedError


# =============================================================================
# Playwright implementation
# =============================================================================

def remediation_hint() -> str:
    if sys.platform == "win32":
        return (
            "Start Chrome with remote debugging, e.g.:\n"
            '  "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe" '
            "--remote-debugging-port=9222 --user-data-dir=%USERPROFILE%\\chrome-debug-profile\n"
            "then log into https://www.linkedin.com/ in that window and re-run."
        )
    if sys.platform == "darwin":
        return (
            "Start Chrome with remote debugging, e.g.:\n"
            '  "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome" '
            '--remote-debugging-port=9222 --user-data-dir="$HOME/chrome-debug-profile"\n'
            "then log into https://www.linkedin.com/ in that window and re-run."
        )
    return (
        "Start Chrome with remote debugging, e.g.:\n"
        '  google-chrome --remote-debugging-port=9222 --user-data-dir="$HOME/chrome-debug-profile"\n'
        "then log into https://www.linkedin.com/ in that window and re-run."
    )


@contextmanager
def _browser_call(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightError as e:
        raise SessionUnavailable(
            f"Lost the browser while trying to {action}: {e}\n{remediation_hint()}"
        ) from e


class PlaywrightElement(Element):
    def __init__(self, handle):
        self._handle = handle

    def click(self) -> bool:
        try:
            self._handle.scroll_into_view_if_needed(timeout=4000)
        except PlaywrightError:
            pass
        try:
            self._handle.click(timeout=6000)
            return True
        except PlaywrightError:
            # Cards sometimes swallow the click; the inner link usually doesn't.
            try:
                link = self._handle.query_selector("a")
                if link is None:
                    return False
                link.click(timeout=6000)
                return True
            except PlaywrightError:
                return False

    def text(self) -> str:
        return self._handle.text_content() or ""

    def attribute(self, name: str) -> Optional[str]:
        return self._handle.get_attribute(name)

    def inner_html(self) -> str:
        return self._handle.inner_html()

    def query(self, selector: str) -> Optional[Element]:
        handle = self._handle.query_selector(selector)
        return PlaywrightElement(handle) if handle else None


_SCROLL_HEIGHT_JS = """(el) => el.scrollHeight"""
_SCROLL_BY_JS = """(el, px) => { el.scrollBy(0, px); }"""


class PlaywrightSession(BrowserSession):
    def __init__(self, page):
        self.page = page

    def goto(self, url: str, timeout_ms: int) -> None:
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise PageLoadError(f"{url} did not load within {timeout_ms} ms.") from e
        except PlaywrightError as e:
            raise SessionUnavailable(
                f"Could not open {url}: {e}\n{remediation_hint()}"
            ) from e

    def current_url(self) -> str:
        return self.page.url

    def query(self, selector: str) -> Optional[Element]:
        with _browser_call("query the page"):
            handle = self.page.query_selector(selector)
        return PlaywrightElement(handle) if handle else None

    def query_all(self, selector: str) -> List[Element]:
        with _browser_call("list the job cards"):
            handles = self.page.query_selector_all(selector)
        return [PlaywrightElement(h) for h in handles]

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        with _browser_call("wait for the page"):
            try:
                self.page.wait_for_selector(selector, timeout=timeout_ms)
                return True
            except PlaywrightTimeoutError:
                return False

    def scroll_height(self, selector: str) -> Optional[int]:
        with _browser_call("measure the job list"):
            handle = self.page.query_selector(selector)
            if handle is None:
                return None
            return int(handle.evaluate(_SCROLL_HEIGHT_JS))

    def scroll_by(self, selector: str, pixels: int) -> None:
        with _browser_call("scroll the job list"):
            handle = self.page.query_selector(selector)
            if handle is None:
                self.page.mouse.wheel(0, pixels)
                return
            handle.evaluate(_SCROLL_BY_JS, pixels)

    def scroll_to_bottom(self) -> None:
        with _browser_call("scroll the page"):
            self.page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    def wait(self, ms: int) -> None:
        with _browser_call("pause"):
            self.page.wait_for_timeout(ms)


@contextmanager
def connect_session(cdp_url: str) -> Iterator[PlaywrightSession]:
    """
    Attach to the user's running Chrome over CDP and hand out its first tab.

    The browser belongs to the user: on exit we only disconnect, never close it.
    """
    with sync_playwright() as p:
        print("Connecting to existing Chrome browser...")
        try:
            browser = p.chromium.connect_over_cdp(cdp_url)
        except PlaywrightError as e:
            raise SessionUnavailable(
                f"Failed to connect to Chrome at {cdp_url}: {e}\n{remediation_hint()}"
            ) from e

        contexts = browser.contexts
        if not contexts:
            raise SessionUnavailable(
                "No browser contexts found. Please make sure Chrome is running.\n"
                + remediation_hint()
            )

        context = contexts[0]
        if context.pages:
            page = context.pages[0]
            print("Using existing browser tab")
        else:
            page = context.new_page()
            print("Created new browser tab")

        yield PlaywrightSession(page)
        print("Harvest finished. Browser remains open.")
