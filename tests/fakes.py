# tests/fakes.py
"""In-memory stand-ins for the browser session and the OpenAI client."""
import json
from dataclasses import dataclass
from typing import Dict, List, Optional

from job_triage import harvester as hv
from job_triage.session import BrowserSession, Element


# ---------------------------------------------------------------------
# Fake browser: a LinkedIn-ish job list driven entirely in memory
# ---------------------------------------------------------------------
@dataclass
class FakeCard:
    job_id: Optional[str]
    title: str = "Engineering Manager"
    company: str = "Acme"
    location: str = "Remote"
    details_html: str = "<h2>About the job</h2><p>Lead the platform team.</p>"
    panel_loads: bool = True
    clickable: bool = True


@dataclass
class FakePage:
    cards: List[FakeCard]
    # "enabled" | "disabled" | None (no button at all)
    next_button: Optional[str] = None


class FakeElement(Element):
    def __init__(self, text: str = "", attrs: Optional[Dict[str, str]] = None,
                 html: str = "", on_click=None, children: Optional[Dict[str, "FakeElement"]] = None):
        self._text = text
        self._attrs = attrs or {}
        self._html = html
        self._on_click = on_click
        self._children = children or {}
        self.clicks = 0

    def click(self) -> bool:
        self.clicks += 1
        if self._on_click is None:
            return True
        return bool(self._on_click())

    def text(self) -> str:
        return self._text

    def attribute(self, name: str) -> Optional[str]:
        return self._attrs.get(name)

    def inner_html(self) -> str:
        return self._html

    def query(self, selector: str) -> Optional[Element]:
        return self._children.get(selector)


class FakeSession(BrowserSession):
    def __init__(self, pages: List[FakePage], url: str = "https://www.linkedin.com/jobs/search/"):
        self.pages = pages
        self.page_index = 0
        self.url = url
        self.selected: Optional[FakeCard] = None
        # Card the details pane currently renders; lags behind `selected`.
        self.shown: Optional[FakeCard] = None
        # wait() calls needed after a click before the pane catches up.
        self.panel_lag_waits = 0
        self._lag = 0
        self.login_wall = False
        self.list_available = True
        # Simulates the list never coming back after clicking Next.
        self.list_breaks_after_page: Optional[int] = None
        self.visited: List[str] = []
        self.waits: List[int] = []
        self.scrolled = 0

    # navigation ---------------------------------------------------------
    def goto(self, url: str, timeout_ms: int) -> None:
        self.visited.append(url)

    def current_url(self) -> str:
        return self.url

    # lookup -------------------------------------------------------------
    def _card_element(self, card: FakeCard) -> FakeElement:
        attrs = {}
        children = {}
        if card.job_id and not card.job_id.startswith("href:"):
            attrs["data-occludable-job-id"] = card.job_id
        elif card.job_id:
            link = FakeElement(attrs={"href": f"/jobs/view/{card.job_id[5:]}/?refId=abc"})
            children["a[href*='/jobs/view/']"] = link
            children["a"] = link

        def _select():
            if not card.clickable:
                return False
            self.selected = card
            self._lag = self.panel_lag_waits
            if not self._lag:
                self._show_selected()
            return True

        return FakeElement(attrs=attrs, on_click=_select, children=children)

    def _show_selected(self) -> None:
        # A card whose panel never loads leaves the old pane on screen.
        if self.selected is not None and self.selected.panel_loads:
            self.shown = self.selected

    def query(self, selector: str) -> Optional[Element]:
        card = self.shown
        if selector in hv.LOGIN_WALL_SELECTORS:
            return FakeElement() if self.login_wall else None
        if selector == hv.DETAILS_SELECTOR:
            if card is None:
                return None
            return FakeElement(html=f'<article data-card="{id(card)}">{card.details_html}</article>')
        if selector == hv.TITLE_SELECTORS[0] and card is not None:
            return FakeElement(text=f"  {card.title}\n")
        if selector == hv.COMPANY_SELECTORS[0] and card is not None:
            return FakeElement(text=card.company)
        if selector == hv.LOCATION_SELECTORS[0] and card is not None:
            return FakeElement(text=card.location)
        if selector == hv.NEXT_BUTTON_SELECTORS[0]:
            state = self.pages[self.page_index].next_button
            if state is None:
                return None
            if state == "disabled":
                return FakeElement(attrs={"disabled": "", "class": "artdeco-button artdeco-button--disabled"})
            return FakeElement(attrs={"class": "artdeco-button"}, on_click=self._next_page)
        return None

    def _next_page(self) -> bool:
        if self.list_breaks_after_page is not None and self.page_index + 1 >= self.list_breaks_after_page:
            self.list_available = False
        self.page_index += 1
        self.selected = None
        return True

    def query_all(self, selector: str) -> List[Element]:
        if selector != hv.ITEM_SELECTOR:
            return []
        return [self._card_element(c) for c in self.pages[self.page_index].cards]

    def wait_for(self, selector: str, timeout_ms: int) -> bool:
        if selector == hv.LIST_SELECTOR:
            return self.list_available
        if selector == hv.DETAILS_SELECTOR:
            if self.shown is None and self._lag:
                self._lag = 0
                self._show_selected()
            return self.shown is not None
        return False

    # scrolling / timing -------------------------------------------------
    def scroll_height(self, selector: str) -> Optional[int]:
        return 300

    def scroll_by(self, selector: str, pixels: int) -> None:
        self.scrolled += pixels

    def scroll_to_bottom(self) -> None:
        pass

    def wait(self, ms: int) -> None:
        self.waits.append(ms)
        if self._lag:
            self._lag -= 1
            if not self._lag:
                self._show_selected()


# ---------------------------------------------------------------------
# Fake OpenAI client
# ---------------------------------------------------------------------
class _Msg:
    def __init__(self, content):
        self.content = content


class _Choice:
    def __init__(self, content):
        self.message = _Msg(content)


class _Resp:
    def __init__(self, content):
        self.choices = [_Choice(content)]


class FakeCompletions:
    def __init__(self, answers):
        # answers: posting-id substring -> dict payload | str | Exception
        self.answers = answers
        self.calls: List[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        posting = kwargs["messages"][-1]["content"]
        for key, answer in self.answers.items():
            if key in posting:
                if isinstance(answer, BaseException):
                    raise answer
                if isinstance(answer, str):
                    return _Resp(answer)
                return _Resp(json.dumps(answer))
        return _Resp(json.dumps({"suitability_status": "not_suitable", "match_score": 1}))


class FakeOpenAI:
    def __init__(self, answers=None):
        self.completions = FakeCompletions(answers or {})

        class _Chat:
            pass

        self.chat = _Chat()
        self.chat.completions = self.completions


