"""
Details-pane HTML -> line-oriented plain text.

render_text() works on a small abstract tree (Node) so it does not care where
the markup came from; node_from_html() fills that tree from an HTML fragment
with BeautifulSoup.

Rules:
- block elements (p, div, li, headings, ...) start a new line
- paragraphs are separated by a blank line
- headings are UPPER-CASED with a blank line before and after
- list items get a "• " prefix
- inline elements (strong, em, a, span, ...) stay on the current line
- <br> breaks the line
Whitespace inside a line collapses to one space, lines are trimmed, and at
most one blank line survives in a row. Nodes with no text produce no lines.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, NavigableString, Tag

TEXT = "text"
BLOCK = "block"
INLINE = "inline"
CONTAINER = "container"
BREAK = "break"

BULLET = "• "
# Stands on a line of its own where a blank line is wanted.
PARA = "\x00"

HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
PARAGRAPH_TAGS = {"p", "blockquote", "pre"}
BLOCK_TAGS = HEADING_TAGS | PARAGRAPH_TAGS | {
    "div", "section", "article", "header", "footer", "li", "dt", "dd",
    "tr", "figcaption", "address",
}
CONTAINER_TAGS = {"[document]", "html", "body", "main", "ul", "ol", "dl",
                  "table", "thead", "tbody", "tfoot"}
BREAK_TAGS = {"br", "hr"}
SKIP_TAGS = {"script", "style", "noscript", "template", "svg", "button", "head"}

_WS = re.compile(r"\s+")


@dataclass(frozen=True)
class Node:
    kind: str
    tag: str = ""
    text: str = ""
    children: Tuple["Node", ...] = ()


def text_node(text: str) -> Node:
    return Node(kind=TEXT, text=text)


def element(kind: str, tag: str, *children: Node) -> Node:
    return Node(kind=kind, tag=tag, children=tuple(children))


# =============================================================================
# Rendering
# =============================================================================

def _render_children(node: Node) -> str:
    out: List[str] = []
    for child in node.children:
        _render(child, out)
    return "".join(out)


def _render(node: Node, out: List[str]) -> None:
    if node.kind == TEXT:
        out.append(_WS.sub(" ", (node.text or "").replace(PARA, "")))
        return
    if node.kind == BREAK:
        out.append("\n")
        return
    if node.kind in (INLINE, CONTAINER):
        if node.kind == CONTAINER:
            out.append("\n")
        out.append(_render_children(node))
        if node.kind == CONTAINER:
            out.append("\n")
        return

    inner = _render_children(node).strip()
    if not inner:
        out.append("\n")
        return

    tag = (node.tag or "").lower()
    if tag in HEADING_TAGS:
        out.append(f"\n{PARA}\n{inner.upper()}\n{PARA}\n")
    elif tag == "li":
        out.append(f"\n{BULLET}{inner}\n")
    elif tag in PARAGRAPH_TAGS:
        out.append(f"\n{PARA}\n{inner}\n{PARA}\n")
    else:
        out.append(f"\n{inner}\n")


def _normalise_lines(raw: str) -> str:
    lines: List[str] = []
    for line in raw.split("\n"):
        line = _WS.sub(" ", line).strip()
        if line == PARA:
            if lines and lines[-1] != "":
                lines.append("")
            continue
        if not line:
            continue
        lines.append(line)
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)


def render_text(node: Node) -> str:
    """Render a tree to normalised text. A tree without text gives ""."""
    out: List[str] = []
    _render(node, out)
    return _normalise_lines("".join(out))


# =============================================================================
# HTML -> Node
# =============================================================================

def _kind_for_tag(name: str) -> str:
    if name in BREAK_TAGS:
        return BREAK
    if name in BLOCK_TAGS:
        return BLOCK
    if name in CONTAINER_TAGS:
        return CONTAINER
    return INLINE


def _convert(tag: Tag) -> Node:
    children: List[Node] = []
    for child in tag.children:
        if isinstance(child, (Comment, Doctype)):
            continue
        if isinstance(child, NavigableString):
            children.append(text_node(str(child)))
        elif isinstance(child, Tag):
            name = (child.name or "").lower()
            if name in SKIP_TAGS:
                continue
            children.append(_convert(child))
    name = (tag.name or "").lower()
    return Node(kind=_kind_for_tag(name), tag=name, children=tuple(children))


def node_from_html(html: str) -> Node:
    soup = BeautifulSoup(html or "", "html.parser")
    return _convert(soup)


def html_to_text(html: str) -> str:
    return render_text(node_from_html(html))
