# site_audit/checks/accessibility.py
"""
Accessibility check: a static WCAG 2.1 rule set evaluated over the page markup.

Each call builds its own :class:`DocumentContext` through :func:`document_context`
and the parsed tree is torn down when the call leaves the ``with`` block, on
success or error. Nothing is kept at module level, so concurrent checks on
different pages never see each other's documents. Evaluation runs in a worker
thread to keep the event loop free for the sibling checks.
"""
from __future__ import annotations

import asyncio
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_audit.checks.base import MarkupCheck
from site_audit.crawler.fetcher import PageFetcher
from site_audit.models import PageInput

_NODE_HTML_LIMIT = 300
_HELP_URL = "https://dequeuniversity.com/rules/axe/4.8/{rule}"
_UNLABELLED_INPUT_TYPES = {"hidden", "submit", "button", "reset", "image"}


@dataclass(slots=True)
class AffectedNode:
    html: str
    target: str


@dataclass(slots=True)
class Violation:
    rule_id: str
    impact: str
    description: str
    help: str
    nodes: List[AffectedNode] = field(default_factory=list)


@dataclass(slots=True)
class AccessibilityResult:
    violations: List[Violation] = field(default_factory=list)


@dataclass(slots=True)
class DocumentContext:
    """Parsed document of one page, valid only inside :func:`document_context`."""

    url: str
    soup: Optional[BeautifulSoup]

    def find_all(self, *args, **kwargs) -> List[Tag]:
        if self.soup is None:
            raise RuntimeError("document context is closed")
        return [t for t in self.soup.find_all(*args, **kwargs) if isinstance(t, Tag)]

    def close(self) -> None:
        if self.soup is not None:
            self.soup.decompose()
            self.soup = None


@contextmanager
def document_context(html: str, url: str) -> Iterator[DocumentContext]:
    ctx = DocumentContext(url=url, soup=BeautifulSoup(html, "html.parser"))
    try:
        yield ctx
    finally:
        ctx.close()


# --------------------------------------------------------------------------- #
# Rules                                                                       #
# --------------------------------------------------------------------------- #


def _text(tag: Tag) -> str:
    return tag.get_text(" ", strip=True)


def _has_accessible_name(tag: Tag) -> bool:
    if _text(tag):
        return True
    for attr in ("aria-label", "aria-labelledby", "title"):
        value = tag.get(attr)
        if isinstance(value, str) and value.strip():
            return True
    return any(
        isinstance(img, Tag) and str(img.get("alt") or "").strip()
        for img in tag.find_all("img")
    )


def _image_alt(ctx: DocumentContext) -> List[Tag]:
    return [
        img for img in ctx.find_all("img")
        if img.get("alt") is None and img.get("role") not in ("presentation", "none")
    ]


def _html_has_lang(ctx: DocumentContext) -> List[Tag]:
    return [
        html for html in ctx.find_all("html")
        if not str(html.get("lang") or "").strip()
    ]


def _document_title(ctx: DocumentContext) -> List[Tag]:
    titles = ctx.find_all("title")
    if any(_text(t) for t in titles):
        return []
    return titles[:1] or ctx.find_all(True, limit=1)


def _link_name(ctx: DocumentContext) -> List[Tag]:
    return [a for a in ctx.find_all("a", href=True) if not _has_accessible_name(a)]


def _button_name(ctx: DocumentContext) -> List[Tag]:
    buttons = ctx.find_all("button")
    buttons += [
        i for i in ctx.find_all("input")
        if str(i.get("type") or "").lower() in ("submit", "button", "reset")
        and not str(i.get("value") or "").strip()
    ]
    return [b for b in buttons if not _has_accessible_name(b)]


def _label(ctx: DocumentContext) -> List[Tag]:
    labelled_ids = {
        str(label.get("for")) for label in ctx.find_all("label") if label.get("for")
    }
    offenders = []
    for field_tag in ctx.find_all(["input", "select", "textarea"]):
        if str(field_tag.get("type") or "").lower() in _UNLABELLED_INPUT_TYPES:
            continue
        if field_tag.get("id") and str(field_tag.get("id")) in labelled_ids:
            continue
        if field_tag.find_parent("label") is not None:
            continue
        if any(str(field_tag.get(a) or "").strip() for a in ("aria-label", "aria-labelledby", "title")):
            continue
        offenders.append(field_tag)
    return offenders


def _frame_title(ctx: DocumentContext) -> List[Tag]:
    return [
        f for f in ctx.find_all(["iframe", "frame"])
        if not str(f.get("title") or "").strip()
    ]


def _duplicate_id(ctx: DocumentContext) -> List[Tag]:
    tagged = ctx.find_all(id=True)
    counts = Counter(str(t.get("id")) for t in tagged)
    return [t for t in tagged if counts[str(t.get("id"))] > 1]


Rule = Tuple[str, str, str, str, Callable[[DocumentContext], List[Tag]]]

RULES: Tuple[Rule, ...] = (
    ("image-alt", "critical", "Images must have alternate text",
     "Ensures <img> elements have alternate text or a role of none or presentation", _image_alt),
    ("html-has-lang", "serious", "<html> element must have a lang attribute",
     "Ensures every HTML document has a lang attribute", _html_has_lang),
    ("document-title", "serious", "Documents must have <title> element to aid in navigation",
     "Ensures each HTML document contains a non-empty <title> element", _document_title),
    ("link-name", "serious", "Links must have discernible text",
     "Ensures links have discernible text", _link_name),
    ("button-name", "critical", "Buttons must have discernible text",
     "Ensures buttons have discernible text", _button_name),
    ("label", "critical", "Form elements must have labels",
     "Ensures every form element has a label", _label),
    ("frame-title", "serious", "Frames must have an accessible name",
     "Ensures <iframe> and <frame> elements have an accessible name", _frame_title),
    ("duplicate-id", "minor", "id attribute value must be unique",
     "Ensures every id attribute value is unique", _duplicate_id),
)


def _selector(tag: Tag) -> str:
    if tag.get("id"):
        return f"#{tag.get('id')}"
    classes = tag.get("class") or []
    if classes:
        return tag.name + "".join(f".{c}" for c in classes)
    return tag.name


def evaluate(ctx: DocumentContext, max_nodes: int) -> AccessibilityResult:
    """Run every rule against *ctx*; rules without offending nodes are omitted."""
    result = AccessibilityResult()
    for rule_id, impact, help_text, description, rule in RULES:
        offenders = rule(ctx)
        if not offenders:
            continue
        nodes = [
            AffectedNode(html=str(tag)[:_NODE_HTML_LIMIT], target=_selector(tag))
            for tag in offenders[:max_nodes]
        ]
        result.violations.append(
            Violation(
                rule_id=rule_id,
                impact=impact,
                description=description,
                help=f"{help_text} ({_HELP_URL.format(rule=rule_id)})",
                nodes=nodes,
            )
        )
    return result


class AccessibilityCheck(MarkupCheck):
    name = "accessibility"

    def __init__(self, fetcher: PageFetcher, max_nodes: int = 3) -> None:
        super().__init__(fetcher)
        self.max_nodes = max_nodes

    def _evaluate(self, html: str, url: str) -> AccessibilityResult:
        with document_context(html, url) as ctx:
            return evaluate(ctx, self.max_nodes)

    async def run(self, page: PageInput) -> AccessibilityResult:
        html = await self.markup(page)
        return await asyncio.to_thread(self._evaluate, html, page.url)


__all__ = [
    "AccessibilityCheck",
    "AccessibilityResult",
    "DocumentContext",
    "RULES",
    "Violation",
    "document_context",
    "evaluate",
]
