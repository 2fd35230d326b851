# site_audit/checks/seo.py
"""SEO/metadata check: title, description and canonical URL of a page."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_audit.checks.base import MarkupCheck
from site_audit.models import PageInput


@dataclass(slots=True)
class SeoResult:
    url: str
    title: str
    description: str
    canonical_url: Optional[str] = None


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if isinstance(tag, Tag):
        value = tag.get("content")
        if isinstance(value, str):
            return value.strip()
    return ""


def extract_metadata(html: str, url: str) -> SeoResult:
    """Read page metadata, falling back to Open Graph tags."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    if not title:
        title = _meta_content(soup, property="og:title")

    description = _meta_content(soup, name="description") or _meta_content(
        soup, property="og:description"
    )

    canonical_url = None
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in (r.lower() for r in rel):
            canonical_url = urljoin(url, str(link["href"]).strip())
            break

    return SeoResult(url=url, title=title, description=description, canonical_url=canonical_url)


class SeoCheck(MarkupCheck):
    name = "seo"

    async def run(self, page: PageInput) -> SeoResult:
        html = await self.markup(page)
        return extract_metadata(html, page.url)
