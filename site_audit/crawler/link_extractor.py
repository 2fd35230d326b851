# site_audit/crawler/link_extractor.py
"""
Link extraction and URL normalization utilities for SiteAudit.
"""
from __future__ import annotations

from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

_SKIP_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")
_DEFAULT_PORTS = {"http": 80, "https": 443}

Origin = Tuple[str, str, Optional[int]]


def normalize_url(url: str) -> str:
    """
    Normalize URL for visited-tracking: lowercase scheme and host,
    empty path becomes "/", default port and fragment stripped,
    query kept as is.

    Raises ValueError for URLs that cannot be parsed (e.g. a bad port).
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    port = parts.port  # raises ValueError on a bad port
    if port is not None and port == _DEFAULT_PORTS.get(scheme):
        netloc = netloc.rsplit(":", 1)[0]
    path = parts.path or "/"
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def origin_of(url: str) -> Origin:
    """Return (scheme, host, effective port) of an absolute URL."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    port = parts.port or _DEFAULT_PORTS.get(scheme)
    return scheme, (parts.hostname or "").lower(), port


def same_origin(url: str, other: str) -> bool:
    try:
        return origin_of(url) == origin_of(other)
    except ValueError:
        return False


def extract_links(html: str, base_url: str) -> List[str]:
    """
    Extract normalized absolute HTTP(S) links in the order they appear in markup.

    Ignores mailto:, javascript:, tel:, data: and unparsable hrefs.
    Duplicates are dropped, first occurrence wins.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.lower().startswith(_SKIP_SCHEMES):
            continue
        try:
            absolute = normalize_url(urljoin(base_url, raw))
        except ValueError:
            continue
        if urlsplit(absolute).scheme not in ("http", "https"):
            continue
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)
    return links


__all__ = ["extract_links", "normalize_url", "origin_of", "same_origin"]
