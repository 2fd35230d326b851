"""site_audit.crawler: обход сайта и загрузка страниц."""

from .crawler import Crawler
from .fetcher import PageFetcher
from .models import FetchedPage

__all__ = ["Crawler", "PageFetcher", "FetchedPage"]
