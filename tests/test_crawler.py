# Test-suite for the SiteAudit breadth-first crawler
from __future__ import annotations

import asyncio
from typing import List, Tuple
from urllib.parse import urlsplit

import pytest
from aiohttp import ClientSession, web

from helpers import links
from site_audit.crawler.crawler import Crawler
from site_audit.crawler.fetcher import PageFetcher
from site_audit.errors import CrawlError
from site_audit.models import CrawlResult
from site_audit.progress import AuditObserver


async def run_crawler(config, start_url: str, max_depth: int, max_pages: int, observer=None) -> CrawlResult:
    """Run the crawler inside a timeout so a hang fails the test instead of blocking it."""
    async with ClientSession() as session:
        crawler = Crawler(PageFetcher(session, config), observer)
        return await asyncio.wait_for(crawler.crawl(start_url, max_depth, max_pages), timeout=15)


def paths(result: CrawlResult) -> List[str]:
    return [urlsplit(url).path for url in result.urls]


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_start_page_without_links(audit_config, html_site):
    base, _ = await html_site({"/": "<html><body>alone</body></html>"})
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=8)
    assert result.urls == [base + "/"]
    assert result.failures == ()
    assert result.pages[0].target.depth == 0


@pytest.mark.asyncio()
async def test_max_pages_bounds_breadth_first(audit_config, html_site):
    children = [f"/p{i}" for i in range(10)]
    pages = {"/": links(*children)}
    pages.update({p: links("/deeper") for p in children})
    base, hits = await html_site(pages)

    result = await run_crawler(audit_config, base, max_depth=1, max_pages=3)

    assert paths(result) == ["/", "/p0", "/p1"]
    # the frontier is discarded once the limit is reached
    assert set(hits) == {"/", "/p0", "/p1"}


@pytest.mark.asyncio()
async def test_breadth_first_order_across_levels(audit_config, html_site):
    base, _ = await html_site({
        "/": links("/a", "/b"),
        "/a": links("/a1", "/b"),
        "/b": links("/b1", "/a"),
        "/a1": links("/"),
        "/b1": "<p>leaf</p>",
    })
    result = await run_crawler(audit_config, base, max_depth=2, max_pages=10)
    assert paths(result) == ["/", "/a", "/b", "/a1", "/b1"]
    assert [p.target.depth for p in result.pages] == [0, 1, 1, 2, 2]


@pytest.mark.asyncio()
async def test_depth_limit(audit_config, html_site):
    base, hits = await html_site({
        "/": links("/page1"),
        "/page1": links("/page2"),
        "/page2": links("/page3"),
        "/page3": "<h1>deep</h1>",
    })
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=10)
    assert paths(result) == ["/", "/page1"]
    assert "/page2" not in hits

    result = await run_crawler(audit_config, base, max_depth=0, max_pages=10)
    assert paths(result) == ["/"]


@pytest.mark.asyncio()
async def test_only_same_origin_pages(audit_config, html_site, serve):
    other_hits = {"n": 0}

    async def other(_):
        other_hits["n"] += 1
        return web.Response(text="<p>other</p>", content_type="text/html")

    external_app = web.Application()
    external_app.router.add_get("/", other)
    external = await serve(external_app)

    base, _ = await html_site({
        "/": f'<a href="{external}/">ext</a><a href="/local">local</a>',
        "/local": "<p>local</p>",
    })
    result = await run_crawler(audit_config, base, max_depth=2, max_pages=10)

    assert paths(result) == ["/", "/local"]
    assert other_hits["n"] == 0
    assert all(url.startswith(base) for url in result.urls)


@pytest.mark.asyncio()
async def test_no_duplicates(audit_config, html_site):
    base, hits = await html_site({
        "/": links("/a", "/a#top", "/a", "/", "/b"),
        "/a": links("/b", "/"),
        "/b": links("/a"),
    })
    result = await run_crawler(audit_config, base, max_depth=3, max_pages=10)
    assert paths(result) == ["/", "/a", "/b"]
    assert len(result.urls) == len(set(result.urls))
    assert hits == {"/": 1, "/a": 1, "/b": 1}


@pytest.mark.asyncio()
async def test_failed_pages_are_skipped(audit_config, html_site):
    async def pdf(_):
        return web.Response(body=b"%PDF-1.4", content_type="application/pdf")

    base, _ = await html_site({
        "/": links("/missing", "/doc.pdf", "/ok"),
        "/doc.pdf": pdf,
        "/ok": "<p>fine</p>",
    })
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=10)

    assert paths(result) == ["/", "/ok"]
    kinds = {f.url.rsplit("/", 1)[1]: f.kind for f in result.failures}
    assert kinds == {"missing": "http-status", "doc.pdf": "unsupported-content"}
    assert not result.start_failed


@pytest.mark.asyncio()
async def test_start_page_unreachable_gives_empty_result(audit_config, html_site):
    async def broken(_):
        return web.Response(status=500)

    base, _ = await html_site({"/": broken})
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=5)
    assert result.pages == ()
    assert result.start_failed
    assert result.failures[0].kind == "http-status"


@pytest.mark.asyncio()
@pytest.mark.parametrize("start_url", ["example.com", "ftp://example.com/", "http://", "http://example.com:x/"])
async def test_invalid_start_url(audit_config, start_url):
    with pytest.raises(CrawlError):
        await run_crawler(audit_config, start_url, max_depth=1, max_pages=5)


@pytest.mark.asyncio()
async def test_invalid_bounds(audit_config):
    with pytest.raises(ValueError):
        await run_crawler(audit_config, "http://example.com/", max_depth=-1, max_pages=5)
    with pytest.raises(ValueError):
        await run_crawler(audit_config, "http://example.com/", max_depth=1, max_pages=0)


@pytest.mark.asyncio()
async def test_observer_is_notified(audit_config, html_site):
    events: List[Tuple[str, str]] = []

    class Recorder(AuditObserver):
        def page_fetched(self, url, depth):
            events.append(("fetched", url))

        def page_failed(self, url, depth, kind, message):
            events.append(("failed", url))

        def crawl_finished(self, start_url, pages, failures):
            events.append(("finished", f"{pages}/{failures}"))
            raise RuntimeError("observer bug")

    base, _ = await html_site({"/": links("/gone")})
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=5, observer=Recorder())

    assert result.urls == [base + "/"]
    assert events == [("fetched", base + "/"), ("failed", base + "/gone"), ("finished", "1/1")]


@pytest.mark.asyncio()
@pytest.mark.slow()
async def test_stress_crawl(audit_config, html_site):
    count = 200
    pages = {"/": links(*(f"/page{i}" for i in range(count)))}
    pages.update({f"/page{i}": "<h1>Page</h1>" for i in range(count)})
    base, _ = await html_site(pages)

    result = await run_crawler(audit_config, base, max_depth=1, max_pages=count + 1)
    assert len(result.urls) == count + 1
    assert paths(result)[1:] == [f"/page{i}" for i in range(count)]


@pytest.mark.asyncio()
async def test_streamed_binary_page_is_not_downloaded(audit_config, html_site):
    chunk = b"\0" * 65536
    sent = {"bytes": 0}

    async def video(request):
        resp = web.StreamResponse(headers={"Content-Type": "video/mp4"})
        await resp.prepare(request)
        try:
            while sent["bytes"] < 40 * 1024 * 1024:
                await resp.write(chunk)
                sent["bytes"] += len(chunk)
        except (ConnectionError, RuntimeError):
            pass
        return resp

    base, _ = await html_site({"/": links("/movie.mp4"), "/movie.mp4": video})
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=8)

    assert paths(result) == ["/"]
    assert [f.kind for f in result.failures] == ["unsupported-content"]
    assert sent["bytes"] < 20 * 1024 * 1024


@pytest.mark.asyncio()
async def test_redirect_target_already_queued_is_fetched_once(audit_config, html_site):
    async def moved(_):
        raise web.HTTPFound("/new")

    base, hits = await html_site({
        "/": links("/old", "/a"),
        "/old": moved,
        "/a": links("/new"),
        "/new": "<p>new</p>",
    })
    result = await run_crawler(audit_config, base, max_depth=2, max_pages=10)

    assert paths(result) == ["/", "/old", "/a"]
    assert hits["/new"] == 1


@pytest.mark.asyncio()
async def test_redirect_to_already_crawled_page_is_skipped(audit_config, html_site):
    async def moved(_):
        raise web.HTTPFound("/new")

    base, hits = await html_site({
        "/": links("/new", "/old"),
        "/old": moved,
        "/new": "<p>new</p>",
    })
    result = await run_crawler(audit_config, base, max_depth=1, max_pages=10)

    assert paths(result) == ["/", "/new"]
    assert hits["/new"] == 2
