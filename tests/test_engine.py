import asyncio

import pytest
from aiohttp import web

from helpers import StaticCheck, links
from site_audit.checks.base import AuditCheck
from site_audit.engine import AuditEngine, start_audit
from site_audit.errors import CrawlError
from site_audit.progress import AuditObserver


def static_checks(**overrides):
    """checks_factory returning fresh doubles; keyword arguments replace a check by name."""

    def factory(config, fetcher):
        checks = {
            "performance": StaticCheck(
                "performance",
                lambda page: {"categories": {"performance": 80 if page.url.endswith("/") else 61}, "metrics": {}},
            ),
            "accessibility": StaticCheck("accessibility", {"violations": [{"rule_id": "image-alt"}]}),
            "seo": StaticCheck("seo", lambda page: {"title": page.url}),
        }
        checks.update(overrides)
        return list(checks.values())

    return factory


class ConcurrencyTracker(AuditCheck):
    name = "seo"

    def __init__(self):
        self.active = 0
        self.peak = 0

    async def run(self, page):
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.05)
        self.active -= 1
        return {"title": page.url}


@pytest.mark.asyncio()
async def test_full_audit(audit_config, html_site):
    base, _ = await html_site({"/": links("/a", "/b", "/missing"), "/a": "<p>a</p>", "/b": "<p>b</p>"})
    engine = AuditEngine(audit_config, checks_factory=static_checks())

    report = await engine.run_full_audit(base, max_depth=1, max_pages=10)

    assert report.site_url == base + "/"
    assert [p.url for p in report.pages] == [base + "/", base + "/a", base + "/b"]
    assert report.crawled_pages == 3
    assert report.summary.averages["performance"] == 67  # (80 + 61 + 61) / 3
    assert report.summary.accessibility_violations == 3
    assert report.summary.failed_checks == 0
    assert [f.url for f in report.crawl_failures] == [base + "/missing"]
    assert report.narrative.text.startswith(f"Audited 3 page(s) of {base}/.")
    assert report.generated_at


@pytest.mark.asyncio()
async def test_slow_accessibility_check_does_not_sink_the_page(audit_config, html_site):
    base, _ = await html_site({"/": "<p>home</p>"})
    config = audit_config.model_copy(update={"check_timeout": 0.2})
    engine = AuditEngine(
        config, checks_factory=static_checks(accessibility=StaticCheck("accessibility", delay=5))
    )

    report = await engine.run_full_audit(base, max_depth=0, max_pages=1)

    page = report.pages[0]
    assert page.outcome("performance").ok
    assert page.outcome("seo").ok
    assert page.outcome("accessibility").failure.kind == "timeout"
    assert report.summary.failures_by_check == {"accessibility": 1}
    assert report.summary.averages["performance"] == 80


@pytest.mark.asyncio()
@pytest.mark.parametrize("concurrency,expected_peak", [(1, 1), (3, 3)])
async def test_page_concurrency_is_bounded(audit_config, html_site, concurrency, expected_peak):
    base, _ = await html_site({"/": links(*(f"/p{i}" for i in range(5))), **{f"/p{i}": "<p/>" for i in range(5)}})
    tracker = ConcurrencyTracker()
    config = audit_config.model_copy(update={"page_concurrency": concurrency})
    engine = AuditEngine(config, checks_factory=lambda cfg, fetcher: [tracker])

    report = await engine.run_full_audit(base, max_depth=1, max_pages=6)

    assert tracker.peak == expected_peak
    assert [p.url for p in report.pages] == [base + "/"] + [f"{base}/p{i}" for i in range(5)]


@pytest.mark.asyncio()
async def test_unreachable_start_page_aborts(audit_config, html_site):
    async def broken(_):
        return web.Response(status=503)

    base, _ = await html_site({"/": broken})
    engine = AuditEngine(audit_config, checks_factory=static_checks())
    with pytest.raises(CrawlError) as info:
        await engine.run_full_audit(base)
    assert info.value.url == base + "/"
    assert "http-status" in info.value.reason


@pytest.mark.asyncio()
async def test_missing_site_url(audit_config):
    with pytest.raises(ValueError):
        await AuditEngine(audit_config).run_full_audit()


@pytest.mark.asyncio()
async def test_base_url_and_limits_from_config(audit_config, html_site):
    base, hits = await html_site({"/": links("/a", "/b"), "/a": "<p/>", "/b": "<p/>"})
    config = audit_config.model_copy(update={"base_url": base, "max_depth": 1, "max_pages": 2})
    report = await AuditEngine(config, checks_factory=static_checks()).run_full_audit()
    assert report.crawled_pages == 2
    assert "/b" not in hits


@pytest.mark.asyncio()
async def test_summary_disabled(audit_config, html_site):
    base, _ = await html_site({"/": "<p/>"})
    config = audit_config.model_copy(update={"summary": False})
    report = await AuditEngine(config, checks_factory=static_checks()).run_full_audit(base)
    assert report.narrative is None


@pytest.mark.asyncio()
async def test_failing_summarizer_keeps_results(audit_config, html_site):
    class Broken:
        async def summarize(self, site_url, pages, summary):
            raise RuntimeError("model offline")

    base, _ = await html_site({"/": "<p/>"})
    engine = AuditEngine(audit_config, checks_factory=static_checks(), summarizer=Broken())
    report = await engine.run_full_audit(base)

    assert report.narrative.text == ""
    assert report.narrative.error == "RuntimeError: model offline"
    assert report.summary.averages["performance"] == 80


@pytest.mark.asyncio()
async def test_observer_progress(audit_config, html_site):
    events = []

    class Recorder(AuditObserver):
        def page_audited(self, url, index, total):
            events.append((index, total))

        def audit_finished(self, site_url, pages):
            events.append(("done", pages))

    base, _ = await html_site({"/": links("/a"), "/a": "<p/>"})
    engine = AuditEngine(audit_config, checks_factory=static_checks(), observer=Recorder())
    await engine.run_full_audit(base)
    assert events == [(1, 2), (2, 2), ("done", 2)]


@pytest.mark.asyncio()
async def test_start_audit_with_real_checks(audit_config, html_site, serve):
    async def psi(request):
        return web.json_response(
            {"lighthouseResult": {"categories": {"performance": {"score": 0.42}}, "audits": {}}}
        )

    api = web.Application()
    api.router.add_get("/psi", psi)
    api_base = await serve(api)
    base, hits = await html_site({
        "/": '<html lang="en"><head><title>Home</title></head><body><a href="/a">About</a></body></html>',
        "/a": "<html><body><img src='x.png'></body></html>",
    })
    config = audit_config.model_copy(update={"psi_api_url": f"{api_base}/psi"})

    report = await start_audit(config, base, max_depth=1, max_pages=5)

    assert hits == {"/": 1, "/a": 1}
    home, about = report.pages
    assert home.payload("seo")["title"] == "Home"
    assert home.payload("accessibility")["violations"] == []
    assert [v["rule_id"] for v in about.payload("accessibility")["violations"]] == [
        "image-alt",
        "html-has-lang",
        "document-title",
    ]
    assert report.summary.averages["performance"] == 42
    assert report.summary.accessibility_violations == 3
    assert "Slowest pages" in report.narrative.text
