from typing import Awaitable, Callable, Dict, List, Union

import pytest
import pytest_asyncio
from aiohttp import web

from site_audit.config import AuditConfig

PageSource = Union[str, Callable[[web.Request], Awaitable[web.StreamResponse]]]


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


@pytest.fixture()
def audit_config() -> AuditConfig:
    """
    Return a fast AuditConfig for tests: short timeouts, no retries, no rate limit pauses.
    """
    return AuditConfig(
        timeout=2.0,
        check_timeout=2.0,
        user_agent="TestAgent/1.0",
        rate_limit=1000.0,
        retry_times=0,
        backoff_factor=0.0,
    )


@pytest_asyncio.fixture
async def serve():
    """
    Start aiohttp applications on free localhost ports.
    Returns an async callable: app -> base URL. Every server is cleaned up after the test.
    """
    runners: List[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        runners.append(runner)
        port = runner.addresses[0][1]
        return f"http://127.0.0.1:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def html_site(serve):
    """
    Serve a site described as {path: html or handler}.
    Returns (base_url, hits) where hits counts requests per path.
    """

    async def _site(pages: Dict[str, PageSource]):
        hits: Dict[str, int] = {}
        app = web.Application()

        def make_handler(path: str, source: PageSource):
            async def handler(request: web.Request) -> web.StreamResponse:
                hits[path] = hits.get(path, 0) + 1
                if isinstance(source, str):
                    return web.Response(text=source, content_type="text/html")
                return await source(request)

            return handler

        for path, source in pages.items():
            app.router.add_get(path, make_handler(path, source))
        base = await serve(app)
        return base, hits

    return _site
