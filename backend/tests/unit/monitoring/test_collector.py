"""Unit tests for the surveillance collector with a fake Playwright."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ipguard.config import Settings
from ipguard.errors import NavigationError
from ipguard.monitoring.collector import (
    FIELD_SCRIPTS,
    STEALTH_SCRIPT,
    SurveillanceCollector,
    build_snapshot,
)
from ipguard.monitoring.models import MAX_IMAGES, MAX_LINKS

FIELD_BY_SCRIPT = {script: field for field, script in FIELD_SCRIPTS.items()}

RAW_PAGE = {
    "page_title": "  Aurora   prints ",
    "url": "https://shop.example.com/aurora",
    "meta_description": "Buy prints",
    "meta_keywords": "aurora, prints",
    "headings": [{"level": "h1", "text": " Aurora\n prints "}, {"level": "h2", "text": "  "}],
    "images": [
        {"src": "https://shop.example.com/a.jpg", "alt": "A", "title": "", "width": 10, "height": 5},
        {"src": "data:image/png;base64,AAAA", "alt": "inline"},
    ],
    "links": [
        {"href": "https://shop.example.com/cart", "text": "Cart", "title": ""},
        {"href": "https://shop.example.com/empty", "text": "   "},
    ],
    "visible_text": "Aurora prints\n\n for   sale",
    "structured_data": ['{"@type": "Product"}', "{not json"],
    "page_stats": {"load_time": 812.5, "image_count": 2, "link_count": 2, "script_count": 4},
}


def make_page(raw=None, failing_fields=(), goto_error=None):
    raw = RAW_PAGE if raw is None else raw

    async def evaluate(script):
        field = FIELD_BY_SCRIPT[script]
        if field in failing_fields:
            raise RuntimeError(f"{field} selector failed")
        return raw[field]

    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_error)
    page.screenshot = AsyncMock(return_value=b"\x89PNG")
    page.evaluate = AsyncMock(side_effect=evaluate)
    page.content = AsyncMock(return_value="<html><body>Aurora</body></html>")
    return page


def make_playwright(page):
    context = MagicMock()
    context.add_init_script = AsyncMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)

    return MagicMock(return_value=manager), browser, context


@pytest.fixture
def settings() -> Settings:
    return Settings(
        collector_navigation_attempts=3,
        collector_retry_delay_seconds=2.0,
        collector_settle_delay_seconds=5.0,
        collector_html_limit=20,
    )


class TestBuildSnapshot:
    """Tests for build_snapshot normalisation."""

    def test_normalises_fields(self):
        snapshot = build_snapshot(RAW_PAGE, "<html>" + "x" * 100, html_limit=20)

        assert snapshot.page_title == "Aurora prints"
        assert [h.text for h in snapshot.headings] == ["Aurora prints"]
        assert [i.src for i in snapshot.images] == ["https://shop.example.com/a.jpg"]
        assert [link.text for link in snapshot.links] == ["Cart"]
        assert snapshot.structured_data == ({"@type": "Product"},)
        assert snapshot.visible_text == "Aurora prints for sale"
        assert snapshot.page_stats.word_count == 4
        assert snapshot.page_stats.script_count == 4
        assert len(snapshot.html_excerpt) == 20

    def test_caps_images_and_links(self):
        raw = {
            "images": [{"src": f"https://cdn.test/{i}.jpg"} for i in range(40)],
            "links": [{"href": f"https://x.test/{i}", "text": f"link {i}"} for i in range(40)],
        }

        snapshot = build_snapshot(raw, "", html_limit=100)

        assert len(snapshot.images) == MAX_IMAGES
        assert len(snapshot.links) == MAX_LINKS
        assert snapshot.images[0].src == "https://cdn.test/0.jpg"

    def test_missing_fields_default(self):
        snapshot = build_snapshot({}, "", html_limit=100)

        assert snapshot.page_title == ""
        assert snapshot.images == ()
        assert snapshot.page_stats.word_count == 0


class TestSurveillanceCollector:
    """Tests for SurveillanceCollector.collect."""

    @pytest.mark.asyncio
    async def test_collects_page(self, settings):
        page = make_page()
        factory, browser, context = make_playwright(page)
        sleep = AsyncMock()
        collector = SurveillanceCollector(settings, playwright_factory=factory, sleep=sleep)

        result = await collector.collect("https://shop.example.com/aurora")

        assert result.screenshot == b"\x89PNG"
        assert result.snapshot.page_title == "Aurora prints"
        page.goto.assert_awaited_once_with(
            "https://shop.example.com/aurora", wait_until="networkidle", timeout=30_000
        )
        page.screenshot.assert_awaited_once_with(full_page=True, type="png")
        context.add_init_script.assert_awaited_once_with(STEALTH_SCRIPT)
        new_context_kwargs = browser.new_context.call_args.kwargs
        assert new_context_kwargs["viewport"] == {"width": 1920, "height": 1080}
        # Settle delay only
        sleep.assert_awaited_once_with(5.0)
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_retries_then_fails(self, settings):
        page = make_page(goto_error=TimeoutError("Timeout 30000ms exceeded"))
        factory, browser, context = make_playwright(page)
        sleep = AsyncMock()
        collector = SurveillanceCollector(settings, playwright_factory=factory, sleep=sleep)

        with pytest.raises(NavigationError) as exc_info:
            await collector.collect("https://down.example.com")

        assert page.goto.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 2.0]
        assert exc_info.value.attempts == 3
        assert "Timeout 30000ms exceeded" in str(exc_info.value)
        page.screenshot.assert_not_awaited()
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_recovers_on_second_attempt(self, settings):
        page = make_page(goto_error=[TimeoutError("slow"), None])
        factory, _, _ = make_playwright(page)
        collector = SurveillanceCollector(settings, playwright_factory=factory, sleep=AsyncMock())

        result = await collector.collect("https://flaky.example.com")

        assert page.goto.await_count == 2
        assert result.screenshot == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_failed_field_takes_default(self, settings):
        page = make_page(failing_fields=("images", "meta_description"))
        factory, _, _ = make_playwright(page)
        collector = SurveillanceCollector(settings, playwright_factory=factory, sleep=AsyncMock())

        result = await collector.collect("https://shop.example.com/aurora")

        assert result.snapshot.images == ()
        assert result.snapshot.meta_description == ""
        assert result.snapshot.page_title == "Aurora prints"
        assert len(result.snapshot.links) == 1

    @pytest.mark.asyncio
    async def test_browser_closed_when_screenshot_fails(self, settings):
        page = make_page()
        page.screenshot = AsyncMock(side_effect=RuntimeError("renderer crashed"))
        factory, browser, context = make_playwright(page)
        collector = SurveillanceCollector(settings, playwright_factory=factory, sleep=AsyncMock())

        with pytest.raises(RuntimeError, match="renderer crashed"):
            await collector.collect("https://shop.example.com/aurora")

        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
