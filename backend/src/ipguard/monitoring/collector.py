"""Surveillance collector: headless-browser capture of a monitored page.

Requires: pip install playwright && playwright install chromium
"""

import asyncio
import json
import re
from typing import Any, Awaitable, Callable

from playwright.async_api import Page, async_playwright

from ..config import Settings, get_settings
from ..errors import NavigationError
from ..logging import get_context_logger
from ..retry import RetryExhausted, RetryPolicy, with_retry
from .models import (
    MAX_IMAGES,
    MAX_LINKS,
    CollectedPage,
    EvidenceSnapshot,
    Heading,
    PageImage,
    PageLink,
    PageStats,
)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-infobars",
]

STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
    delete window.cdc_adoQpoasnfa76pfcZLmcfl_Array;
    delete window.cdc_adoQpoasnfa76pfcZLmcfl_Promise;
    delete window.cdc_adoQpoasnfa76pfcZLmcfl_Symbol;
"""

# One script per snapshot field so a failing selector only blanks its own field.
FIELD_SCRIPTS: dict[str, str] = {
    "page_title": "() => document.title",
    "url": "() => window.location.href",
    "meta_description": (
        "() => document.querySelector('meta[name=\"description\"]')?.content || ''"
    ),
    "meta_keywords": (
        "() => document.querySelector('meta[name=\"keywords\"]')?.content || ''"
    ),
    "headings": """() => Array.from(document.querySelectorAll('h1, h2, h3, h4, h5, h6'))
        .map(h => ({level: h.tagName.toLowerCase(), text: h.textContent || ''}))""",
    "images": """() => Array.from(document.querySelectorAll('img'))
        .map(img => ({
            src: img.src || '', alt: img.alt || '', title: img.title || '',
            width: img.naturalWidth || 0, height: img.naturalHeight || 0
        }))""",
    "links": """() => Array.from(document.querySelectorAll('a[href]'))
        .map(a => ({href: a.href, text: a.textContent || '', title: a.title || ''}))""",
    "visible_text": "() => document.body ? document.body.textContent || '' : ''",
    "structured_data": """() => Array.from(
        document.querySelectorAll('script[type="application/ld+json"]')
    ).map(s => s.textContent || '')""",
    "page_stats": """() => ({
        load_time: performance.now(),
        image_count: document.querySelectorAll('img').length,
        link_count: document.querySelectorAll('a').length,
        script_count: document.querySelectorAll('script').length
    })""",
}

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: Any) -> str:
    """Collapse whitespace runs and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", str(text)).strip()


def build_snapshot(raw: dict[str, Any], html: str, html_limit: int) -> EvidenceSnapshot:
    """Normalise raw per-field extraction results into an EvidenceSnapshot.

    Fields absent from ``raw`` (failed extraction) take their empty default.
    Images drop ``data:`` URIs and are capped at 15; links drop entries with
    no text and are capped at 25; unparsable JSON-LD blocks are dropped.
    """
    headings = []
    for h in raw.get("headings") or []:
        text = clean_text(h.get("text"))
        if text:
            headings.append(Heading(level=str(h.get("level", "")), text=text))

    images = []
    for img in raw.get("images") or []:
        src = img.get("src") or ""
        if not src or "data:" in src:
            continue
        images.append(
            PageImage(
                src=src,
                alt=clean_text(img.get("alt")),
                title=clean_text(img.get("title")),
                width=int(img.get("width") or 0),
                height=int(img.get("height") or 0),
            )
        )
        if len(images) == MAX_IMAGES:
            break

    links = []
    for link in raw.get("links") or []:
        text = clean_text(link.get("text"))
        if not text:
            continue
        links.append(PageLink(href=link.get("href") or "", text=text, title=clean_text(link.get("title"))))
        if len(links) == MAX_LINKS:
            break

    structured_data = []
    for block in raw.get("structured_data") or []:
        try:
            structured_data.append(json.loads(block))
        except (TypeError, ValueError):
            continue

    visible_text = clean_text(raw.get("visible_text"))
    stats = raw.get("page_stats") or {}

    return EvidenceSnapshot(
        page_title=clean_text(raw.get("page_title")),
        url=raw.get("url") or "",
        meta_description=clean_text(raw.get("meta_description")),
        meta_keywords=clean_text(raw.get("meta_keywords")),
        headings=tuple(headings),
        images=tuple(images),
        links=tuple(links),
        visible_text=visible_text,
        structured_data=tuple(structured_data),
        html_excerpt=html[:html_limit],
        page_stats=PageStats(
            load_time=float(stats.get("load_time") or 0.0),
            image_count=int(stats.get("image_count") or 0),
            link_count=int(stats.get("link_count") or 0),
            script_count=int(stats.get("script_count") or 0),
            word_count=len(visible_text.split()),
        ),
    )


class SurveillanceCollector:
    """Loads a target URL in an isolated Chromium context and captures evidence.

    Each ``collect`` call launches its own browser; callers bound
    concurrency with a ``BrowserSlotPool``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self._playwright_factory = playwright_factory
        self._sleep = sleep

    @property
    def navigation_policy(self) -> RetryPolicy:
        return RetryPolicy(
            attempts=self.settings.collector_navigation_attempts,
            backoff="fixed",
            base_delay=self.settings.collector_retry_delay_seconds,
        )

    async def collect(self, target_url: str) -> CollectedPage:
        """Capture a snapshot, full-page screenshot and HTML for ``target_url``.

        Raises:
            NavigationError: If every navigation attempt failed
        """
        logger = get_context_logger(__name__, target_url=target_url)
        settings = self.settings

        async with self._playwright_factory() as p:
            browser = await p.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                context = await browser.new_context(
                    user_agent=settings.collector_user_agent,
                    viewport={
                        "width": settings.collector_viewport_width,
                        "height": settings.collector_viewport_height,
                    },
                )
                try:
                    await context.add_init_script(STEALTH_SCRIPT)
                    page = await context.new_page()

                    await self._navigate(page, target_url, logger)

                    # Let client-side rendering settle
                    await self._sleep(settings.collector_settle_delay_seconds)

                    logger.info("Capturing screenshot and page evidence")
                    screenshot = await page.screenshot(full_page=True, type="png")
                    raw = await self._extract_fields(page, logger)
                    html = await self._page_html(page, logger)
                finally:
                    await context.close()
            finally:
                await browser.close()

        snapshot = build_snapshot(raw, html, settings.collector_html_limit)
        return CollectedPage(snapshot=snapshot, screenshot=screenshot, html=html)

    async def _navigate(self, page: Page, target_url: str, logger: Any) -> None:
        policy = self.navigation_policy

        async def _goto(attempt: int) -> None:
            logger.info(f"Navigating (attempt {attempt + 1}/{policy.attempts})")
            await page.goto(
                target_url,
                wait_until="networkidle",
                timeout=self.settings.collector_navigation_timeout_ms,
            )

        try:
            await with_retry(_goto, policy, logger=logger, sleep=self._sleep)
        except RetryExhausted as e:
            raise NavigationError(target_url, e.attempts, e.last_error) from e.last_error

    async def _extract_fields(self, page: Page, logger: Any) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        for field, script in FIELD_SCRIPTS.items():
            try:
                raw[field] = await page.evaluate(script)
            except Exception as e:
                logger.warning(f"Extraction of {field} failed, using default: {e}")
        return raw

    async def _page_html(self, page: Page, logger: Any) -> str:
        try:
            return await page.content()
        except Exception as e:
            logger.warning(f"Could not read page HTML: {e}")
            return ""
