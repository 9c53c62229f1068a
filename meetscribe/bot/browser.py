"""
Browser setup for the bot: Chromium via Playwright, pointed at the Zoom web client.

- Fake media devices so the pre-join screen never blocks on permission prompts.
- Headless runs pretend to be desktop Chrome; Zoom serves a degraded client otherwise.
- zoommtg:// navigations (native app handoff) are aborted.
"""
from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from playwright.async_api import Page, async_playwright

logger = logging.getLogger(__name__)

WINDOW_WIDTH = 1600
WINDOW_HEIGHT = 900
DESKTOP_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/127.0.0.0 Safari/537.36"
)

_JOIN_URL_RE = re.compile(r"(https://[^/]+)/j/(\d+)\?(.*)$")
ZOOM_MEETING_URL_RE = re.compile(r"zoom\.(us|com)/(?:j|s|wc/join)/(\d+)", re.IGNORECASE)


def to_web_client(url: str) -> str:
    """https://host/j/<id>?<q> -> https://host/wc/join/<id>?<q>&prefer=1&browser=1; other URLs unchanged."""
    m = _JOIN_URL_RE.search(url)
    if not m:
        return url
    host, meeting_id, query = m.groups()
    return f"{host}/wc/join/{meeting_id}?{query}&prefer=1&browser=1"


def is_zoom_meeting_url(url: str) -> bool:
    return bool(ZOOM_MEETING_URL_RE.search(url or ""))


def build_launch_options(headless: bool) -> dict[str, Any]:
    args = [
        f"--window-size={WINDOW_WIDTH},{WINDOW_HEIGHT}",
        "--use-fake-ui-for-media-stream",
        "--use-fake-device-for-media-stream",
        "--disable-dev-shm-usage",
    ]
    if headless:
        return {"headless": True, "args": ["--headless=new", *args]}
    return {"headless": False, "args": args}


def build_context_options(headless: bool, video_dir: Optional[str] = None) -> dict[str, Any]:
    options: dict[str, Any] = {"permissions": ["microphone", "camera"]}
    if not headless:
        return options
    # no_viewport: use --window-size exactly
    options.update(no_viewport=True, user_agent=DESKTOP_CHROME_UA)
    if video_dir:
        options.update(
            record_video_dir=video_dir,
            record_video_size={"width": WINDOW_WIDTH, "height": WINDOW_HEIGHT},
        )
    return options


@asynccontextmanager
async def open_meeting_page(headless: bool, video_dir: Optional[str] = None) -> AsyncIterator[Page]:
    """Launch Chromium, yield a fresh page; the browser is closed on exit whatever happened."""
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(**build_launch_options(headless))
        try:
            context = await browser.new_context(**build_context_options(headless, video_dir))
            await context.route("zoommtg://*", lambda route: route.abort())
            yield await context.new_page()
        finally:
            await browser.close()
            logger.info("browser closed")
