"""
Zoom web-client UI actions: pre-join form, call signals, turning captions on.

Locators are built here so the controller only deals in states.
"""
from __future__ import annotations

import logging
import re
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from meetscribe.config import Settings

logger = logging.getLogger(__name__)

WAITING_ROOM_TEXT = re.compile(r"waiting for the host|host has joined|will let you in soon", re.I)
IN_CALL_BUTTON = re.compile(r"mute my microphone", re.I)
CALL_ENDED_TEXT = re.compile(r"this meeting has been ended|you have been removed", re.I)
# toast wording varies ("captions"/"caption"/"transcription")
CAPTIONS_TOAST_TEXT = re.compile(r"you have (enabled|turned on) live (?:captions?|transcription)", re.I)

CLICK_TIMEOUT_MS = 5_000


def _ms(seconds: float) -> float:
    return seconds * 1000


def waiting_room_banner(page: Any) -> Any:
    return page.get_by_text(WAITING_ROOM_TEXT).first


def in_call_control(page: Any) -> Any:
    return page.get_by_role("button", name=IN_CALL_BUTTON)


def call_ended_banner(page: Any) -> Any:
    return page.get_by_text(CALL_ENDED_TEXT).first


async def fill_join_form(page: Any, url: str, settings: Settings) -> None:
    """Open the meeting, mute mic, stop video, enter the display name and submit."""
    await page.goto(url, wait_until="domcontentloaded")
    # pre-join buttons render well after DOMContentLoaded
    await page.wait_for_timeout(_ms(settings.PREJOIN_SETTLE_SEC))
    for label in ("mute", "stop video"):
        try:
            await page.get_by_role("button", name=re.compile(label, re.I)).first.click(timeout=CLICK_TIMEOUT_MS)
        except PlaywrightError as e:
            logger.warning("pre-join %r button not clicked: %s", label, e)
    await page.get_by_role("textbox", name=re.compile(r"your name", re.I)).fill(settings.BOT_DISPLAY_NAME)
    await page.keyboard.press("Enter")


async def enable_captions(page: Any, settings: Settings) -> bool:
    """
    Best effort: turn live captions on. Returns False (and logs) on any UI failure.

    More menu -> Captions (clicked twice, the first toggle is often ignored) ->
    confirmation toast; without a toast the captions settings dialog is open and
    needs Save.
    """
    try:
        more_button = page.get_by_role("button", name="More", exact=True)
        await more_button.wait_for(timeout=_ms(settings.CAPTION_MENU_TIMEOUT_SEC))
        captions_item = page.get_by_label("Captions")

        # first click does not open the menu
        await more_button.dblclick()
        await captions_item.click()
        await page.wait_for_timeout(300)
        await captions_item.click()

        # toast shows twice (alert + visible); first match only
        toast = page.get_by_text(CAPTIONS_TOAST_TEXT).first
        try:
            await toast.wait_for(timeout=_ms(settings.CAPTION_TOAST_TIMEOUT_SEC))
            toast_seen = True
        except PlaywrightTimeoutError as e:
            logger.info("[captions] toast not seen within timeout; saving settings dialog (%s)", e)
            toast_seen = False

        if not toast_seen:
            save_button = page.get_by_role("button", name="Save")
            await save_button.wait_for(timeout=_ms(settings.CAPTION_SAVE_TIMEOUT_SEC))
            await save_button.click()

        logger.info("[captions] captions enabled")
        return True
    except PlaywrightError as e:
        logger.warning("[captions] could not enable captions: %s", e)
        return False
