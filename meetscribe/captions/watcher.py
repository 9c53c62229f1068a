"""
CaptionSnapshotWatcher: turn the live caption DOM into CaptionSnapshot events.

The web client renders one caption region per speaker currently holding the
floor, and rewrites that region's whole line on every update. Two triggers
feed the same scan:

- a MutationObserver on every region (childList, subtree, characterData) that
  calls back into Python through an exposed binding;
- a poll task every CAPTION_POLL_INTERVAL_SEC, for mutations that are missed
  or coalesced.

Each scan reads every caption item in one page.evaluate and compares it to a
last-seen side table keyed by a synthetic element id (data-meetscribe-id). The
compare-and-update step never awaits, so interleaved triggers cannot emit the
same text twice. Ids that disappear from a scan are dropped from the table.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from playwright.async_api import Error as PlaywrightError

from meetscribe.captions.models import CaptionSnapshot
from meetscribe.speakers.directory import SpeakerDirectory, speaker_key

logger = logging.getLogger(__name__)

REGION_SELECTOR = "#live-transcription-subtitle, [id*=live-transcription], [class*=live-transcription]"
ITEM_SELECTOR = ".live-transcription-subtitle__item"
ITEM_ICON_SELECTOR = ".zmu-data-selector-item__icon, .zmu-caption-speaker-icon"
REGION_ICON_SELECTOR = ".zmu-data-selector-item__icon"
CAPTIONS_CHANGED_BINDING = "__meetscribeCaptionsChanged"
# one per speaker; holds that speaker's avatar and caption items
SPEAKER_BLOCK_ID = "live-transcription-subtitle"

# Attaches an observer to every not-yet-watched region and returns how many regions exist.
_ATTACH_JS = """
([regionSel, binding]) => {
    const regions = document.querySelectorAll(regionSel);
    regions.forEach((region) => {
        if (region.dataset.meetscribeRegion) return;
        region.dataset.meetscribeRegion = "1";
        new MutationObserver(() => window[binding]()).observe(region, {
            childList: true, subtree: true, characterData: true,
        });
    });
    return regions.length;
}
"""

# Document-level watch used only until the first region shows up; disconnects itself.
_WAIT_FOR_REGION_JS = """
([regionSel, binding]) => {
    if (document.querySelector(regionSel)) return true;
    if (document.body.dataset.meetscribeWaiting) return false;
    document.body.dataset.meetscribeWaiting = "1";
    const waiter = new MutationObserver(() => {
        if (!document.querySelector(regionSel)) return;
        waiter.disconnect();
        delete document.body.dataset.meetscribeWaiting;
        window[binding]();
    });
    waiter.observe(document.body, { childList: true, subtree: true });
    return false;
}
"""

# Regions can nest: the class selector matches the wrapper around all speaker blocks
# as well as the items themselves. An item without its own icon takes the icon of the
# nearest enclosing region that has one, never looking past its speaker block.
_READ_ITEMS_JS = """
([regionSel, itemSel, itemIconSel, regionIconSel, blockId]) => {
    const iconInfo = (el) => el ? {
        tag: el.tagName,
        src: el.tagName === "IMG" ? el.src : "",
        text: (el.textContent || "").trim(),
    } : null;
    const enclosingRegion = (el) => el.parentElement ? el.parentElement.closest(regionSel) : null;
    const regionIcon = (item) => {
        for (let region = enclosingRegion(item); region; region = enclosingRegion(region)) {
            const icon = region.querySelector(regionIconSel);
            if (icon || region.id === blockId) return icon;
        }
        return null;
    };
    let next = window.__meetscribeNextCaptionId || 0;
    const out = [];
    document.querySelectorAll(itemSel).forEach((item) => {
        if (!enclosingRegion(item)) return;
        if (!item.dataset.meetscribeId) item.dataset.meetscribeId = "c" + (++next);
        out.push({
            id: item.dataset.meetscribeId,
            text: (item.innerText || "").trim(),
            icon: iconInfo(item.querySelector(itemIconSel) || regionIcon(item)),
        });
    });
    window.__meetscribeNextCaptionId = next;
    return out;
}
"""


def resolve_speaker(icon: Optional[dict[str, Any]], directory: SpeakerDirectory) -> str:
    """Display name for a caption icon; raw avatar key if unmapped; "" if there is no icon."""
    if not icon:
        return ""
    key = speaker_key(icon.get("tag"), icon.get("src"), icon.get("text"))
    return directory.resolve(key) if key else ""


class CaptionSnapshotWatcher:
    """
    Watches caption regions on one page and calls `on_snapshot` for each changed, non-empty line.

    `started_at` is the transcript clock origin (same clock as `clock`, default time.monotonic).
    """

    def __init__(
        self,
        page: Any,
        directory: SpeakerDirectory,
        on_snapshot: Callable[[CaptionSnapshot], Any],
        poll_interval: float = 0.5,
        started_at: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._page = page
        self._directory = directory
        self._on_snapshot = on_snapshot
        self._poll_interval = poll_interval
        self._clock = clock
        self._started_at = clock() if started_at is None else started_at
        # element id -> last trimmed text seen for that element
        self._last_seen: dict[str, str] = {}
        self._scanning = False
        self._rescan = False
        self._stopped = asyncio.Event()
        self._poll_task: Optional[asyncio.Task[None]] = None
        self._started = False

    @property
    def tracked_elements(self) -> int:
        return len(self._last_seen)

    @property
    def running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def start(self) -> None:
        """Expose the change binding, attach to present regions (or wait for one), start polling."""
        if self._started:
            return
        self._started = True
        await self._page.expose_function(CAPTIONS_CHANGED_BINDING, self._on_change)
        found = await self._attach_regions()
        if found:
            logger.info("[captions] attached to %d caption region(s)", found)
        else:
            logger.warning("[captions] no caption regions yet - waiting for first line")
            await self._page.evaluate(_WAIT_FOR_REGION_JS, [REGION_SELECTOR, CAPTIONS_CHANGED_BINDING])
        await self.scan()
        self._poll_task = asyncio.create_task(self._poll_loop(), name="caption-poll")

    async def stop(self) -> None:
        self._stopped.set()
        task, self._poll_task = self._poll_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _attach_regions(self) -> int:
        return await self._page.evaluate(_ATTACH_JS, [REGION_SELECTOR, CAPTIONS_CHANGED_BINDING])

    async def _on_change(self) -> None:
        """Binding target for in-page observers (region mutations and first-region waiter)."""
        if self._stopped.is_set():
            return
        try:
            await self._attach_regions()
            await self.scan()
        except PlaywrightError as e:
            logger.debug("[captions] mutation-triggered scan failed: %s", e)

    async def _poll_loop(self) -> None:
        while not self._stopped.is_set():
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self._poll_interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self._attach_regions()
                await self.scan()
            except PlaywrightError as e:
                if self._page.is_closed():
                    logger.debug("[captions] page closed; poll stopped")
                    return
                logger.debug("[captions] poll scan failed: %s", e)

    async def scan(self) -> list[CaptionSnapshot]:
        """
        Read all caption items and emit snapshots for changed ones.

        A scan requested while one is in flight runs once more after it instead
        of issuing a parallel page read.
        """
        if self._scanning:
            self._rescan = True
            return []
        self._scanning = True
        emitted: list[CaptionSnapshot] = []
        try:
            while True:
                self._rescan = False
                items = await self._page.evaluate(
                    _READ_ITEMS_JS,
                    [REGION_SELECTOR, ITEM_SELECTOR, ITEM_ICON_SELECTOR, REGION_ICON_SELECTOR, SPEAKER_BLOCK_ID],
                )
                emitted.extend(self.process(items or []))
                if not self._rescan:
                    return emitted
        finally:
            self._scanning = False

    def process(self, items: list[dict[str, Any]]) -> list[CaptionSnapshot]:
        """Compare one scan's items to the side table; emit and record changed lines."""
        now = round(self._clock() - self._started_at, 2)
        present: set[str] = set()
        snapshots: list[CaptionSnapshot] = []
        for item in items:
            element_id = item.get("id")
            if not element_id:
                continue
            present.add(element_id)
            text = (item.get("text") or "").strip()
            if not text or text == self._last_seen.get(element_id, ""):
                continue
            self._last_seen[element_id] = text
            snapshots.append(
                CaptionSnapshot(
                    element_id=element_id,
                    speaker=resolve_speaker(item.get("icon"), self._directory),
                    text=text,
                    time=now,
                )
            )

        for element_id in [k for k in self._last_seen if k not in present]:
            del self._last_seen[element_id]

        for snapshot in snapshots:
            self._on_snapshot(snapshot)
        return snapshots
