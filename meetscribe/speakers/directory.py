"""
Speaker directory: avatar key -> participant display name.

Captions only carry the speaker's avatar (an <img> or a box with initials), so
names come from the participants panel. Each row there has a display name and
the same kind of avatar; the avatar's image src, or its trimmed initials, is
the key.

Limitations:
- The key is not stable if the client swaps a participant's image avatar for
  initials (or back) mid-call; captions rendered with the other form will not
  resolve until the roster re-renders with it.
- Two participants with identical initials and no image collide; the last row wins.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

PARTICIPANTS_BUTTON_NAME = "open the participants list"
ROSTER_CONTAINER_SELECTOR = ".ReactVirtualized__Grid__innerScrollContainer[role='rowgroup']"
ROSTER_CHANGED_BINDING = "__meetscribeRosterChanged"

# Rows as plain dicts so the mapping logic stays in Python.
_READ_ROWS_JS = """
() => Array.from(document.querySelectorAll(".participants-item__item-layout")).map((item) => {
    const nameEl = item.querySelector(".participants-item__display-name");
    const avatar = item.querySelector(".participants-item__avatar");
    return {
        name: nameEl ? nameEl.textContent.trim() : "",
        avatar_tag: avatar ? avatar.tagName : "",
        avatar_src: avatar && avatar.tagName === "IMG" ? avatar.src : "",
        avatar_text: avatar ? (avatar.textContent || "").trim() : "",
    };
})
"""

# Returns false when the list container is not rendered (panel closed / layout changed).
_OBSERVE_ROSTER_JS = """
([selector, binding]) => {
    const container = document.querySelector(selector);
    if (!container) return false;
    if (container.dataset.meetscribeRoster) return true;
    container.dataset.meetscribeRoster = "1";
    new MutationObserver(() => window[binding]()).observe(container, { childList: true, subtree: true });
    return true;
}
"""


def speaker_key(tag: Optional[str], src: Optional[str], text: Optional[str]) -> str:
    """Key for an avatar element: image src for <img>, trimmed initials otherwise."""
    if (tag or "").upper() == "IMG":
        return (src or "").strip()
    return (text or "").strip()


class SpeakerDirectory:
    """
    Per-session map of avatar key -> display name.

    Rebuilt wholesale on every roster change; roster changes are rare, so no
    incremental patching.
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._page: Any = None
        self._refreshing = False
        self._refresh_again = False

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, key: object) -> bool:
        return key in self._names

    @property
    def names(self) -> dict[str, str]:
        return dict(self._names)

    def build(self, rows: Iterable[dict[str, Any]]) -> dict[str, str]:
        """Replace the map from participant rows ({name, avatar_tag, avatar_src, avatar_text})."""
        names: dict[str, str] = {}
        for row in rows:
            name = (row.get("name") or "").strip()
            tag = row.get("avatar_tag") or ""
            if not name or not tag:
                continue
            key = speaker_key(tag, row.get("avatar_src"), row.get("avatar_text"))
            if key:
                names[key] = name
        self._names = names
        logger.debug("Speaker directory rebuilt: %d participants", len(names))
        return names

    def lookup(self, key: str) -> Optional[str]:
        return self._names.get(key)

    def resolve(self, key: str) -> str:
        """Display name for key, or the key itself when unknown."""
        return self._names.get(key, key)

    async def activate(self, page: Any) -> None:
        """
        Open the participants panel, build the map and watch the list for changes.

        A missing panel or list container is logged and tolerated; the map then
        stays as built (possibly empty) and later roster changes go unseen.
        """
        if self._page is not None:
            return
        self._page = page
        try:
            # first click is swallowed by the toolbar; double-trigger
            await page.get_by_role("button", name=PARTICIPANTS_BUTTON_NAME).dblclick()
        except PlaywrightError as e:
            logger.warning("[participants] could not open participants panel: %s", e)

        await page.expose_function(ROSTER_CHANGED_BINDING, self.refresh)
        await self.refresh()
        observed = await page.evaluate(_OBSERVE_ROSTER_JS, [ROSTER_CONTAINER_SELECTOR, ROSTER_CHANGED_BINDING])
        if not observed:
            logger.warning("[participants] list container not found; speaker names limited to current map (%d)", len(self))

    async def refresh(self) -> None:
        """Re-read the roster from the page. Overlapping triggers collapse into one extra pass."""
        if self._page is None:
            return
        if self._refreshing:
            self._refresh_again = True
            return
        self._refreshing = True
        try:
            while True:
                self._refresh_again = False
                try:
                    rows = await self._page.evaluate(_READ_ROWS_JS)
                except PlaywrightError as e:
                    logger.debug("[participants] roster read failed: %s", e)
                    return
                self.build(rows or [])
                if not self._refresh_again:
                    return
        finally:
            self._refreshing = False
