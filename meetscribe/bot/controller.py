"""
SessionController: one bot, one browser page, one call.

JOINING ──waiting banner first──> WAITING_ROOM ──in-call control before deadline──> IN_CALL
   └────────in-call control first──────────────────────────────────────────────────┘
IN_CALL ──"meeting has been ended" / "you have been removed" / shutdown──> ENDED
WAITING_ROOM ──deadline──> ENDED (AdmissionTimeout)

Each transition is a race of two waits (first_settled); the loser is cancelled.
On IN_CALL the speaker directory is activated, captions are switched on (best
effort) and the caption watcher starts feeding the pipeline.

run() never raises for session outcomes: known failures (BotError) end in
ENDED with a log line; anything unexpected is logged and the session is left
in the last state it reached. The browser and transcript file are always closed.
"""
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Optional

from meetscribe.bot.browser import open_meeting_page, to_web_client
from meetscribe.bot.context import SessionContext
from meetscribe.bot.errors import AdmissionTimeout, BotError, JoinFailed
from meetscribe.bot.pipeline import CaptionPipeline
from meetscribe.bot.state import BotState
from meetscribe.bot.ui import (
    call_ended_banner,
    enable_captions,
    fill_join_form,
    in_call_control,
    waiting_room_banner,
)
from meetscribe.bot.waits import first_settled, wait_visible
from meetscribe.captions.watcher import CaptionSnapshotWatcher
from meetscribe.config import Settings, get_settings
from meetscribe.transcript.writer import TranscriptWriterBase, create_transcript_writer

logger = logging.getLogger(__name__)

PageFactory = Callable[[bool], AbstractAsyncContextManager[Any]]


class SessionController:
    def __init__(
        self,
        meeting_url: str,
        transcript_path: str,
        bot_id: str = "local",
        headless: Optional[bool] = None,
        waiting_room_timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
        page_factory: Optional[PageFactory] = None,
        writer: Optional[TranscriptWriterBase] = None,
        on_state: Optional[Callable[[BotState], None]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._meeting_url = meeting_url
        self._headless = self._settings.HEADLESS if headless is None else headless
        self._waiting_room_timeout = (
            self._settings.WAITING_ROOM_TIMEOUT_SEC if waiting_room_timeout is None else waiting_room_timeout
        )
        self._page_factory = page_factory or self._default_page_factory
        self._writer = writer or create_transcript_writer(transcript_path)
        self._on_state = on_state
        self._state = BotState.JOINING
        self.history: list[BotState] = [BotState.JOINING]
        self.failure: Optional[BotError] = None
        self.ctx = SessionContext(bot_id=bot_id)

    @property
    def state(self) -> BotState:
        return self._state

    @property
    def bot_id(self) -> str:
        return self.ctx.bot_id

    def request_shutdown(self) -> None:
        """Ask the session to leave; every long wait races this."""
        self.ctx.shutdown.set()

    def _default_page_factory(self, headless: bool) -> AbstractAsyncContextManager[Any]:
        return open_meeting_page(headless, self._settings.DEBUG_VIDEO_DIR or None)

    def _transition(self, nxt: BotState) -> None:
        self._state = nxt
        self.history.append(nxt)
        logger.info("[bot:%s] state -> %s", self.bot_id, nxt.value)
        if self._on_state is not None:
            self._on_state(nxt)

    async def run(self) -> BotState:
        self._writer.start()
        try:
            async with self._page_factory(self._headless) as page:
                self.ctx.page = page
                try:
                    await self._drive(page)
                finally:
                    await self._stop_capture()
        except BotError as e:
            self.failure = e
            if isinstance(e, AdmissionTimeout):
                logger.warning("[bot:%s] host never admitted the bot - exiting (%s)", self.bot_id, e)
            else:
                logger.warning("[bot:%s] could not join call: %s", self.bot_id, e)
            self._transition(BotState.ENDED)
        except Exception:
            logger.exception("[bot:%s] unexpected error in state %s", self.bot_id, self._state.value)
        finally:
            self._writer.close()
            logger.info("[bot:%s] session finished - final state: %s", self.bot_id, self._state.value)
        return self._state

    async def _race(self, contenders: dict[str, Any], timeout: Optional[float] = None) -> str:
        contenders["shutdown"] = self.ctx.shutdown.wait()
        label, _ = await first_settled(contenders, timeout=timeout)
        return label

    async def _drive(self, page: Any) -> None:
        await fill_join_form(page, to_web_client(self._meeting_url), self._settings)

        # either admitted straight away or parked in the waiting room
        try:
            label = await self._race(
                {
                    "waiting_room": wait_visible(waiting_room_banner(page)),
                    "in_call": wait_visible(in_call_control(page)),
                },
                timeout=self._settings.JOIN_DETECT_TIMEOUT_SEC,
            )
        except asyncio.TimeoutError:
            raise JoinFailed(self._settings.JOIN_DETECT_TIMEOUT_SEC) from None
        if label == "shutdown":
            self._leave("shutdown requested while joining")
            return

        if label == "waiting_room":
            self._transition(BotState.WAITING_ROOM)
            logger.info("[bot:%s] host absent; will wait %g min", self.bot_id, self._waiting_room_timeout / 60)
            try:
                label = await self._race(
                    {"in_call": wait_visible(in_call_control(page))},
                    timeout=self._waiting_room_timeout,
                )
            except asyncio.TimeoutError:
                raise AdmissionTimeout(self._waiting_room_timeout) from None
            if label == "shutdown":
                self._leave("shutdown requested in waiting room")
                return

        self._transition(BotState.IN_CALL)
        logger.info("[bot:%s] inside meeting! hooking into captions...", self.bot_id)
        await self._start_capture(page)

        # a call can run for hours; only the end banner or a shutdown request ends this wait
        label = await self._race({"ended": wait_visible(call_ended_banner(page))})
        if label == "shutdown":
            self._leave("shutdown requested during call")
            return
        self._transition(BotState.ENDED)

    def _leave(self, reason: str) -> None:
        logger.info("[bot:%s] %s", self.bot_id, reason)
        self._transition(BotState.ENDED)

    async def _start_capture(self, page: Any) -> None:
        ctx = self.ctx
        await ctx.directory.activate(page)
        await enable_captions(page, self._settings)
        ctx.pipeline = CaptionPipeline(self._writer)
        ctx.watcher = CaptionSnapshotWatcher(
            page,
            ctx.directory,
            ctx.pipeline.handle,
            poll_interval=self._settings.CAPTION_POLL_INTERVAL_SEC,
            started_at=time.monotonic(),
        )
        await ctx.watcher.start()

    async def _stop_capture(self) -> None:
        if self.ctx.watcher is not None:
            await self.ctx.watcher.stop()
