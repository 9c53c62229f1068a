"""
FastAPI app: invite a caption bot into a Zoom call; read its transcript.

POST /api/invite_bot       {"meeting_url": "..."} -> {"status": "bot_invited", "bot_id": "..."}
GET  /api/transcript/{id}  merged utterances [{speaker, text, time}], [] until the bot writes
GET  /api/bots/{id}        last reported state of a bot started by this process
"""
from __future__ import annotations

import logging
import os
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from meetscribe.bot.browser import is_zoom_meeting_url
from meetscribe.config import configure_logging, get_settings
from meetscribe.launcher import launch_bot, shutdown_all
from meetscribe.schemas.bot import BotStatus, InviteRequest, InviteResponse
from meetscribe.schemas.transcript import UtteranceOut
from meetscribe.session_store import generate_bot_id, get_bot, register_bot, update_bot
from meetscribe.transcript.reader import TranscriptReadError
from meetscribe.transcript.reconciler import load_merged_transcript
from meetscribe.transcript.writer import transcript_path

logger = logging.getLogger(__name__)

# bot ids name files on disk; keep them to a safe alphabet
_BOT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()
    os.makedirs(settings.TRANSCRIPT_DIR, exist_ok=True)
    yield
    # Shutdown: in-process bots leave their calls; containers are left running
    await shutdown_all()


app = FastAPI(
    title="meetscribe",
    description="Caption bot for Zoom calls: speaker-attributed, deduplicated transcripts",
    lifespan=lifespan,
)


def _checked_bot_id(bot_id: str) -> str:
    if not _BOT_ID_RE.match(bot_id):
        raise HTTPException(status_code=400, detail="Invalid bot_id")
    return bot_id


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/invite_bot", response_model=InviteResponse)
async def invite_bot(request: InviteRequest) -> InviteResponse:
    """Allocate a bot_id and start the bot; returns before the bot joins. A failed launch still returns the bot_id."""
    meeting_url = (request.meeting_url or "").strip()
    if not meeting_url:
        raise HTTPException(status_code=400, detail="Missing meeting_url")
    if not is_zoom_meeting_url(meeting_url):
        raise HTTPException(status_code=400, detail="Invalid Zoom meeting URL")

    settings = get_settings()
    bot_id = generate_bot_id()
    path = transcript_path(bot_id, settings.TRANSCRIPT_DIR)
    register_bot(bot_id, meeting_url, path, settings.BOT_LAUNCH_MODE)
    try:
        await launch_bot(bot_id, meeting_url, path)
    except OSError as e:
        # the id stays valid: the registry shows the session as ended
        logger.exception("[api] could not launch bot %s: %s", bot_id, e)
        update_bot(bot_id, state="ended")
        return InviteResponse(status="launch_failed", bot_id=bot_id)
    logger.info("[api] bot %s invited to %s (%s)", bot_id, meeting_url, settings.BOT_LAUNCH_MODE)
    return InviteResponse(bot_id=bot_id)


@app.get("/api/transcript/{bot_id}", response_model=list[UtteranceOut])
async def get_transcript(bot_id: str) -> list[UtteranceOut]:
    """Merged transcript so far. Empty list if the bot has not written anything yet."""
    settings = get_settings()
    path = transcript_path(_checked_bot_id(bot_id), settings.TRANSCRIPT_DIR)
    try:
        merged = load_merged_transcript(path, gap_sec=settings.MERGE_GAP_SEC)
    except TranscriptReadError as e:
        logger.error("[api] error reading transcript for bot %s: %s", bot_id, e)
        raise HTTPException(status_code=500, detail="Failed to read transcript file")
    return [UtteranceOut(**u.to_dict()) for u in merged]


@app.get("/api/bots/{bot_id}", response_model=BotStatus)
async def get_bot_status(bot_id: str) -> BotStatus:
    record = get_bot(_checked_bot_id(bot_id))
    if record is None:
        raise HTTPException(status_code=404, detail="Bot not found")
    return BotStatus(**record)
