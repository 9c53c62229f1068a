"""Schemas for bot invitation and status."""
from __future__ import annotations

from pydantic import BaseModel, Field


class InviteRequest(BaseModel):
    """Request body for POST /api/invite_bot."""

    meeting_url: str | None = Field(
        None,
        alias="meetingUrl",
        description="Zoom join URL (zoom.us/j/..., zoom.us/s/..., zoom.us/wc/join/...)",
    )

    class Config:
        # accept both meeting_url and meetingUrl
        populate_by_name = True


class InviteResponse(BaseModel):
    """Response body for POST /api/invite_bot. Returned before the bot has joined."""

    status: str = Field("bot_invited", description="bot_invited, or launch_failed when the bot could not be started")
    bot_id: str = Field(..., description="Session id; GET /api/transcript/{bot_id} to read the transcript")


class BotStatus(BaseModel):
    """Launch metadata and last reported state of a bot."""

    bot_id: str
    meeting_url: str
    launch_mode: str
    state: str = Field(..., description="joining | waiting_room | in_call | ended (last reported)")
    created_at: float
    updated_at: float
    exit_code: int | None = Field(None, description="Container exit code (docker mode, once exited)")
