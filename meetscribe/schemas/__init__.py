"""Pydantic schemas for API request/response."""
from meetscribe.schemas.bot import BotStatus, InviteRequest, InviteResponse
from meetscribe.schemas.transcript import UtteranceOut

__all__ = [
    "BotStatus",
    "InviteRequest",
    "InviteResponse",
    "UtteranceOut",
]
