"""
Zoom web-client bot: joins a call, turns captions on, records a transcript.

Run one session from the command line with `python -m meetscribe.bot <meeting_url> [bot_id]`.
"""
from meetscribe.bot.controller import SessionController
from meetscribe.bot.errors import AdmissionTimeout, BotError, JoinFailed
from meetscribe.bot.state import BotState

__all__ = ["AdmissionTimeout", "BotError", "BotState", "JoinFailed", "SessionController"]
