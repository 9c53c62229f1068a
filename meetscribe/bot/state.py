"""Bot session states."""
from __future__ import annotations

from enum import Enum


class BotState(str, Enum):
    """
    JOINING -> WAITING_ROOM -> IN_CALL -> ENDED, or JOINING -> IN_CALL directly.
    ENDED is terminal; a session abandoned by an unexpected error keeps its last state.
    """

    JOINING = "joining"
    WAITING_ROOM = "waiting_room"
    IN_CALL = "in_call"
    ENDED = "ended"
