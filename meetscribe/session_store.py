"""
In-memory registry of invited bots. bot_id is generated on the backend (POST /api/invite_bot).

The transcript file is the source of truth for content; this store only keeps
launch metadata and the last state the bot reported. It is lost on restart.
"""
from __future__ import annotations

import time
import uuid
from typing import Any

# bot_id -> {
#   "bot_id": str,
#   "meeting_url": str,
#   "transcript_path": str,
#   "launch_mode": "inprocess" | "docker",
#   "state": str,               # BotState value, last reported
#   "created_at": float,
#   "updated_at": float,
#   "exit_code": int | None,    # docker mode only, once the container exits
# }
_bot_store: dict[str, dict[str, Any]] = {}


def generate_bot_id() -> str:
    """Generate a new bot_id (UUID4). Backend only."""
    return str(uuid.uuid4())


def register_bot(bot_id: str, meeting_url: str, transcript_path: str, launch_mode: str) -> dict[str, Any]:
    now = time.time()
    _bot_store[bot_id] = {
        "bot_id": bot_id,
        "meeting_url": meeting_url,
        "transcript_path": transcript_path,
        "launch_mode": launch_mode,
        "state": "joining",
        "created_at": now,
        "updated_at": now,
        "exit_code": None,
    }
    return _bot_store[bot_id]


def get_bot(bot_id: str) -> dict[str, Any] | None:
    """Return bot record or None if not found."""
    return _bot_store.get(bot_id)


def update_bot(bot_id: str, **fields: Any) -> None:
    """Update fields of a known bot; unknown ids are ignored."""
    record = _bot_store.get(bot_id)
    if record is None:
        return
    record.update(fields)
    record["updated_at"] = time.time()


def delete_bot(bot_id: str) -> bool:
    """Remove bot from store. Return True if it existed."""
    if bot_id in _bot_store:
        del _bot_store[bot_id]
        return True
    return False


def bot_store() -> dict[str, dict[str, Any]]:
    """Return the underlying store (read-only view for debugging)."""
    return _bot_store
