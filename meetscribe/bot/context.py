"""Per-session state shared by the controller, the speaker directory and the caption watcher."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from meetscribe.bot.pipeline import CaptionPipeline
from meetscribe.captions.watcher import CaptionSnapshotWatcher
from meetscribe.speakers.directory import SpeakerDirectory


@dataclass
class SessionContext:
    """
    Everything one bot session mutates. Never shared between sessions.

    shutdown: set by a supervisor (signal handler, app shutdown) to end every long wait.
    """

    bot_id: str
    shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    directory: SpeakerDirectory = field(default_factory=SpeakerDirectory)
    page: Any = None
    pipeline: Optional[CaptionPipeline] = None
    watcher: Optional[CaptionSnapshotWatcher] = None
