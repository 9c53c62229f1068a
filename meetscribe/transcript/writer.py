"""
TranscriptWriter: session-based, append-only persistence of caption chunks.

One file per session: <TRANSCRIPT_DIR>/<bot_id>.jsonl, one JSON object per line
({"speaker", "text", "time"}).

Why append-only is critical:
- Chunks arrive for hours; we must never overwrite or truncate.
- The reconciler reads the same file while the call is still running.

Why every line is flushed on its own:
- The bot process can be killed with the container at any moment; at most the
  line being written is lost, and readers skip a trailing partial line.
"""
from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from meetscribe.config import get_settings
from meetscribe.transcript.models import TranscriptChunk

logger = logging.getLogger(__name__)


def transcript_path(bot_id: str, transcript_dir: Optional[str] = None) -> str:
    """Conventional transcript location for a bot session."""
    directory = transcript_dir or get_settings().TRANSCRIPT_DIR
    return os.path.join(directory, f"{bot_id}.jsonl")


class TranscriptWriterBase(ABC):
    """Base for session transcript writer. Only non-empty incremental chunks are appended."""

    @abstractmethod
    def start(self) -> None:
        """Open file at session start."""
        ...

    @abstractmethod
    def append(self, chunk: TranscriptChunk) -> None:
        """Append one chunk (one line), flushed immediately. Never raises on I/O errors."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close file. Safe to call more than once and from finally."""
        ...


class NoOpTranscriptWriter(TranscriptWriterBase):
    """When transcript saving is disabled. No file I/O."""

    def start(self) -> None:
        pass

    def append(self, chunk: TranscriptChunk) -> None:
        pass

    def close(self) -> None:
        pass


class TranscriptWriter(TranscriptWriterBase):
    """Append-only JSONL writer for one session."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._file: Optional[TextIO] = None

    @property
    def path(self) -> str:
        return self._path

    def start(self) -> None:
        if self._file is not None:
            return
        try:
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._file = open(self._path, "a", encoding="utf-8")
        except OSError as e:
            logger.warning("Transcript file open failed for %s: %s", self._path, e)

    def append(self, chunk: TranscriptChunk) -> None:
        if not chunk.text:
            return
        if self._file is None:
            logger.warning("Transcript %s not open; dropping chunk from %r", self._path, chunk.speaker)
            return
        line = json.dumps(chunk.to_dict(), ensure_ascii=False)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except OSError as e:
            logger.warning("Transcript write failed for %s: %s", self._path, e)

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            logger.warning("Transcript close failed for %s: %s", self._path, e)
        finally:
            self._file = None


def create_transcript_writer(path: str) -> TranscriptWriterBase:
    """Create writer when TRANSCRIPT_SAVE_ENABLED is true; else no-op."""
    settings = get_settings()
    if not getattr(settings, "TRANSCRIPT_SAVE_ENABLED", True):
        return NoOpTranscriptWriter()
    return TranscriptWriter(path)
