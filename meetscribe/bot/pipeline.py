"""
CaptionPipeline: snapshot -> differ -> writer, for one session.

Keeps the last full caption line per speaker; a speaker's next snapshot is
diffed against it and only the new part is written. The cache is updated with
every snapshot, even when nothing new came out of the diff.
"""
from __future__ import annotations

import logging
from typing import Optional

from meetscribe.captions.differ import find_new_text
from meetscribe.captions.models import CaptionSnapshot
from meetscribe.transcript.models import TranscriptChunk
from meetscribe.transcript.writer import TranscriptWriterBase

logger = logging.getLogger(__name__)


class CaptionPipeline:
    def __init__(self, writer: TranscriptWriterBase) -> None:
        self._writer = writer
        self._last_text_by_speaker: dict[str, str] = {}
        self.chunks_written = 0

    def last_text(self, speaker: str) -> str:
        return self._last_text_by_speaker.get(speaker, "")

    def handle(self, snapshot: CaptionSnapshot) -> Optional[TranscriptChunk]:
        previous = self._last_text_by_speaker.get(snapshot.speaker, "")
        new_text = find_new_text(previous, snapshot.text)
        self._last_text_by_speaker[snapshot.speaker] = snapshot.text
        if not new_text:
            return None
        chunk = TranscriptChunk(speaker=snapshot.speaker, text=new_text, time=snapshot.time)
        self._writer.append(chunk)
        self.chunks_written += 1
        logger.debug("caption chunk %s @%.2f: %s", snapshot.speaker or "?", snapshot.time, new_text)
        return chunk
