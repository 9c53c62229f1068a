"""
TranscriptReconciler: merge adjacent same-speaker chunks into utterances.

Runs on read, over the whole chunk log, and keeps no state between calls.
Chunks from the same speaker less than `gap_sec` apart (measured from the
previous chunk, not from the start of the utterance) join the current
utterance; anything else starts a new one.
"""
from __future__ import annotations

from typing import Iterable, Optional

from meetscribe.config import get_settings
from meetscribe.transcript.models import MergedUtterance, TranscriptChunk
from meetscribe.transcript.reader import read_chunks

DEFAULT_GAP_SEC = 2.0


def reconcile(
    chunks: Iterable[TranscriptChunk],
    gap_sec: float = DEFAULT_GAP_SEC,
) -> list[MergedUtterance]:
    merged: list[MergedUtterance] = []
    last_speaker: Optional[str] = None
    last_time = 0.0
    current: Optional[MergedUtterance] = None

    for chunk in chunks:
        if current is not None and chunk.speaker == last_speaker and chunk.time - last_time < gap_sec:
            current.text = f"{current.text} {chunk.text}"
            current.time = chunk.time
        else:
            current = MergedUtterance(speaker=chunk.speaker, text=chunk.text, time=chunk.time)
            merged.append(current)
        last_speaker = chunk.speaker
        last_time = chunk.time

    return merged


def load_merged_transcript(path: str, gap_sec: Optional[float] = None) -> list[MergedUtterance]:
    """Read the chunk log at `path` and merge it. Missing file -> []."""
    if gap_sec is None:
        gap_sec = get_settings().MERGE_GAP_SEC
    return reconcile(read_chunks(path), gap_sec=gap_sec)
