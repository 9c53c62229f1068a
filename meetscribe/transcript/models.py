"""
Transcript records.

TranscriptChunk is what the writer persists: one incremental piece of one
speaker's caption line. MergedUtterance is derived on read by the reconciler
and never stored.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class TranscriptChunk:
    """
    One persisted JSONL record.

    speaker: display name, or the raw avatar key when the directory had no match.
    text: non-empty incremental text.
    time: seconds since transcript start.
    """

    speaker: str
    text: str
    time: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscriptChunk":
        return cls(
            speaker=str(data["speaker"]),
            text=str(data["text"]),
            time=float(data["time"]),
        )


@dataclass
class MergedUtterance:
    """Run of same-speaker chunks; time is the time of the last contributing chunk."""

    speaker: str
    text: str
    time: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
