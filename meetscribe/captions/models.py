"""
Caption snapshot: one reading of one on-screen caption element.

Snapshots live only in memory; each one is superseded by the next reading of
the same element and discarded once the differ has consumed it.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CaptionSnapshot:
    """
    element_id: synthetic id stamped on the caption element; stable while the element is attached.
    speaker: display name from the speaker directory, else the raw avatar key ("" if no icon).
    text: full caption text currently rendered for that element (trimmed).
    time: seconds since the transcript clock started, 2 decimals.
    """

    element_id: str
    speaker: str
    text: str
    time: float
