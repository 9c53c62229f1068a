"""
Caption differ: reduce a re-rendered caption line to the part that is new.

The web client re-renders a speaker's whole accumulated line on every update,
so consecutive readings mostly share a prefix. Sometimes the head of the line
scrolls away and the tail is slightly rewritten; then the longest suffix of the
old reading that opens the new reading marks where the new words start.
"""
from __future__ import annotations


def find_new_text(previous: str, current: str) -> str:
    """Return the suffix of `current` not already covered by `previous`.

    - previous empty: the whole current line.
    - unchanged: "".
    - plain growth: the appended remainder, stripped.
    - shifted/rewritten tail: the remainder after the longest suffix of
      `previous` that is a prefix of `current`, stripped.
    - no overlap at all (speaker change, caption reset): `current` unchanged.
    """
    if not previous:
        return current
    if current == previous:
        return ""

    if current.startswith(previous):
        return current[len(previous):].strip()

    for size in range(len(previous), 0, -1):
        if current.startswith(previous[-size:]):
            return current[size:].strip()

    return current
