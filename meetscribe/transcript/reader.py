"""Read a session's JSONL chunk log, possibly while the bot is still appending to it."""
from __future__ import annotations

import json
import logging
import os

from meetscribe.transcript.models import TranscriptChunk

logger = logging.getLogger(__name__)


class TranscriptReadError(Exception):
    """A complete transcript line could not be parsed (or the file could not be read)."""


def parse_chunks(content: str, source: str = "<transcript>") -> list[TranscriptChunk]:
    """
    Parse JSONL content into chunks, in file order.

    A last line without a trailing newline may be a write in progress and is skipped.
    Blank lines are ignored. Any other bad line fails the whole read.
    """
    lines = content.split("\n")
    # Text after the final "\n" is either "" or an incomplete record.
    tail = lines.pop()
    if tail.strip():
        logger.debug("Skipping incomplete trailing line in %s", source)

    chunks: list[TranscriptChunk] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            chunks.append(TranscriptChunk.from_dict(json.loads(line)))
        except (ValueError, KeyError, TypeError) as e:
            raise TranscriptReadError(f"{source}:{lineno}: malformed transcript record ({e})") from e
    return chunks


def read_chunks(path: str) -> list[TranscriptChunk]:
    """Load all complete chunks from `path`; [] if the file does not exist yet."""
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise TranscriptReadError(f"{path}: cannot read transcript ({e})") from e
    return parse_chunks(content, source=path)
