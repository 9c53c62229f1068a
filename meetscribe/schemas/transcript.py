"""Schemas for transcript retrieval."""
from __future__ import annotations

from pydantic import BaseModel, Field


class UtteranceOut(BaseModel):
    """One merged utterance: consecutive chunks of one speaker less than MERGE_GAP_SEC apart."""

    speaker: str = Field(..., description="Display name, or raw avatar key when the name was unknown")
    text: str
    time: float = Field(..., description="Seconds since transcript start of the last merged chunk")
