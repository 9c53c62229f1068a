"""Transcript handling: append-only chunk log, tolerant reader, on-read reconciliation."""
from .models import MergedUtterance, TranscriptChunk
from .reader import TranscriptReadError, read_chunks
from .reconciler import load_merged_transcript, reconcile
from .writer import TranscriptWriter, TranscriptWriterBase, create_transcript_writer, transcript_path

__all__ = [
    "MergedUtterance",
    "TranscriptChunk",
    "TranscriptReadError",
    "TranscriptWriter",
    "TranscriptWriterBase",
    "create_transcript_writer",
    "load_merged_transcript",
    "read_chunks",
    "reconcile",
    "transcript_path",
]
