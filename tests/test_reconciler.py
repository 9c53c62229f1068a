from meetscribe.transcript.models import MergedUtterance, TranscriptChunk
from meetscribe.transcript.reconciler import load_merged_transcript, reconcile


def _chunks(*rows):
    return [TranscriptChunk(speaker=s, text=t, time=ts) for s, t, ts in rows]


def test_same_speaker_within_gap_merges():
    merged = reconcile(_chunks(("Ann", "hello", 10.0), ("Ann", "there", 11.5)))
    assert merged == [MergedUtterance(speaker="Ann", text="hello there", time=11.5)]


def test_same_speaker_outside_gap_stays_separate():
    merged = reconcile(_chunks(("Ann", "hello", 10.0), ("Ann", "there", 13.0)))
    assert [m.text for m in merged] == ["hello", "there"]


def test_gap_is_strict():
    merged = reconcile(_chunks(("Ann", "a", 10.0), ("Ann", "b", 12.0)))
    assert len(merged) == 2


def test_other_speaker_in_between_forces_new_utterance():
    merged = reconcile(
        _chunks(("Ann", "one", 10.0), ("Bob", "two", 10.1), ("Ann", "three", 10.2))
    )
    assert [(m.speaker, m.text) for m in merged] == [("Ann", "one"), ("Bob", "two"), ("Ann", "three")]


def test_gap_measured_from_previous_chunk():
    merged = reconcile(
        _chunks(("Ann", "a", 0.0), ("Ann", "b", 1.5), ("Ann", "c", 3.0), ("Ann", "d", 4.5))
    )
    assert merged == [MergedUtterance(speaker="Ann", text="a b c d", time=4.5)]


def test_merging_merged_output_is_idempotent():
    chunks = _chunks(
        ("Ann", "hi", 1.0),
        ("Ann", "all", 2.0),
        ("Ann", "again", 6.0),
        ("Bob", "yo", 6.5),
        ("Bob", "ok", 7.0),
        ("Ann", "bye", 7.2),
    )
    once = reconcile(chunks)
    twice = reconcile(TranscriptChunk(speaker=m.speaker, text=m.text, time=m.time) for m in once)
    assert twice == once


def test_input_chunks_are_not_mutated():
    chunks = _chunks(("Ann", "hello", 1.0), ("Ann", "there", 1.5))
    reconcile(chunks)
    assert chunks[0].text == "hello"


def test_load_missing_file_is_empty(tmp_path):
    assert load_merged_transcript(str(tmp_path / "nope.jsonl"), gap_sec=2.0) == []


def test_empty_input():
    assert reconcile([]) == []
