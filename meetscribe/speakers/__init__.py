"""Speaker attribution: resolve caption avatars to participant names."""
from meetscribe.speakers.directory import SpeakerDirectory, speaker_key

__all__ = ["SpeakerDirectory", "speaker_key"]
