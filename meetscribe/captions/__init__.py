"""Live captions: DOM watcher, snapshots and the incremental differ."""
from .differ import find_new_text
from .models import CaptionSnapshot
from .watcher import CaptionSnapshotWatcher

__all__ = ["CaptionSnapshot", "CaptionSnapshotWatcher", "find_new_text"]
