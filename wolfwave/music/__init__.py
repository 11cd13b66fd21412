"""Now-playing tracking."""

from .now_playing import MUSIC_NOT_RUNNING, NowPlayingTracker, Track

__all__ = ["MUSIC_NOT_RUNNING", "NowPlayingTracker", "Track"]
