"""Now-playing state fed by the music source and read by chat commands."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

NO_CURRENT_TRACK = "🐺 No tracks in the den"
NO_LAST_TRACK = "🐺 No previous tracks yet, keep the music flowing!"
MUSIC_NOT_RUNNING = "Music app is not running"


@dataclass(frozen=True)
class Track:
    title: str
    artist: str
    album: str = ""

    def describe(self) -> str:
        return f"{self.title} by {self.artist}"


class NowPlayingTracker:
    """Holds the current and previous track.

    The previous track only changes when the title changes, so repeated
    updates for the same song (seek, pause, resume) keep it intact. The
    music source may call in from another thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Track | None = None
        self._last: Track | None = None
        self._status: str | None = None

    @property
    def current(self) -> Track | None:
        with self._lock:
            return self._current

    @property
    def last(self) -> Track | None:
        with self._lock:
            return self._last

    def update_track(self, track: str, artist: str, album: str = "") -> None:
        title = track.strip()
        if not title:
            return
        new = Track(title=title, artist=artist.strip(), album=album.strip())
        with self._lock:
            previous = self._current
            if previous is not None and previous.title != new.title:
                self._last = previous
            self._current = new
            self._status = None
        logging.debug(f"🎶 Now playing {new.describe()}")

    def update_status(self, text: str) -> None:
        """Record a player status such as 'Music app is not running'."""
        with self._lock:
            self._status = text.strip() or None
            if self._status and self._current is not None:
                self._last = self._current
                self._current = None
        logging.debug(f"🎶 Player status {text}")

    def current_song_info(self) -> str:
        with self._lock:
            current, status = self._current, self._status
        if current is not None:
            return f"🐺 Now playing: {current.describe()}"
        if status:
            return f"🐺 {status}"
        return NO_CURRENT_TRACK

    def last_song_info(self) -> str:
        with self._lock:
            last = self._last
        if last is None:
            return NO_LAST_TRACK
        return f"🐺 Last howl: {last.describe()}"
