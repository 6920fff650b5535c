"""
Narration playback for the conversation client.

An AudioClip is the decoded speech for one rendered reply. The AudioPlayer
owns at most one playing clip at a time: starting a clip always stops
and rewinds the previous one first.

The actual sound output is delegated to an AudioBackend. The default
backend writes the clip to a temporary .mp3 file and hands it to an
external player command (ffplay, mpg123, afplay, ...).
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from enum import Enum
from typing import List, Optional, Protocol


logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    ENDED = "ended"


class PlaybackHandle(Protocol):
    def is_finished(self) -> bool:
        ...

    def stop(self) -> None:
        ...


class AudioBackend(Protocol):
    def start(self, data: bytes) -> PlaybackHandle:
        ...


class AudioClip:
    """Decoded narration for one reply."""

    media_type = "audio/mpeg"

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.state = PlaybackState.IDLE
        self._handle: Optional[PlaybackHandle] = None

    def _started(self, handle: PlaybackHandle) -> None:
        self._handle = handle
        self.state = PlaybackState.PLAYING

    def _rewind(self) -> None:
        """Stop output and return to the start, ready to play again."""
        if self._handle is not None:
            self._handle.stop()
            self._handle = None
        self.state = PlaybackState.IDLE

    def _check_finished(self) -> bool:
        if self.state is PlaybackState.PLAYING and self._handle is not None and self._handle.is_finished():
            self._handle = None
            self.state = PlaybackState.ENDED
        return self.state is PlaybackState.ENDED


class AudioPlayer:
    """Holds the single active clip."""

    def __init__(self, backend: AudioBackend) -> None:
        self.backend = backend
        self.current: Optional[AudioClip] = None

    @property
    def is_playing(self) -> bool:
        self.poll()
        return self.current is not None

    def play(self, clip: AudioClip) -> None:
        """Stop whatever is playing, then start `clip` from the beginning."""
        self.stop()
        handle = self.backend.start(clip.data)
        clip._started(handle)
        self.current = clip

    def stop(self) -> None:
        """Stop and rewind the current clip, then release it."""
        if self.current is not None:
            self.current._rewind()
            self.current = None

    def poll(self) -> None:
        """Release the current clip once the backend reports it has ended."""
        if self.current is not None and self.current._check_finished():
            self.current = None


# ---------------------------------------------------------------------------
# External-command backend
# ---------------------------------------------------------------------------


class _ProcessHandle:
    def __init__(self, proc: subprocess.Popen, path: str) -> None:
        self._proc = proc
        self._path = path

    def is_finished(self) -> bool:
        if self._proc.poll() is None:
            return False
        self._cleanup()
        return True

    def stop(self) -> None:
        if self._proc.poll() is None:
            self._proc.kill()
            try:
                self._proc.wait(timeout=1)
            except subprocess.TimeoutExpired:
                logger.warning("[AUDIO] Player process %s did not exit", self._proc.pid)
        self._cleanup()

    def _cleanup(self) -> None:
        try:
            os.remove(self._path)
        except FileNotFoundError:
            pass


class SubprocessAudioBackend:
    """Plays clips by running `command + [path_to_mp3]`."""

    def __init__(self, command: List[str]) -> None:
        if not command:
            raise ValueError("Audio player command must not be empty.")
        self.command = list(command)

    def start(self, data: bytes) -> PlaybackHandle:
        fd, path = tempfile.mkstemp(prefix="moodi-", suffix=".mp3")
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        try:
            proc = subprocess.Popen(
                self.command + [path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError:
            os.remove(path)
            raise
        return _ProcessHandle(proc, path)
