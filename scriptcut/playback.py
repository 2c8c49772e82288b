"""Segment playback with an exclusive playback token."""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .exceptions import PlaybackError
from .models import SegmentState
from .segment_manager import VideoSegmentManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackToken:
    """Proof of ownership of the single active playback session."""
    owner: str
    serial: int


class PlaybackArbiter:
    """Hands out at most one PlaybackToken at a time."""

    def __init__(self):
        self._condition = threading.Condition()
        self._holder: Optional[PlaybackToken] = None
        self._serials = itertools.count(1)

    @property
    def holder(self) -> Optional[PlaybackToken]:
        with self._condition:
            return self._holder

    def acquire(self, owner: str, timeout: Optional[float] = None) -> PlaybackToken:
        """
        Waits until no session is active and takes the token.

        Raises:
            PlaybackError: If the token is not released within `timeout` seconds.
        """
        with self._condition:
            if not self._condition.wait_for(lambda: self._holder is None, timeout):
                raise PlaybackError(f"{owner} timed out waiting for playback held by {self._holder.owner}")
            self._holder = PlaybackToken(owner=owner, serial=next(self._serials))
            logger.debug(f"Playback token #{self._holder.serial} acquired by {owner}")
            return self._holder

    def release(self, token: PlaybackToken) -> None:
        """
        Gives the token back.

        Raises:
            PlaybackError: If `token` is not the token currently held.
        """
        with self._condition:
            if self._holder != token:
                raise PlaybackError(f"Token #{token.serial} of {token.owner} is not the active playback token")
            self._holder = None
            logger.debug(f"Playback token #{token.serial} released by {token.owner}")
            self._condition.notify_all()


class Player(ABC):
    """Abstract media player; the implementation lives outside this package."""

    @abstractmethod
    def load(self, media_path: str) -> bool:
        """Opens a media file; returns False if it could not be opened."""
        pass

    @abstractmethod
    def seek(self, position: float) -> None:
        pass

    @abstractmethod
    def play(self) -> None:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass


class SegmentPlaybackController:
    """
    Plays the segment the user selects, one at a time.

    Switching segments stops the previous session and releases its token
    before the next session acquires one.
    """

    def __init__(
        self,
        segment_manager: VideoSegmentManager,
        player: Player,
        arbiter: PlaybackArbiter,
        owner: str = "timeline",
        acquire_timeout: Optional[float] = 5.0
    ):
        self.segment_manager = segment_manager
        self.player = player
        self.arbiter = arbiter
        self.owner = owner
        self.acquire_timeout = acquire_timeout
        self._switch_lock = threading.Lock()
        self._token: Optional[PlaybackToken] = None
        self._current_segment_id: Optional[int] = None
        self._playing = False
        self._loaded_path: Optional[str] = None

    @property
    def current_segment_id(self) -> Optional[int]:
        return self._current_segment_id

    @property
    def is_playing(self) -> bool:
        return self._playing

    def select_and_play(self, segment_id: int, cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Handles a click on a segment.

        Clicking the playing segment pauses it, clicking it again resumes.
        Hidden segments are never played.

        Returns:
            True if the segment ends up playing or paused as requested,
            False if nothing was started (hidden, unknown, cancelled or failed).
        """
        with self._switch_lock:
            segment = self.segment_manager.get_segment_by_id(segment_id)
            if segment is None:
                logger.warning(f"Segment {segment_id} not found; nothing to play")
                return False
            if not segment.visible or segment.state is SegmentState.HIDDEN:
                logger.info(f"Segment {segment_id} is hidden, skipping playback")
                return False

            if segment_id == self._current_segment_id and self._token is not None:
                return self._toggle_current(segment_id)

            self._stop_current()
            if cancel_event is not None and cancel_event.is_set():
                logger.debug(f"Switch to segment {segment_id} cancelled")
                return False

            try:
                token = self.arbiter.acquire(self.owner, self.acquire_timeout)
            except PlaybackError as e:
                logger.error(f"Could not start segment {segment_id}: {e}")
                return False

            try:
                if cancel_event is not None and cancel_event.is_set():
                    logger.debug(f"Switch to segment {segment_id} cancelled after acquiring playback")
                    self.arbiter.release(token)
                    return False
                if self._loaded_path != segment.video_file_path:
                    if not self.player.load(segment.video_file_path):
                        raise PlaybackError(f"Player could not load {segment.video_file_path}")
                    self._loaded_path = segment.video_file_path
                self.player.seek(segment.start_time)
                self.player.play()
            except Exception as e:
                logger.error(f"Error playing segment {segment_id}: {e}", exc_info=True)
                self._loaded_path = None
                self.arbiter.release(token)
                return False

            self._token = token
            self._current_segment_id = segment_id
            self._playing = True
            self.segment_manager.set_segment_state(segment_id, SegmentState.PLAYING)
            logger.info(f"Playing segment {segment_id} from {segment.start_time:.3f}s")
            return True

    def _toggle_current(self, segment_id: int) -> bool:
        if self._playing:
            self.player.pause()
            self._playing = False
            self.segment_manager.set_segment_state(segment_id, SegmentState.STOPPED)
            logger.info(f"Paused segment {segment_id}")
        else:
            self.player.play()
            self._playing = True
            self.segment_manager.set_segment_state(segment_id, SegmentState.PLAYING)
            logger.info(f"Resumed segment {segment_id}")
        return True

    def _stop_current(self) -> None:
        if self._token is None:
            return
        previous = self._current_segment_id
        try:
            self.player.stop()
        finally:
            current = self.segment_manager.get_segment_by_id(previous) if previous is not None else None
            if current is not None and current.state is SegmentState.PLAYING:
                self.segment_manager.set_segment_state(previous, SegmentState.STOPPED)
            token, self._token = self._token, None
            self._current_segment_id = None
            self._playing = False
            self.arbiter.release(token)
            logger.debug(f"Stopped segment {previous}")

    def stop(self) -> None:
        """Stops playback and gives the token back."""
        with self._switch_lock:
            self._stop_current()
