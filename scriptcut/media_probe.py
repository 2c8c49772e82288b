"""Reads media durations for LOAD commands using ffprobe."""

import ffmpeg
import os
import logging
from abc import ABC, abstractmethod
from typing import Optional
from .exceptions import MediaProbeError

logger = logging.getLogger(__name__)

class MediaProbe(ABC):
    """Abstract base class for media duration lookups."""

    @abstractmethod
    def get_duration(self, media_path: str) -> float:
        """
        Returns the duration of a media file.

        Args:
            media_path: Path to the media file.

        Returns:
            The duration in seconds (always > 0).

        Raises:
            MediaProbeError: If the duration cannot be determined.
        """
        pass


class FFprobeMediaProbe(MediaProbe):
    """Implements duration lookups through ffmpeg-python's ffprobe wrapper."""

    def __init__(self, ffprobe_path: Optional[str] = None):
        """
        Initializes the FFprobeMediaProbe.

        Args:
            ffprobe_path: Optional path to the ffprobe executable.
                          If None, assumes ffprobe is in the system PATH.
        """
        self.ffprobe_cmd = ffprobe_path or 'ffprobe'
        logger.info(f"Using ffprobe command: {self.ffprobe_cmd}")

    def get_duration(self, media_path: str) -> float:
        """
        Probes the container (and, failing that, the streams) for a duration.

        Raises:
            MediaProbeError: If the file is missing, ffprobe fails, or no
                             positive duration is reported.
        """
        logger.debug(f"Probing media duration: {media_path}")
        if not os.path.isfile(media_path):
            raise MediaProbeError(f"Media file not found: {media_path}")

        try:
            info = ffmpeg.probe(media_path, cmd=self.ffprobe_cmd)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffprobe failed for {media_path}: {stderr_output}")
            raise MediaProbeError(f"ffprobe failed: {stderr_output}") from e
        except OSError as e:
            # Raised when the ffprobe executable itself cannot be started
            logger.error(f"Could not run {self.ffprobe_cmd}: {e}")
            raise MediaProbeError(f"Could not run {self.ffprobe_cmd}: {e}") from e

        candidates = [info.get('format', {}).get('duration')]
        candidates += [stream.get('duration') for stream in info.get('streams', [])]
        for value in candidates:
            try:
                duration = float(value)
            except (TypeError, ValueError):
                continue
            if duration > 0:
                logger.info(f"Media duration for {media_path}: {duration:.3f}s")
                return duration
        raise MediaProbeError(f"ffprobe reported no duration for {media_path}")


class FixedDurationProbe(MediaProbe):
    """Reports the same duration for every file (CLI --duration, offline use)."""

    def __init__(self, duration: float):
        if duration <= 0:
            raise ValueError(f"Duration must be positive, got {duration}")
        self.duration = float(duration)

    def get_duration(self, media_path: str) -> float:
        return self.duration
