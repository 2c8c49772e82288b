"""Shared fixtures: fake collaborators for media probing and playback."""

import pytest

from scriptcut.command_executor import CommandExecutor
from scriptcut.exceptions import MediaProbeError
from scriptcut.media_probe import MediaProbe
from scriptcut.playback import Player
from scriptcut.script_processor import ScriptProcessor
from scriptcut.segment_manager import VideoSegmentManager


class FakeMediaProbe(MediaProbe):
    """Durations by path; unknown paths fail like a missing file would."""

    def __init__(self, durations=None):
        self.durations = durations if durations is not None else {"v.mp4": 30.0}
        self.calls = []

    def get_duration(self, media_path):
        self.calls.append(media_path)
        if media_path not in self.durations:
            raise MediaProbeError(f"Media file not found: {media_path}")
        return self.durations[media_path]


class FakePlayer(Player):
    def __init__(self, loadable=True):
        self.loadable = loadable
        self.calls = []

    def load(self, media_path):
        self.calls.append(("load", media_path))
        return self.loadable

    def seek(self, position):
        self.calls.append(("seek", position))

    def play(self):
        self.calls.append(("play",))

    def pause(self):
        self.calls.append(("pause",))

    def stop(self):
        self.calls.append(("stop",))


@pytest.fixture
def probe():
    return FakeMediaProbe({"v.mp4": 30.0, "long.mp4": 7200.0, "my clip.mp4": 12.0})


@pytest.fixture
def manager():
    return VideoSegmentManager()


@pytest.fixture
def executor(manager, probe):
    return CommandExecutor(manager, probe, default_duration=100.0)


@pytest.fixture
def processor(executor):
    return ScriptProcessor(executor)


@pytest.fixture
def player():
    return FakePlayer()


def spans(segments):
    """(start, end, visible, state, speed) tuples for compact assertions."""
    return [s.signature() for s in segments]
