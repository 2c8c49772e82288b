import ffmpeg
import pytest

from scriptcut.exceptions import MediaProbeError
from scriptcut.media_probe import FFprobeMediaProbe, FixedDurationProbe


@pytest.fixture
def media_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00")
    return str(path)


def fake_probe(monkeypatch, result=None, error=None):
    calls = []

    def probe(filename, cmd="ffprobe", **kwargs):
        calls.append((filename, cmd))
        if error is not None:
            raise error
        return result

    monkeypatch.setattr(ffmpeg, "probe", probe)
    return calls


def test_duration_from_container(monkeypatch, media_file):
    calls = fake_probe(monkeypatch, {"format": {"duration": "12.480000"}, "streams": []})
    assert FFprobeMediaProbe("/opt/ffprobe").get_duration(media_file) == 12.48
    assert calls == [(media_file, "/opt/ffprobe")]


def test_duration_falls_back_to_streams(monkeypatch, media_file):
    fake_probe(monkeypatch, {"format": {}, "streams": [{"codec_type": "data"}, {"duration": "30.0"}]})
    assert FFprobeMediaProbe().get_duration(media_file) == 30.0


def test_no_duration_is_an_error(monkeypatch, media_file):
    fake_probe(monkeypatch, {"format": {"duration": "N/A"}, "streams": [{"duration": "0"}]})
    with pytest.raises(MediaProbeError):
        FFprobeMediaProbe().get_duration(media_file)


def test_ffprobe_failure_is_wrapped(monkeypatch, media_file):
    fake_probe(monkeypatch, error=ffmpeg.Error("ffprobe", b"", b"Invalid data found"))
    with pytest.raises(MediaProbeError, match="Invalid data found"):
        FFprobeMediaProbe().get_duration(media_file)


def test_missing_ffprobe_executable_is_wrapped(monkeypatch, media_file):
    fake_probe(monkeypatch, error=FileNotFoundError("ffprobe"))
    with pytest.raises(MediaProbeError):
        FFprobeMediaProbe("no-such-ffprobe").get_duration(media_file)


def test_missing_media_file_is_not_probed(monkeypatch, tmp_path):
    calls = fake_probe(monkeypatch, {"format": {"duration": "1.0"}})
    with pytest.raises(MediaProbeError):
        FFprobeMediaProbe().get_duration(str(tmp_path / "absent.mp4"))
    assert calls == []


def test_fixed_duration_probe():
    assert FixedDurationProbe(42).get_duration("anything.mp4") == 42.0
    with pytest.raises(ValueError):
        FixedDurationProbe(0)
