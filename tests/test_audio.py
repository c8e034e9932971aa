"""Tests for AudioProcessor (ffmpeg is never actually run)."""

import subprocess

import pytest
from textsaber.audio import AudioProcessor
from textsaber.errors import AudioProcessingError
from textsaber.timeline import SongConfig


class FakeFfmpeg:
    """Records ffmpeg invocations and creates their output file."""

    def __init__(self, fail: bool = False):
        self.calls: list[list[str]] = []
        self.fail = fail

    def __call__(self, cmd, check, capture_output, text):
        self.calls.append(cmd)
        if self.fail:
            raise subprocess.CalledProcessError(1, cmd, stderr="boom\nInvalid data")
        with open(cmd[-1], "wb") as f:
            f.write(b"audio")
        return subprocess.CompletedProcess(cmd, 0)


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    fake = FakeFfmpeg()
    monkeypatch.setattr("textsaber.audio.shutil.which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr("textsaber.audio.subprocess.run", fake)
    return fake


def _source(tmp_path, name: str):
    path = tmp_path / name
    path.write_bytes(b"source")
    return path


class TestProcess:
    def test_no_audio_file(self, tmp_path, fake_ffmpeg):
        assert AudioProcessor().process(SongConfig(), tmp_path) is None
        assert fake_ffmpeg.calls == []

    def test_ogg_copied(self, tmp_path, fake_ffmpeg):
        src = _source(tmp_path, "track.OGG")
        out = tmp_path / "out"
        out.mkdir()
        song = SongConfig(audio_file=str(src))
        target = AudioProcessor().process(song, out)
        assert target == out / "song.ogg"
        assert target.read_bytes() == b"source"
        assert fake_ffmpeg.calls == []
        assert song.audio_file == str(target)

    def test_relative_path_resolved_against_base_dir(self, tmp_path, fake_ffmpeg):
        _source(tmp_path, "track.ogg")
        out = tmp_path / "out"
        out.mkdir()
        song = SongConfig(audio_file="track.ogg")
        assert AudioProcessor().process(song, out, base_dir=tmp_path).exists()

    def test_other_format_transcoded(self, tmp_path, fake_ffmpeg):
        src = _source(tmp_path, "track.mp3")
        target = AudioProcessor().process(SongConfig(audio_file=str(src)), tmp_path)
        (cmd,) = fake_ffmpeg.calls
        assert cmd[0] == "/usr/bin/ffmpeg"
        assert str(src) in cmd
        assert "libvorbis" in cmd
        assert cmd[-1] == str(target)

    def test_silence_padded(self, tmp_path, fake_ffmpeg):
        src = _source(tmp_path, "track.ogg")
        song = SongConfig(audio_file=str(src), audio_delay=1.5)
        with AudioProcessor() as processor:
            processor.process(song, tmp_path)
        silence_cmd, concat_cmd = fake_ffmpeg.calls
        assert "lavfi" in silence_cmd
        assert "1.500000" in silence_cmd
        assert "concat=n=2:v=0:a=1[a]" in concat_cmd
        assert concat_cmd.index(silence_cmd[-1]) < concat_cmd.index(str(src))

    def test_missing_source(self, tmp_path, fake_ffmpeg):
        song = SongConfig(audio_file=str(tmp_path / "nope.mp3"))
        with pytest.raises(AudioProcessingError, match="not found"):
            AudioProcessor().process(song, tmp_path)

    def test_missing_ffmpeg(self, tmp_path, monkeypatch):
        monkeypatch.setattr("textsaber.audio.shutil.which", lambda name: None)
        src = _source(tmp_path, "track.mp3")
        with pytest.raises(AudioProcessingError, match="ffmpeg not found"):
            AudioProcessor().process(SongConfig(audio_file=str(src)), tmp_path)

    def test_ffmpeg_failure(self, tmp_path, monkeypatch):
        monkeypatch.setattr("textsaber.audio.shutil.which", lambda name: "/usr/bin/ffmpeg")
        monkeypatch.setattr("textsaber.audio.subprocess.run", FakeFfmpeg(fail=True))
        src = _source(tmp_path, "track.mp3")
        with pytest.raises(AudioProcessingError, match="Invalid data"):
            AudioProcessor().process(SongConfig(audio_file=str(src)), tmp_path)


class TestCleanup:
    def test_silence_removed_on_exit(self, tmp_path, fake_ffmpeg):
        with AudioProcessor() as processor:
            silence = processor.make_silence(2)
            assert silence.exists()
        assert not silence.exists()

    @pytest.mark.parametrize("seconds, expected", [
        (0.1234567, "0.123457"),
        (1234567.5, "1234567.500000"),
    ])
    def test_silence_duration_in_plain_decimal(self, tmp_path, fake_ffmpeg, seconds, expected):
        with AudioProcessor() as processor:
            processor.make_silence(seconds)
        (cmd,) = fake_ffmpeg.calls
        assert cmd[cmd.index("-t") + 1] == expected
