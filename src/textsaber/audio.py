"""AudioProcessor: puts the song's audio into the level folder via ffmpeg.

The level expects an Ogg Vorbis file named ``song.ogg``. The source named
by ``audio_file`` is copied as-is when it already is Ogg and no lead-in
silence was requested; otherwise ffmpeg transcodes it, prepending
``intro_silence`` seconds of silence when needed.

Usage as a context manager ensures the temporary silence file is removed:

    with AudioProcessor() as processor:
        processor.process(song, out_dir, base_dir=input_path.parent)
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from textsaber.errors import AudioProcessingError
from textsaber.level_writer import AUDIO_FILE
from textsaber.timeline import SongConfig

logger = logging.getLogger(__name__)

CODEC_ARGS = ["-codec:a", "libvorbis", "-b:a", "192k"]
SILENCE_SOURCE = "anullsrc=channel_layout=stereo:sample_rate=44100"


class AudioProcessor:
    """Copy, transcode, or silence-pad the source audio of a chart."""

    def __init__(self, ffmpeg: str | None = None) -> None:
        self.ffmpeg = ffmpeg
        self._temp_dirs: list[str] = []

    def _ffmpeg(self) -> str:
        exe = shutil.which(self.ffmpeg or "ffmpeg")
        if exe is None:
            raise AudioProcessingError(
                f"ffmpeg not found ({self.ffmpeg or 'ffmpeg'}). "
                "Install it or pass its path with --ffmpeg."
            )
        return exe

    def process(
        self, song: SongConfig, out_dir: str | Path, base_dir: str | Path | None = None,
    ) -> Path | None:
        """Write ``song.ogg`` into ``out_dir`` and point ``song.audio_file`` at it.

        Args:
            song: Settings collected from the chart.
            out_dir: Level folder.
            base_dir: Directory relative audio paths are resolved against.

        Returns:
            Path of the written audio, or None if the chart names no audio.
        """
        if not song.audio_file:
            logger.info("No audio_file set; skipping audio")
            return None

        source = Path(song.audio_file)
        if not source.is_absolute() and base_dir is not None:
            source = Path(base_dir) / source
        if not source.exists():
            raise AudioProcessingError(f"audio file not found: {source}")

        target = Path(out_dir) / AUDIO_FILE
        if song.audio_delay <= 0 and source.suffix.lower() == ".ogg":
            logger.info("Copying %s -> %s", source, target)
            shutil.copyfile(source, target)
        elif song.audio_delay > 0:
            silence = self.make_silence(song.audio_delay)
            self._run([
                "-y", "-i", str(silence), "-i", str(source),
                "-filter_complex", "concat=n=2:v=0:a=1[a]", "-map", "[a]",
                *CODEC_ARGS, str(target),
            ])
        else:
            self._run(["-y", "-i", str(source), "-vn", *CODEC_ARGS, str(target)])

        song.audio_file = str(target)
        return target

    def make_silence(self, seconds: float) -> Path:
        """Render ``seconds`` of stereo silence to a temporary file."""
        temp_dir = tempfile.mkdtemp(prefix="textsaber_")
        self._temp_dirs.append(temp_dir)
        path = Path(temp_dir) / "silence.wav"
        self._run([
            "-y", "-f", "lavfi", "-i", SILENCE_SOURCE,
            "-t", f"{seconds:.6f}", str(path),
        ])
        return path

    def _run(self, args: list[str]) -> None:
        cmd = [self._ffmpeg(), *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as exc:
            tail = (exc.stderr or "").strip().splitlines()[-5:]
            raise AudioProcessingError(
                f"ffmpeg failed with exit code {exc.returncode}:\n" + "\n".join(tail)
            ) from exc

    def cleanup(self) -> None:
        """Remove all temporary directories created during processing."""
        for temp_dir in self._temp_dirs:
            shutil.rmtree(temp_dir, ignore_errors=True)
        self._temp_dirs.clear()

    def __enter__(self) -> "AudioProcessor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()
