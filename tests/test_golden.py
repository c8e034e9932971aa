"""Golden tests: convert a notation file and compare the level files."""

import json
from pathlib import Path

import pytest
from textsaber.chart_emitter import ChartEmitter
from textsaber.chart_nodes import Difficulty
from textsaber.level_writer import write_level
from textsaber.notation.parser import parse_file
from textsaber.timeline import SongConfig

GOLDEN_DIR = Path(__file__).parent / "golden"


def _run_golden(name: str, out_dir: Path) -> SongConfig:
    """Convert golden/<name>.txt into out_dir and return the song settings."""
    src = GOLDEN_DIR / f"{name}.txt"
    assert src.exists(), f"Missing input: {src}"

    song = SongConfig()
    events = list(ChartEmitter(song).emit(parse_file(src)))
    write_level(events, song, out_dir)
    return song


class TestGolden:
    def test_demo_level(self, tmp_path):
        _run_golden("demo", tmp_path)
        expected = json.loads((GOLDEN_DIR / "demo.expected.json").read_text(encoding="utf-8"))
        actual = json.loads((tmp_path / "Expert.json").read_text(encoding="utf-8"))
        assert actual == expected

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_every_difficulty_identical(self, tmp_path, difficulty):
        # Nothing in the notation narrows the difficulty mask
        _run_golden("demo", tmp_path)
        expert = (tmp_path / "Expert.json").read_text(encoding="utf-8")
        assert (tmp_path / f"{difficulty.file_stem}.json").read_text(encoding="utf-8") == expert

    def test_demo_song_settings(self, tmp_path):
        song = _run_golden("demo", tmp_path)
        assert song.title == "Demo"
        assert song.subtitle == "Golden"
        assert song.author == "Tests"
        assert song.bpm == 120
        assert song.offset_ms == -10
        assert song.audio_delay == 0

    def test_demo_info(self, tmp_path):
        _run_golden("demo", tmp_path)
        info = json.loads((tmp_path / "info.json").read_text(encoding="utf-8"))
        assert info["songName"] == "Demo"
        assert [d["difficulty"] for d in info["difficultyLevels"]] == [
            "Easy", "Normal", "Hard", "Expert", "ExpertPlus",
        ]
