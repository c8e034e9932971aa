"""Tests for level_writer.py."""

import json

import pytest
from textsaber.chart_nodes import CutDirection, Difficulty, Note, NoteColor, Obstacle, WallType
from textsaber.errors import MissingTempo
from textsaber.level_writer import (
    build_info, build_level, note_to_json, obstacle_to_json, write_level,
)
from textsaber.timeline import SongConfig

EXPERT_ONLY = Difficulty.EXPERT.bit


def _song(**kwargs) -> SongConfig:
    song = SongConfig(title="Song", subtitle="Sub", author="Me", offset_ms=12.0)
    song.bpm = kwargs.pop("bpm", 120.0)
    for k, v in kwargs.items():
        setattr(song, k, v)
    return song


class TestJsonRecords:
    def test_note(self):
        note = Note(x=2, y=1, color=NoteColor.BLUE, cut_direction=CutDirection.DOWN_LEFT, time=3.5)
        assert note_to_json(note) == {
            "_time": 3.5, "_lineIndex": 2, "_lineLayer": 1, "_type": 1, "_cutDirection": 6,
        }

    def test_bomb_direction_zero(self):
        bomb = Note(x=0, y=0, color=NoteColor.BOMB, time=1.0)
        record = note_to_json(bomb)
        assert record["_type"] == 2
        assert record["_cutDirection"] == 0

    def test_full_height_wall(self):
        ob = Obstacle(x1=2, y1=0, x2=1, y2=2, length=1.5, time=4.0)
        assert ob.wall_type is WallType.FULL_HEIGHT
        assert obstacle_to_json(ob) == {
            "_time": 4.0, "_lineIndex": 1, "_type": 0, "_duration": 1.5, "_width": 2,
        }

    def test_top_wall(self):
        ob = Obstacle(x1=0, y1=2, x2=3, y2=2, length=1, time=0.0)
        assert obstacle_to_json(ob)["_type"] == 1
        assert obstacle_to_json(ob)["_width"] == 4


class TestBuildLevel:
    def test_partition_by_mask(self):
        events = [
            Note(x=0, y=0, color=NoteColor.RED, cut_direction=CutDirection.UP,
                 difficulty_mask=EXPERT_ONLY, time=0.0),
            Note(x=1, y=0, color=NoteColor.RED, cut_direction=CutDirection.UP,
                 difficulty_mask=Difficulty.EASY.bit | EXPERT_ONLY, time=1.0),
            Obstacle(x1=0, y1=0, x2=0, y2=2, length=1, difficulty_mask=EXPERT_ONLY, time=2.0),
        ]
        expert = build_level(events, Difficulty.EXPERT, 120.0)
        easy = build_level(events, Difficulty.EASY, 120.0)
        hard = build_level(events, Difficulty.HARD, 120.0)
        assert len(expert["_notes"]) == 2
        assert len(expert["_obstacles"]) == 1
        assert [n["_time"] for n in easy["_notes"]] == [1.0]
        assert easy["_obstacles"] == []
        assert hard["_notes"] == []

    def test_header(self):
        level = build_level([], Difficulty.EASY, 90.0)
        assert level["_version"] == "1.5.0"
        assert level["_beatsPerMinute"] == 90.0
        assert level["_beatsPerBar"] == 16
        assert level["_events"] == []


class TestBuildInfo:
    def test_fields(self):
        info = build_info(_song(), [Difficulty.EXPERT_PLUS], cover_image="cover.jpg")
        assert info["songName"] == "Song"
        assert info["songSubName"] == "Sub"
        assert info["authorName"] == "Me"
        assert info["beatsPerMinute"] == 120.0
        assert info["coverImagePath"] == "cover.jpg"
        (level,) = info["difficultyLevels"]
        assert level["difficulty"] == "ExpertPlus"
        assert level["difficultyRank"] == 4
        assert level["jsonPath"] == "ExpertPlus.json"
        assert level["audioPath"] == "song.ogg"
        assert level["offset"] == 12.0


class TestWriteLevel:
    def test_only_difficulties_with_notes(self, tmp_path):
        events = [Note(x=0, y=0, color=NoteColor.RED, cut_direction=CutDirection.UP,
                       difficulty_mask=EXPERT_ONLY, time=0.0)]
        written = write_level(events, _song(), tmp_path)
        assert [p.name for p in written] == ["Expert.json", "info.json"]
        info = json.loads((tmp_path / "info.json").read_text(encoding="utf-8"))
        assert [d["difficulty"] for d in info["difficultyLevels"]] == ["Expert"]

    def test_obstacles_alone_do_not_make_a_level(self, tmp_path):
        events = [Obstacle(x1=0, y1=0, x2=0, y2=0, length=1,
                           difficulty_mask=EXPERT_ONLY, time=0.0)]
        written = write_level(events, _song(), tmp_path)
        assert [p.name for p in written] == ["info.json"]

    def test_needs_bpm(self, tmp_path):
        with pytest.raises(MissingTempo):
            write_level([], SongConfig(), tmp_path)
