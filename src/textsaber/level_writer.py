"""Write the emitted chart as a level folder.

Layout of the output directory::

    info.json           song manifest, one entry per written difficulty
    <Difficulty>.json   level data, only for difficulties with notes
    song.ogg            written by textsaber.audio
    cover.jpg           optional

Events are partitioned per difficulty by their difficulty mask. The level
format is the 1.5.0 JSON layout (``_notes`` / ``_obstacles`` lists).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from textsaber.chart_nodes import ChartEvent, Difficulty, Note, Obstacle
from textsaber.errors import MissingTempo
from textsaber.timeline import SongConfig

logger = logging.getLogger(__name__)

LEVEL_VERSION = "1.5.0"
INFO_FILE = "info.json"
AUDIO_FILE = "song.ogg"
COVER_FILE = "cover.jpg"
DEFAULT_ENVIRONMENT = "DefaultEnvironment"

BEATS_PER_BAR = 16
NOTE_JUMP_SPEED = 10.0
SHUFFLE = 0
SHUFFLE_PERIOD = 0.5


def note_to_json(note: Note) -> dict[str, Any]:
    return {
        "_time": note.time,
        "_lineIndex": note.x,
        "_lineLayer": note.y,
        "_type": int(note.color),
        # Bombs ignore the cut direction
        "_cutDirection": int(note.cut_direction) if note.cut_direction is not None else 0,
    }


def obstacle_to_json(obstacle: Obstacle) -> dict[str, Any]:
    return {
        "_time": obstacle.time,
        "_lineIndex": obstacle.line_index,
        "_type": obstacle.wall_type.value,
        "_duration": obstacle.length,
        "_width": obstacle.width,
    }


def build_level(events: Iterable[ChartEvent], difficulty: Difficulty, bpm: float) -> dict[str, Any]:
    """Build the level document holding the events of one difficulty."""
    events = list(events)
    return {
        "_version": LEVEL_VERSION,
        "_beatsPerMinute": bpm,
        "_beatsPerBar": BEATS_PER_BAR,
        "_noteJumpSpeed": NOTE_JUMP_SPEED,
        "_shuffle": SHUFFLE,
        "_shufflePeriod": SHUFFLE_PERIOD,
        "_events": [],
        "_notes": [
            note_to_json(e) for e in events
            if isinstance(e, Note) and e.in_difficulty(difficulty)
        ],
        "_obstacles": [
            obstacle_to_json(e) for e in events
            if isinstance(e, Obstacle) and e.in_difficulty(difficulty)
        ],
    }


def build_info(
    song: SongConfig,
    difficulties: Iterable[Difficulty],
    cover_image: str | None = None,
) -> dict[str, Any]:
    """Build the song manifest listing the given difficulties."""
    return {
        "songName": song.title,
        "songSubName": song.subtitle,
        "authorName": song.author,
        "beatsPerMinute": song.bpm,
        "previewStartTime": 0.0,
        "previewDuration": 0.0,
        "coverImagePath": cover_image,
        "environmentName": DEFAULT_ENVIRONMENT,
        "difficultyLevels": [
            {
                "difficulty": d.file_stem,
                "difficultyRank": int(d),
                "audioPath": AUDIO_FILE,
                "jsonPath": f"{d.file_stem}.json",
                "offset": song.offset_ms,
                "oldOffset": song.offset_ms,
            }
            for d in difficulties
        ],
    }


def write_level(
    events: Iterable[ChartEvent],
    song: SongConfig,
    out_dir: str | Path,
    cover_image: str | None = None,
) -> list[Path]:
    """Write every non-empty difficulty and the manifest into ``out_dir``.

    Returns the paths written, manifest last.

    Raises:
        MissingTempo: If the chart never set a ``bpm``.
    """
    if not song.has_bpm:
        raise MissingTempo("the chart never sets bpm; a level needs a tempo")
    out_dir = Path(out_dir)
    events = list(events)
    written: list[Path] = []
    difficulties: list[Difficulty] = []

    for d in Difficulty:
        level = build_level(events, d, song.bpm)
        if not level["_notes"]:
            logger.debug("Skipping %s: no notes", d.file_stem)
            continue
        path = out_dir / f"{d.file_stem}.json"
        _write_json(path, level)
        logger.info("Written: %s (%d notes, %d obstacles)",
                    path.name, len(level["_notes"]), len(level["_obstacles"]))
        written.append(path)
        difficulties.append(d)

    if not difficulties:
        logger.warning("No difficulty has any notes; only %s is written", INFO_FILE)

    info_path = out_dir / INFO_FILE
    _write_json(info_path, build_info(song, difficulties, cover_image))
    written.append(info_path)
    return written


def _write_json(path: Path, document: dict[str, Any]) -> None:
    path.write_text(json.dumps(document), encoding="utf-8")
