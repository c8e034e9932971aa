"""Chart node definitions: parsed frames and the objects placed in them.

A Frame is one line of notation. Notes and obstacles carry no time until
the emitter stamps a copy of them; the parsed originals keep ``time=None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum


# --- Grid dimensions ---

GRID_WIDTH = 4
GRID_HEIGHT = 3


# --- Enums (ordinals match the level file encoding) ---

class NoteColor(IntEnum):
    RED = 0
    BLUE = 1
    BOMB = 2


class CutDirection(IntEnum):
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3
    UP_LEFT = 4
    UP_RIGHT = 5
    DOWN_LEFT = 6
    DOWN_RIGHT = 7
    ANY = 8


class Difficulty(IntEnum):
    EASY = 0
    NORMAL = 1
    HARD = 2
    EXPERT = 3
    EXPERT_PLUS = 4

    @property
    def bit(self) -> int:
        return 1 << self.value

    @property
    def file_stem(self) -> str:
        """Name used for the per-difficulty level file (e.g. ExpertPlus)."""
        return "".join(part.capitalize() for part in self.name.split("_"))


ALL_DIFFICULTIES = sum(d.bit for d in Difficulty)


class WallType(Enum):
    FULL_HEIGHT = 0
    TOP = 1     # hangs from the top row, player crouches under it


# Lowest row at which a wall no longer reaches the floor
TOP_WALL_ROW = 2


# --- Placed objects ---

@dataclass(frozen=True)
class Note:
    x: int                  # column 0-3
    y: int                  # row 0-2
    color: NoteColor
    cut_direction: CutDirection | None = None   # None only for bombs
    difficulty_mask: int = 0
    time: float | None = None   # beats, assigned at emission

    def in_difficulty(self, difficulty: Difficulty) -> bool:
        return bool(self.difficulty_mask & difficulty.bit)


@dataclass(frozen=True)
class Obstacle:
    x1: int
    y1: int
    x2: int
    y2: int
    length: float           # measure units when parsed, beats once emitted
    difficulty_mask: int = 0
    time: float | None = None

    @property
    def line_index(self) -> int:
        return min(self.x1, self.x2)

    @property
    def width(self) -> int:
        return abs(self.x2 - self.x1) + 1

    @property
    def wall_type(self) -> WallType:
        if min(self.y1, self.y2) >= TOP_WALL_ROW:
            return WallType.TOP
        return WallType.FULL_HEIGHT

    def in_difficulty(self, difficulty: Difficulty) -> bool:
        return bool(self.difficulty_mask & difficulty.bit)


ChartEvent = Note | Obstacle


# --- Frame ---

@dataclass(frozen=True)
class Frame:
    """One parsed input line."""
    directives: dict[str, str] = field(default_factory=dict)
    notes: tuple[Note, ...] = ()
    obstacles: tuple[Obstacle, ...] = ()
    line_number: int | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.directives or self.notes or self.obstacles)
