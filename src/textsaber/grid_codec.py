"""Map notation characters to grid cells, colors and cut directions.

Two alphabets drive the notation:

- positions: 24 characters = 2 colors x 4 columns x 3 rows. For the
  character at index ``i``: color = i // 12, column = i % 4,
  row = (i // 4) % 3. The default maps the grid onto the left block of
  a QWERTY keyboard (ZXCV bottom row, QWER top row), upper case for red
  and lower case for blue.
- directions: 9 characters mirroring a numeric keypad, in the order
  Up, Down, Left, Right, UpLeft, UpRight, DownLeft, DownRight, Any.

Control characters (bomb marker, obstacle open/close) belong to neither
alphabet.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from textsaber.chart_nodes import (
    ALL_DIFFICULTIES, GRID_HEIGHT, GRID_WIDTH,
    CutDirection, NoteColor,
)
from textsaber.errors import SettingsError, UnrecognizedSymbol

POSITIONS_LENGTH = 2 * GRID_WIDTH * GRID_HEIGHT
DIRECTIONS_LENGTH = len(CutDirection)


class SymbolKind(Enum):
    POSITION = "position"
    DIRECTION = "direction"
    BOMB = "bomb"
    OBSTACLE_OPEN = "obstacle_open"
    OBSTACLE_CLOSE = "obstacle_close"


@dataclass
class ParserConfig:
    """Alphabets and policies used by the notation parser."""
    positions: str = "ZXCVASDFQWERzxcvasdfqwer"
    directions: str = "824679135"
    bomb: str = "*"
    obstacle_open: str = "["
    obstacle_close: str = "]"

    # Older charts rejected a position with no armed direction; newer
    # ones place a bomb there instead.
    strict_directions: bool = False

    # Difficulties every placed object belongs to
    default_difficulty_mask: int = ALL_DIFFICULTIES

    def validate(self) -> None:
        """Raise SettingsError if the alphabets cannot be decoded unambiguously."""
        if len(self.positions) != POSITIONS_LENGTH:
            raise SettingsError(
                f"positions alphabet needs {POSITIONS_LENGTH} characters, "
                f"got {len(self.positions)}"
            )
        if len(self.directions) != DIRECTIONS_LENGTH:
            raise SettingsError(
                f"directions alphabet needs {DIRECTIONS_LENGTH} characters, "
                f"got {len(self.directions)}"
            )
        controls = (self.bomb, self.obstacle_open, self.obstacle_close)
        for c in controls:
            if len(c) != 1:
                raise SettingsError(f"control character must be one character: {c!r}")
        every = self.positions + self.directions + "".join(controls)
        if len(set(every)) != len(every):
            dupes = sorted({c for c in every if every.count(c) > 1})
            raise SettingsError(f"characters used more than once: {''.join(dupes)!r}")
        if any(c.isspace() for c in every):
            raise SettingsError("whitespace cannot be a notation character")
        if not 0 <= self.default_difficulty_mask <= ALL_DIFFICULTIES:
            raise SettingsError(
                f"default_difficulty_mask out of range: {self.default_difficulty_mask}"
            )


def classify(c: str, config: ParserConfig, line_number: int | None = None) -> SymbolKind:
    """Tell which kind of notation symbol ``c`` is."""
    if c == config.bomb:
        return SymbolKind.BOMB
    if c == config.obstacle_open:
        return SymbolKind.OBSTACLE_OPEN
    if c == config.obstacle_close:
        return SymbolKind.OBSTACLE_CLOSE
    if c in config.directions:
        return SymbolKind.DIRECTION
    if c in config.positions:
        return SymbolKind.POSITION
    raise UnrecognizedSymbol(f"unexpected character {c!r}", line_number)


def decode_position(
    c: str, config: ParserConfig, line_number: int | None = None,
) -> tuple[NoteColor, int, int]:
    """Return (color, column, row) for a position character."""
    index = config.positions.find(c)
    if index < 0:
        raise UnrecognizedSymbol(f"{c!r} is not a position", line_number)
    color = NoteColor(index // (GRID_WIDTH * GRID_HEIGHT))
    return color, index % GRID_WIDTH, (index // GRID_WIDTH) % GRID_HEIGHT


def encode_position(color: NoteColor, x: int, y: int, config: ParserConfig) -> str:
    """Inverse of decode_position. Bombs have no color of their own and use red."""
    if not (0 <= x < GRID_WIDTH and 0 <= y < GRID_HEIGHT):
        raise ValueError(f"cell out of grid: ({x}, {y})")
    if color == NoteColor.BOMB:
        color = NoteColor.RED
    index = color * GRID_WIDTH * GRID_HEIGHT + y * GRID_WIDTH + x
    return config.positions[index]


def decode_direction(
    c: str, config: ParserConfig, line_number: int | None = None,
) -> CutDirection:
    index = config.directions.find(c)
    if index < 0:
        raise UnrecognizedSymbol(f"{c!r} is not a direction", line_number)
    return CutDirection(index)


def encode_direction(direction: CutDirection, config: ParserConfig) -> str:
    return config.directions[direction]
