"""Parser for TextSaber notation files.

Each input line becomes one Frame. A line has the form::

    <notation> ; key=value ; key=value ...

The notation segment is scanned one character at a time (whitespace is
ignored):

- a direction character arms a cut direction, which stays armed for every
  following position until another direction or the bomb marker
- a position character places a note at its cell using the armed
  direction; with nothing armed it places a bomb (or is an error when
  ``ParserConfig.strict_directions`` is set)
- the bomb marker disarms the direction, so the next position is a bomb
- ``[AB12]`` places a wall spanning cells A and B, 12 measure units long

Parsing is lazy: ``parse_lines`` and ``parse_text`` yield frames as they
go, so a caller can stop at the first frame it does not need.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from textsaber.chart_nodes import Frame, Note, Obstacle, NoteColor
from textsaber.errors import (
    InvalidEncoding, InvalidNumericLiteral, MalformedDirective,
    PositionBeforeDirection, UnexpectedObstacleNesting, UnrecognizedSymbol,
    UnterminatedObstacle,
)
from textsaber.grid_codec import (
    ParserConfig, SymbolKind, classify, decode_direction, decode_position,
)


# ---------- Separators ----------

SEGMENT_SEPARATOR = ";"
ASSIGNMENT = "="

RE_INTEGER = re.compile(r"^[+-]?\d+$")


def parse_file(path: str | Path, config: ParserConfig | None = None) -> list[Frame]:
    """Parse a UTF-8 notation file and return its frames."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        line_number = exc.object[:exc.start].count(b"\n") + 1
        raise InvalidEncoding(
            f"byte {exc.object[exc.start]:#04x} is not valid UTF-8", line_number
        ) from exc
    return list(parse_text(text, config))


def parse_text(text: str, config: ParserConfig | None = None) -> Iterator[Frame]:
    r"""Lazily parse notation text, one frame per line.

    Lines end at ``\n``, ``\r\n`` or ``\r`` only; other Unicode line
    boundaries are kept as part of the line.
    """
    return parse_lines(io.StringIO(text, newline=None), config)


def parse_lines(
    lines: Iterable[str], config: ParserConfig | None = None,
) -> Iterator[Frame]:
    """Lazily parse an iterable of notation lines.

    Line numbers in errors are 1-based. Trailing newlines are tolerated so
    an open file object can be passed directly.
    """
    config = config or ParserConfig()
    for line_number, line in enumerate(lines, 1):
        yield parse_line(line.rstrip("\r\n"), config, line_number)


def parse_line(
    line: str, config: ParserConfig | None = None, line_number: int | None = None,
) -> Frame:
    """Parse a single line into a Frame."""
    config = config or ParserConfig()
    segments = line.split(SEGMENT_SEPARATOR)
    directives = _parse_directives(segments[1:], line_number)
    notes, obstacles = _scan_notation(segments[0], config, line_number)
    return Frame(
        directives=directives,
        notes=tuple(notes),
        obstacles=tuple(obstacles),
        line_number=line_number,
    )


def _parse_directives(segments: list[str], line_number: int | None) -> dict[str, str]:
    """Parse ``key=value`` segments. The last assignment to a key wins."""
    directives: dict[str, str] = {}
    for segment in segments:
        key, sep, value = segment.partition(ASSIGNMENT)
        key = key.strip()
        if not sep:
            raise MalformedDirective(
                f"directive {segment.strip()!r} has no {ASSIGNMENT!r}", line_number
            )
        if not key:
            raise MalformedDirective(
                f"directive {segment.strip()!r} has no name", line_number
            )
        directives[key] = value.strip()
    return directives


def _scan_notation(
    text: str, config: ParserConfig, line_number: int | None,
) -> tuple[list[Note], list[Obstacle]]:
    """Scan the notation segment into placed notes and obstacles."""
    notes: list[Note] = []
    obstacles: list[Obstacle] = []
    direction = None
    obstacle_def: list[str] | None = None

    for c in text:
        if c.isspace():
            continue

        if obstacle_def is not None:
            if c == config.obstacle_open:
                raise UnexpectedObstacleNesting("already defining an obstacle", line_number)
            if c == config.obstacle_close:
                obstacles.append(_build_obstacle(obstacle_def, config, line_number))
                obstacle_def = None
            else:
                obstacle_def.append(c)
            continue

        kind = classify(c, config, line_number)

        if kind is SymbolKind.OBSTACLE_OPEN:
            obstacle_def = []
        elif kind is SymbolKind.OBSTACLE_CLOSE:
            raise UnrecognizedSymbol(
                f"{c!r} closes an obstacle that was never opened", line_number
            )
        elif kind is SymbolKind.BOMB:
            direction = None
        elif kind is SymbolKind.DIRECTION:
            direction = decode_direction(c, config, line_number)
        elif direction is None:
            if config.strict_directions:
                raise PositionBeforeDirection(
                    f"position {c!r} defined before direction", line_number
                )
            _color, x, y = decode_position(c, config, line_number)
            notes.append(Note(
                x=x, y=y, color=NoteColor.BOMB,
                difficulty_mask=config.default_difficulty_mask,
            ))
        else:
            color, x, y = decode_position(c, config, line_number)
            notes.append(Note(
                x=x, y=y, color=color, cut_direction=direction,
                difficulty_mask=config.default_difficulty_mask,
            ))

    if obstacle_def is not None:
        raise UnterminatedObstacle(
            f"obstacle {config.obstacle_open}{''.join(obstacle_def)} is never closed",
            line_number,
        )
    return notes, obstacles


def _build_obstacle(
    body: list[str], config: ParserConfig, line_number: int | None,
) -> Obstacle:
    """Build an obstacle from the characters between the brackets.

    The first two characters are the corner cells (their color is
    ignored), the rest is the integer length in measure units.
    """
    if len(body) < 2:
        raise UnrecognizedSymbol(
            f"obstacle {''.join(body)!r} needs two corner positions", line_number
        )
    _c1, x1, y1 = decode_position(body[0], config, line_number)
    _c2, x2, y2 = decode_position(body[1], config, line_number)
    length_text = "".join(body[2:])
    if not RE_INTEGER.match(length_text):
        raise InvalidNumericLiteral(
            f"obstacle length {length_text!r} is not an integer", line_number
        )
    return Obstacle(
        x1=x1, y1=y1, x2=x2, y2=y2,
        length=int(length_text),
        difficulty_mask=config.default_difficulty_mask,
    )
