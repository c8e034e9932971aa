"""Exceptions raised while converting TextSaber notation.

Every failure is fatal to the current run: callers re-run the conversion
from scratch after fixing the input.
"""

from __future__ import annotations


class TextSaberError(Exception):
    """Base class for every conversion failure."""


# --- Parse errors ---

class NotationError(TextSaberError):
    """A line of notation could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None):
        self.message = message
        self.line_number = line_number
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class MalformedDirective(NotationError):
    """A ``key=value`` segment has no ``=``."""


class UnrecognizedSymbol(NotationError):
    """A notation character is in neither alphabet nor the control set."""


class UnexpectedObstacleNesting(NotationError):
    """An obstacle was opened while another one was still open."""


class UnterminatedObstacle(NotationError):
    """An obstacle was still open at the end of its line."""


class PositionBeforeDirection(NotationError):
    """A position appeared with no armed direction (strict mode only)."""


class InvalidNumericLiteral(NotationError):
    """A value does not parse as the number it should be."""


class InvalidEncoding(NotationError):
    """The input file is not valid UTF-8."""


# --- Emission errors ---

class EmissionError(TextSaberError):
    """The frame sequence could not be turned into events."""


class UndefinedProcedure(EmissionError):
    def __init__(self, name: str, line_number: int | None = None):
        self.name = name
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}undefined procedure {name!r}")


class DuplicateProcedure(EmissionError):
    def __init__(self, name: str, line_number: int | None = None):
        self.name = name
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}procedure {name!r} is already defined")


class RecursiveProcedure(EmissionError):
    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__("procedure expands itself: " + " -> ".join(chain))


class MissingTempo(EmissionError):
    """A directive needs the tempo before any ``bpm`` was given."""


# --- Collaborator errors ---

class SettingsError(TextSaberError):
    """A parser settings file is unreadable or has bad values."""


class AudioProcessingError(TextSaberError):
    """The external audio tool is missing or failed."""
