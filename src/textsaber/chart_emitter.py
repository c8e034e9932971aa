"""Frames -> timed chart events.

Walks the parsed frames in order, applying each frame's directives to the
timing state and song settings, expanding procedures, and yielding copies
of the frame's notes and obstacles stamped with their time in beats.

Directives are applied in a fixed order, so a later directive on a line
sees the effect of an earlier one on the same line:

    set_time, bpm, intro_silence, audio_file, title, subtitle, author,
    audio_offset_ms, measure, offset, frame_offset, proc, proc_add, proc_ins

Procedures:
  ``proc=name[,length]`` (top level only) names ``length`` frames starting
  at the current one. ``proc_add=name`` replays them on a cloned timeline;
  the caller's position is unchanged afterwards. ``proc_ins=name`` replays
  them on the caller's own timeline, as if the frames were pasted in.
  Events from an expansion come before the current frame's own events.

Every frame advances the timeline by one tick (1 / measure beats), with or
without objects on it. Output is in emission order, not sorted by time.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import Enum

from textsaber.chart_nodes import ChartEvent, Frame
from textsaber.errors import (
    DuplicateProcedure, InvalidNumericLiteral, MalformedDirective,
    MissingTempo, RecursiveProcedure, UndefinedProcedure,
)
from textsaber.timeline import EmissionState, SongConfig


class Directive(Enum):
    """Known directive names, in the order they are applied."""
    SET_TIME = "set_time"
    BPM = "bpm"
    INTRO_SILENCE = "intro_silence"
    AUDIO_FILE = "audio_file"
    TITLE = "title"
    SUBTITLE = "subtitle"
    AUTHOR = "author"
    AUDIO_OFFSET_MS = "audio_offset_ms"
    MEASURE = "measure"
    OFFSET = "offset"
    FRAME_OFFSET = "frame_offset"
    PROC = "proc"
    PROC_ADD = "proc_add"
    PROC_INS = "proc_ins"


KNOWN_DIRECTIVES = frozenset(d.value for d in Directive)

RE_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
RE_INTEGER = re.compile(r"^[+-]?\d+$")

Procedures = dict[str, tuple[Frame, ...]]


@dataclass
class EmitWarning:
    """A diagnostic produced during emission. Never fatal."""
    category: str       # e.g. "unknown_directive"
    message: str
    line: int | None = None

    def __str__(self) -> str:
        loc = f"line {self.line} " if self.line is not None else ""
        return f"[{self.category}] {loc}{self.message}"


class ChartEmitter:
    """Turn parsed frames into timed notes and obstacles.

    One emitter serves one conversion run: it owns the SongConfig that
    directives write to and collects warnings across every expansion.
    """

    def __init__(self, song: SongConfig | None = None):
        self.song = song if song is not None else SongConfig()
        self.warnings: list[EmitWarning] = []
        self._warned: set[tuple[int | None, str]] = set()
        # Names of the procedures currently being expanded, outermost first
        self._expanding: list[str] = []

    def emit(
        self,
        frames: Iterable[Frame],
        state: EmissionState | None = None,
        procedures: Procedures | None = None,
    ) -> Iterator[ChartEvent]:
        """Lazily emit the events of ``frames``.

        Leaving out ``procedures`` makes this a top-level run: a fresh
        registry is created and ``proc`` definitions are honoured. Passing
        a registry marks a nested expansion, where definitions are ignored.
        """
        state = state if state is not None else EmissionState()
        allow_definitions = procedures is None
        if procedures is None:
            procedures = {}
        frame_list = tuple(frames)

        for i, frame in enumerate(frame_list):
            frame_offset = self._apply_directives(frame, state)

            if allow_definitions:
                self._define_procedure(frame, frame_list, i, procedures)

            name = frame.directives.get(Directive.PROC_ADD.value)
            if name is not None:
                yield from self.expand_isolated(name, state, procedures, frame)
            name = frame.directives.get(Directive.PROC_INS.value)
            if name is not None:
                yield from self.expand_linked(name, state, procedures, frame)

            frame_time = state.time + frame_offset * state.tick
            for note in frame.notes:
                yield replace(note, time=frame_time)
            for obstacle in frame.obstacles:
                yield replace(
                    obstacle, time=frame_time,
                    length=obstacle.length / state.measure,
                )

            state.time += state.tick

    # ------------------------------------------------------------------
    # Procedure expansion
    # ------------------------------------------------------------------

    def expand_isolated(
        self, name: str, state: EmissionState, procedures: Procedures,
        frame: Frame | None = None,
    ) -> Iterator[ChartEvent]:
        """Replay a procedure on its own timeline (``proc_add``).

        The procedure runs on a clone of ``state``; nothing it does to time,
        measure or tempo is seen by the caller.
        """
        return self._expand(name, state.clone(), procedures, frame)

    def expand_linked(
        self, name: str, state: EmissionState, procedures: Procedures,
        frame: Frame | None = None,
    ) -> Iterator[ChartEvent]:
        """Replay a procedure on the caller's timeline (``proc_ins``).

        ``state`` is the caller's own instance: time, measure and tempo
        changes made by the procedure remain after it returns.
        """
        return self._expand(name, state, procedures, frame)

    def _expand(
        self, name: str, state: EmissionState, procedures: Procedures,
        frame: Frame | None,
    ) -> Iterator[ChartEvent]:
        line = frame.line_number if frame is not None else None
        if name not in procedures:
            raise UndefinedProcedure(name, line)
        if name in self._expanding:
            raise RecursiveProcedure(self._expanding + [name])
        self._expanding.append(name)
        try:
            yield from self.emit(procedures[name], state, procedures)
        finally:
            self._expanding.pop()

    def _define_procedure(
        self, frame: Frame, frames: tuple[Frame, ...], index: int,
        procedures: Procedures,
    ) -> None:
        """Register ``proc=name[,length]`` as frames[index:index + length]."""
        args = frame.directives.get(Directive.PROC.value)
        if args is None:
            return
        tokens = args.split(",")
        name = tokens[0].strip()
        if not name:
            raise MalformedDirective(
                f"{Directive.PROC.value}={args!r} has no procedure name",
                frame.line_number,
            )
        length = 1
        if len(tokens) > 1:
            length_text = tokens[1].strip()
            if not RE_INTEGER.match(length_text) or int(length_text) < 1:
                raise InvalidNumericLiteral(
                    f"procedure length {length_text!r} is not a positive integer",
                    frame.line_number,
                )
            length = int(length_text)
        if name in procedures:
            raise DuplicateProcedure(name, frame.line_number)
        procedures[name] = frames[index:index + length]

    # ------------------------------------------------------------------
    # Directives
    # ------------------------------------------------------------------

    def _apply_directives(self, frame: Frame, state: EmissionState) -> float:
        """Apply timing and song directives. Returns the frame's own offset."""
        self._check_unknown(frame)
        song = self.song

        value = self._number(frame, Directive.SET_TIME)
        if value is not None:
            state.time = song.audio_delay + value

        value = self._number(frame, Directive.BPM)
        if value is not None:
            song.bpm = value
            state.current_bpm = value
            if math.isnan(state.initial_bpm):
                state.initial_bpm = value

        value = self._number(frame, Directive.INTRO_SILENCE)
        if value is not None:
            if not song.has_bpm:
                raise MissingTempo(
                    f"line {frame.line_number}: "
                    f"{Directive.INTRO_SILENCE.value} needs a bpm first"
                )
            state.time += song.bpm * value / 60
            song.audio_delay += value

        text = frame.directives.get(Directive.AUDIO_FILE.value)
        if text is not None:
            song.audio_file = text
        text = frame.directives.get(Directive.TITLE.value)
        if text is not None:
            song.title = text
        text = frame.directives.get(Directive.SUBTITLE.value)
        if text is not None:
            song.subtitle = text
        text = frame.directives.get(Directive.AUTHOR.value)
        if text is not None:
            song.author = text

        value = self._number(frame, Directive.AUDIO_OFFSET_MS)
        if value is not None:
            song.offset_ms = value

        value = self._number(frame, Directive.MEASURE)
        if value is not None:
            if not value > 0:
                raise InvalidNumericLiteral(
                    f"{Directive.MEASURE.value} must be positive, got {value:g}",
                    frame.line_number,
                )
            state.measure = value

        value = self._number(frame, Directive.OFFSET)
        if value is not None:
            state.time += value * state.tick

        frame_offset = 0.0
        value = self._number(frame, Directive.FRAME_OFFSET)
        if value is not None:
            frame_offset = value
        return frame_offset

    @staticmethod
    def _number(frame: Frame, directive: Directive) -> float | None:
        raw = frame.directives.get(directive.value)
        if raw is None:
            return None
        if not RE_NUMBER.match(raw):
            raise InvalidNumericLiteral(
                f"{directive.value}={raw!r} is not a number", frame.line_number
            )
        return float(raw)

    def _check_unknown(self, frame: Frame) -> None:
        for key in frame.directives:
            if key in KNOWN_DIRECTIVES:
                continue
            # Procedure bodies are walked again on every expansion
            if (frame.line_number, key) in self._warned:
                continue
            self._warned.add((frame.line_number, key))
            self.warnings.append(EmitWarning(
                "unknown_directive", f"ignoring directive {key!r}", frame.line_number,
            ))

    # ------------------------------------------------------------------
    # Warning reports
    # ------------------------------------------------------------------

    def warnings_summary(self) -> str:
        """Return a human-readable summary of all warnings."""
        if not self.warnings:
            return "No warnings."
        counts: Counter[str] = Counter(w.category for w in self.warnings)
        lines = [f"{len(self.warnings)} warning(s):"]
        for cat, n in counts.most_common():
            lines.append(f"  {cat}: {n}")
        return "\n".join(lines)

    def warnings_report(self) -> str:
        """Return a detailed listing of all warnings."""
        if not self.warnings:
            return "No warnings."
        lines = [f"=== {len(self.warnings)} warning(s) ==="]
        for w in self.warnings:
            lines.append(str(w))
        return "\n".join(lines)


def emit_events(
    frames: Iterable[Frame],
    song: SongConfig,
    state: EmissionState | None = None,
    procedures: Procedures | None = None,
) -> Iterator[ChartEvent]:
    """Convenience function: lazily emit events, writing settings into ``song``."""
    return ChartEmitter(song).emit(frames, state, procedures)


def emit_events_with_warnings(
    frames: Iterable[Frame], song: SongConfig,
) -> tuple[list[ChartEvent], list[EmitWarning]]:
    """Emit every event and return them with the collected warnings."""
    emitter = ChartEmitter(song)
    events = list(emitter.emit(frames))
    return events, emitter.warnings
