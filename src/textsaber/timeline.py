"""Timing state threaded through emission, and the song-level settings
that directives accumulate along the way.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace


@dataclass
class EmissionState:
    """Running position on the timeline.

    One instance flows through a top-level emission run. ``proc_ins``
    hands the same instance to the procedure it expands; ``proc_add``
    hands it a ``clone()`` so the caller's timeline is left untouched.
    """
    time: float = 0.0           # beats
    measure: float = 1.0        # frames per beat, always > 0
    initial_bpm: float = math.nan
    current_bpm: float = math.nan

    @property
    def tick(self) -> float:
        """Length of one frame in beats."""
        return 1.0 / self.measure

    def clone(self) -> EmissionState:
        return replace(self)


@dataclass
class SongConfig:
    """Song metadata and audio timing set by directives.

    One instance per conversion, shared by every nested expansion so a
    directive inside a procedure still sets the song's metadata.
    """
    audio_file: str | None = None
    title: str | None = None
    subtitle: str | None = None
    author: str | None = None
    offset_ms: float = 0.0
    audio_delay: float = 0.0    # seconds of lead-in silence
    bpm: float = math.nan

    @property
    def has_bpm(self) -> bool:
        return not math.isnan(self.bpm)
