"""Render a chart as a MIDI file to audition its timing in a DAW.

Red notes, blue notes and bombs sound as three different pitches on their
own channels; walls hold a low note for their whole length. Drop the file
next to the song in any sequencer to hear whether the chart sits on the
beat.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from pathlib import Path

import mido

from textsaber.chart_nodes import ChartEvent, Note, NoteColor, Obstacle

DEFAULT_BPM = 120.0
TICKS_PER_BEAT = 480
VELOCITY = 100

# (channel, pitch) per kind of event
NOTE_VOICES = {
    NoteColor.RED: (0, 60),
    NoteColor.BLUE: (1, 67),
    NoteColor.BOMB: (9, 38),
}
WALL_VOICE = (2, 36)


def events_to_midi(
    events: Iterable[ChartEvent],
    bpm: float | None = None,
    title: str | None = None,
    ticks_per_beat: int = TICKS_PER_BEAT,
) -> mido.MidiFile:
    """Build a single-track MIDI file from emitted events.

    Events may come in any order; they are placed by their time in beats.
    Events before beat 0 are clamped to the start.
    """
    if bpm is None or math.isnan(bpm) or bpm <= 0:
        bpm = DEFAULT_BPM
    note_ticks = ticks_per_beat // 4

    # (absolute tick, order, message); note_off sorts before note_on
    timed: list[tuple[int, int, mido.Message]] = []
    for event in events:
        start = max(0, round(event.time * ticks_per_beat))
        if isinstance(event, Note):
            channel, pitch = NOTE_VOICES[event.color]
            end = start + note_ticks
        elif isinstance(event, Obstacle):
            channel, pitch = WALL_VOICE
            end = start + max(1, round(event.length * ticks_per_beat))
        else:
            continue
        timed.append((start, 1, mido.Message(
            "note_on", channel=channel, note=pitch, velocity=VELOCITY)))
        timed.append((end, 0, mido.Message(
            "note_off", channel=channel, note=pitch, velocity=0)))
    timed.sort(key=lambda item: (item[0], item[1]))

    track = mido.MidiTrack()
    track.append(mido.MetaMessage("track_name", name=title or "chart", time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))
    now = 0
    for tick, _order, msg in timed:
        track.append(msg.copy(time=tick - now))
        now = tick
    track.append(mido.MetaMessage("end_of_track", time=0))

    mid = mido.MidiFile(ticks_per_beat=ticks_per_beat)
    mid.tracks.append(track)
    return mid


def write_midi_preview(
    events: Iterable[ChartEvent], path: str | Path,
    bpm: float | None = None, title: str | None = None,
) -> Path:
    path = Path(path)
    events_to_midi(events, bpm=bpm, title=title).save(str(path))
    return path
