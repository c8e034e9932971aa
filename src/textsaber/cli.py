"""CLI entry point for textsaber: notation text -> rhythm game level folder."""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path

from textsaber.audio import AudioProcessor
from textsaber.chart_emitter import ChartEmitter
from textsaber.chart_nodes import Note, Obstacle
from textsaber.errors import TextSaberError
from textsaber.grid_codec import ParserConfig
from textsaber.level_writer import COVER_FILE, write_level
from textsaber.midi_preview import write_midi_preview
from textsaber.notation.parser import parse_file
from textsaber.parser_settings import parse_settings_file, settings_to_dict
from textsaber.timeline import SongConfig


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="textsaber",
        description="Convert TextSaber notation into a level folder (info.json + difficulty files)",
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the notation file",
    )
    parser.add_argument(
        "output",
        nargs="?",
        help="Output directory for the level (created if missing)",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="JSON file overriding the notation alphabets and parser policies",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print the effective parser settings as JSON and exit",
    )
    parser.add_argument(
        "--ffmpeg",
        default=None,
        help="Path to the ffmpeg executable (default: ffmpeg on PATH)",
    )
    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Do not copy or transcode the song audio",
    )
    parser.add_argument(
        "--midi-preview",
        default=None,
        help="Also write a MIDI rendering of the chart to this path",
    )
    parser.add_argument(
        "--list-events",
        action="store_true",
        help="List all emitted events and exit without writing anything",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose output (debug logging, warning details)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Settings
    config = ParserConfig()
    if args.settings:
        try:
            config = parse_settings_file(args.settings)
        except (TextSaberError, OSError) as e:
            print(f"Error reading settings {args.settings}: {e}", file=sys.stderr)
            sys.exit(1)

    if args.print_settings:
        print(json.dumps(settings_to_dict(config), indent=2))
        return

    if args.input is None:
        parser.error("the following arguments are required: input")
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    # Parse and emit
    song = SongConfig()
    emitter = ChartEmitter(song)
    try:
        frames = parse_file(input_path, config)
        events = list(emitter.emit(frames))
    except TextSaberError as e:
        print(f"Error converting {input_path}: {e}", file=sys.stderr)
        sys.exit(1)

    if emitter.warnings:
        report = emitter.warnings_report() if args.verbose else emitter.warnings_summary()
        print(report, file=sys.stderr)

    # List events mode
    if args.list_events:
        _print_events(events)
        return

    if args.output is None:
        parser.error("the following arguments are required: output")
    out_dir = Path(args.output)

    try:
        out_dir.mkdir(parents=True, exist_ok=True)

        if not args.no_audio:
            with AudioProcessor(ffmpeg=args.ffmpeg) as processor:
                processor.process(song, out_dir, base_dir=input_path.parent)

        cover_image = None
        cover_src = input_path.with_suffix(".jpg")
        if cover_src.exists():
            shutil.copyfile(cover_src, out_dir / COVER_FILE)
            cover_image = COVER_FILE

        written = write_level(events, song, out_dir, cover_image)

        if args.midi_preview:
            written.append(write_midi_preview(
                events, args.midi_preview, bpm=song.bpm, title=song.title,
            ))
    except (TextSaberError, OSError) as e:
        print(f"Error writing {out_dir}: {e}", file=sys.stderr)
        sys.exit(1)

    for path in written:
        print(f"Written: {path}", file=sys.stderr)


def _print_events(events) -> None:
    """Print emitted events in emission order."""
    for e in events:
        if isinstance(e, Note):
            direction = e.cut_direction.name if e.cut_direction is not None else "-"
            print(f"{e.time:10.4f}  note      ({e.x},{e.y})  {e.color.name:<5} {direction}")
        elif isinstance(e, Obstacle):
            print(f"{e.time:10.4f}  obstacle  ({e.x1},{e.y1})-({e.x2},{e.y2})  "
                  f"{e.wall_type.name} len={e.length:g}")


if __name__ == "__main__":
    main()
