#!/usr/bin/env python3
"""
tubemp3 CLI - Save the audio of a YouTube video as an MP3.

Usage:
    tubemp3 "https://youtube.com/watch?v=VIDEO_ID"
    tubemp3 "https://youtu.be/VIDEO_ID" ~/Music
    tubemp3 -q --filename song.mp3 "https://youtube.com/watch?v=VIDEO_ID"
"""

import argparse
import logging
import sys
from pathlib import Path

from tubemp3 import __version__
from tubemp3.exceptions import TubeMP3Error
from tubemp3.models.attempt import QUALITY_HINTS
from tubemp3.operations.download import download_mp3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tubemp3",
        description="Download YouTube audio as MP3",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s "https://youtube.com/watch?v=VIDEO_ID"
    %(prog)s "https://youtu.be/VIDEO_ID" ~/Music
    %(prog)s -q -o downloads --filename song "https://youtube.com/watch?v=VIDEO_ID"
        """,
    )
    parser.add_argument("url", nargs="?", help="YouTube video URL")
    parser.add_argument(
        "output_dir", nargs="?", type=Path,
        help="Output directory (default: configured output_dir or cwd)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, dest="output_option",
        help="Output directory (same as the positional OUTPUT_DIR)",
    )
    parser.add_argument("--filename", help="Output file name (default: video title)")
    parser.add_argument(
        "--quality", choices=QUALITY_HINTS,
        help="Quality hint (the best available bitrate is used either way)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only print the result path"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )

    if not args.url:
        parser.print_usage(sys.stderr)
        print("Error: a YouTube URL is required", file=sys.stderr)
        sys.exit(1)

    output_dir = args.output_option or args.output_dir
    try:
        mp3_path = download_mp3(
            args.url,
            output_dir,
            quiet=args.quiet,
            filename=args.filename,
            quality=args.quality,
        )
    except TubeMP3Error as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.suggestion and not args.quiet:
            print(f"Hint: {e.suggestion}", file=sys.stderr)
        sys.exit(1)

    print(f"MP3 saved to: {mp3_path}")


if __name__ == "__main__":
    main()
