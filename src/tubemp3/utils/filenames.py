"""
Filename sanitization for output files.
"""

from __future__ import annotations

import re

from tubemp3.models.metadata import placeholder_title

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(title: str, video_id: str) -> str:
    """Turn a video title into a safe file stem.

    Non-word characters are dropped and whitespace runs become a single
    underscore. Sanitizing an already sanitized stem returns it unchanged.
    A title with nothing left falls back to the video-id placeholder.
    """
    stem = _NON_WORD.sub("", title).strip()
    stem = _WHITESPACE.sub("_", stem)
    return stem or _NON_WORD.sub("", placeholder_title(video_id))


def output_stem(filename: str | None, title: str, video_id: str) -> str:
    """Pick the output stem from a caller override or the video title."""
    if filename:
        name = filename.strip()
        if name.lower().endswith(".mp3"):
            name = name[: -len(".mp3")]
        return sanitize_filename(name, video_id)
    return sanitize_filename(title, video_id)
