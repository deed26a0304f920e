"""
Audio stream selection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tubemp3.exceptions import StreamUnavailableError
from tubemp3.models.metadata import AudioStreamCandidate, VideoMetadata

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def _as_candidates(
    source: VideoMetadata | Iterable[dict | AudioStreamCandidate],
) -> list[AudioStreamCandidate]:
    if isinstance(source, VideoMetadata):
        return source.stream_candidates()
    candidates = []
    for item in source:
        if isinstance(item, AudioStreamCandidate):
            candidates.append(item)
        elif isinstance(item, dict):
            candidates.append(AudioStreamCandidate.from_format(item))
    return candidates


def audio_candidates(
    source: VideoMetadata | Iterable[dict | AudioStreamCandidate],
) -> list[AudioStreamCandidate]:
    """Audio-only candidates that carry a URL or a cipher payload, in page order."""
    return [c for c in _as_candidates(source) if c.is_audio_only and c.is_usable]


def select_audio_stream(
    source: VideoMetadata | Iterable[dict | AudioStreamCandidate],
) -> AudioStreamCandidate:
    """Pick the highest-bitrate audio-only candidate.

    A missing or unparseable bitrate ranks below any real one. Ties go to
    the candidate listed first.

    Raises:
        StreamUnavailableError: If no audio-only usable candidate exists
    """
    all_candidates = _as_candidates(source)
    usable = [c for c in all_candidates if c.is_audio_only and c.is_usable]
    if not usable:
        mime_types = sorted({c.mime_type for c in all_candidates if c.mime_type})
        raise StreamUnavailableError(
            f"No audio-only stream among {len(all_candidates)} format(s)",
            mime_types=mime_types,
        )

    # max() returns the first maximal element, which keeps ties stable
    best = max(usable, key=lambda c: c.bitrate if c.bitrate is not None else -1)
    logger.debug(
        f"Selected itag={best.itag} {best.mime_type} bitrate={best.bitrate} "
        f"({'direct' if best.url else 'cipher'}) of {len(usable)} audio stream(s)"
    )
    return best
