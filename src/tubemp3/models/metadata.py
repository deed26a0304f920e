"""
Scraped video metadata and audio stream candidates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tubemp3.exceptions import ParseError


def placeholder_title(video_id: str) -> str:
    """Title used when nothing better can be scraped."""
    return f"YouTube_Video_{video_id}"


def _parse_bitrate(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        bitrate = int(value)
    except (TypeError, ValueError):
        return None
    return bitrate if bitrate > 0 else None


def _parse_itag(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class AudioStreamCandidate:
    """One entry of the watch page's format lists."""

    mime_type: str
    bitrate: int | None = None
    url: str | None = None
    cipher_payload: str | None = None
    itag: int | None = None

    @classmethod
    def from_format(cls, fmt: dict[str, Any]) -> AudioStreamCandidate:
        """Build a candidate from a raw streamingData format dict."""
        mime_type = fmt.get("mimeType")
        return cls(
            mime_type=mime_type if isinstance(mime_type, str) else "",
            bitrate=_parse_bitrate(fmt.get("bitrate")),
            url=fmt.get("url") or None,
            cipher_payload=fmt.get("signatureCipher") or fmt.get("cipher") or None,
            itag=_parse_itag(fmt.get("itag")),
        )

    @property
    def is_audio_only(self) -> bool:
        return self.mime_type.strip().lower().startswith("audio/")

    @property
    def is_usable(self) -> bool:
        """A candidate needs a direct URL or a cipher payload to be fetched."""
        return bool(self.url or self.cipher_payload)

    @property
    def container(self) -> str:
        """File extension derived from the MIME type (e.g. "webm", "mp4")."""
        subtype = self.mime_type.split(";", 1)[0].partition("/")[2].strip().lower()
        return subtype or "bin"


@dataclass
class VideoMetadata:
    """Structured metadata recovered from one watch page.

    Attributes:
        video_id: Identifier the page was fetched for
        title: Best available title (never empty)
        video_details: The player response's videoDetails object
        streaming_data: The player response's streamingData object, with
            top-level format arrays merged in
        initial_data: The page's ytInitialData object
        parse_errors: Fragments that failed to decode, kept for diagnostics
    """

    video_id: str
    title: str
    video_details: dict[str, Any] = field(default_factory=dict)
    streaming_data: dict[str, Any] = field(default_factory=dict)
    initial_data: dict[str, Any] = field(default_factory=dict)
    parse_errors: list[ParseError] = field(default_factory=list)

    @property
    def formats(self) -> list[dict]:
        value = self.streaming_data.get("formats")
        return value if isinstance(value, list) else []

    @property
    def adaptive_formats(self) -> list[dict]:
        value = self.streaming_data.get("adaptiveFormats")
        return value if isinstance(value, list) else []

    def stream_formats(self) -> list[dict]:
        """Adaptive formats when present, otherwise the combined formats."""
        return self.adaptive_formats or self.formats

    def stream_candidates(self) -> list[AudioStreamCandidate]:
        return [
            AudioStreamCandidate.from_format(fmt)
            for fmt in self.stream_formats()
            if isinstance(fmt, dict)
        ]
