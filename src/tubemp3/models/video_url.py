"""
VideoURL Pydantic model for URL parsing and video ID extraction.
"""

from __future__ import annotations

import re
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tubemp3.exceptions import InputError

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

# Ordered URL shapes. Each captures the 11-character token as "video_id".
URL_PATTERNS: list[tuple[str, str]] = [
    (
        "watch",
        r"(?:youtube\.com|youtube-nocookie\.com)/watch/?\?(?:.*&)?v=(?P<video_id>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])",
    ),
    (
        "short",
        r"youtu\.be/(?P<video_id>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])",
    ),
    (
        "path",
        r"(?:youtube\.com|youtube-nocookie\.com)/(?:embed|v|e|shorts|live)/(?P<video_id>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])",
    ),
]


class VideoURL(BaseModel):
    """Parsed and validated video URL with its extracted identifier."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Original URL (normalized)")
    video_id: str = Field(..., description="11-character video identifier")
    shape: str | None = Field(None, description="Which URL shape matched")

    _compiled_patterns: ClassVar[list[tuple[str, re.Pattern]]] = [
        (name, re.compile(pattern, re.IGNORECASE)) for name, pattern in URL_PATTERNS
    ]

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, v: str) -> str:
        """Normalize URL - strip whitespace, ensure scheme."""
        if not isinstance(v, str):
            raise ValueError("URL must be a string")
        v = v.strip()
        if not v:
            raise ValueError("URL cannot be empty")
        if not v.startswith(("http://", "https://")):
            v = "https://" + v
        return v

    @model_validator(mode="before")
    @classmethod
    def extract_video_id(cls, data: dict) -> dict:
        """Fill video_id and shape from the URL."""
        url = str(data.get("url", ""))
        for name, pattern in cls._compiled_patterns:
            match = pattern.search(url)
            if match:
                return {**data, "video_id": match.group("video_id"), "shape": name}
        return data

    @classmethod
    def parse(cls, url: str) -> VideoURL:
        """Parse a URL and extract the video identifier.

        Args:
            url: Video URL string

        Returns:
            VideoURL with extracted video_id

        Raises:
            InputError: If no supported URL shape matches
        """
        try:
            return cls(url=url)
        except ValueError as e:
            raise InputError("Invalid YouTube URL", url=url) from e

    @classmethod
    def try_parse(cls, url: str) -> VideoURL | None:
        """Try to parse a URL, returning None on failure instead of raising."""
        try:
            return cls.parse(url)
        except InputError:
            return None

    @property
    def watch_url(self) -> str:
        """Canonical watch-page URL for this video."""
        return WATCH_URL_TEMPLATE.format(video_id=self.video_id)

    def __str__(self) -> str:
        return self.video_id


def extract_video_id(url: str) -> str:
    """Extract the 11-character video ID from a URL.

    Raises:
        InputError: If the URL has no supported shape
    """
    return VideoURL.parse(url).video_id
