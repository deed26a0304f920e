"""
Per-call download state: options and the attempt record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from tubemp3.exceptions import InputError

if TYPE_CHECKING:
    from pathlib import Path

# Accepted but informational: stream selection always takes the best bitrate.
QUALITY_HINTS = ("high", "medium", "low")


class Strategy(Enum):
    """How the audio bytes were obtained."""

    DIRECT = "direct"
    CIPHER = "cipher"
    DELEGATED = "delegated"


@dataclass(frozen=True)
class DownloadOptions:
    """Caller options for one download."""

    show_progress: bool = True
    filename: str | None = None
    quality: str | None = None

    @classmethod
    def from_kwargs(
        cls,
        *,
        show_progress: bool | None = None,
        quiet: bool | None = None,
        filename: str | None = None,
        quality: str | None = None,
    ) -> DownloadOptions:
        """Build options, accepting both showProgress- and quiet-style flags.

        ``quiet=True`` wins over ``show_progress=True``.
        """
        progress = True if show_progress is None else bool(show_progress)
        if quiet:
            progress = False

        if quality is not None:
            quality = quality.lower()
            if quality not in QUALITY_HINTS:
                raise InputError(
                    f"Unknown quality {quality!r}; expected one of {', '.join(QUALITY_HINTS)}"
                )

        return cls(
            show_progress=progress,
            filename=filename or None,
            quality=quality,
        )


@dataclass
class DownloadAttempt:
    """State threaded through acquisition for a single orchestrator call."""

    video_id: str
    source_url: str
    output_path: Path
    strategy: Strategy = Strategy.DIRECT
    stream_url: str | None = None
    quality: str | None = None
    show_progress: bool = True
    abandoned: list[str] = field(default_factory=list)

    def abandon(self, strategy: Strategy, reason: str | BaseException) -> None:
        """Record why a strategy was given up."""
        self.abandoned.append(f"{strategy.value}: {reason}")
