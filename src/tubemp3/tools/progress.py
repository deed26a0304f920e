"""
Progress data and console reporters for download operations.

Both acquisition paths report through the same callback type: the direct
HTTP download emits byte counts, and the delegated downloader emits the
JSON lines requested with --progress-template.
"""

from __future__ import annotations

import contextlib
import json
import sys
from dataclasses import dataclass
from typing import Protocol, TextIO


@dataclass
class DownloadProgress:
    """One progress update.

    Download status values: "downloading", "finished", "error"
    Postprocessor status values: "started", "processing", "finished"
    """

    status: str
    percent: float | None = None  # 0.0-100.0
    speed: str | None = None  # Human-readable speed, e.g., "1.5MiB/s"
    eta: str | None = None  # Human-readable ETA, e.g., "00:30"
    downloaded_bytes: int | None = None
    total_bytes: int | None = None
    filename: str | None = None
    postprocessor: str | None = None  # e.g. "FFmpegExtractAudio"

    @classmethod
    def from_bytes(
        cls,
        downloaded: int,
        total: int | None,
        filename: str | None = None,
        finished: bool = False,
    ) -> DownloadProgress:
        """Build a progress update from raw byte counters."""
        percent = None
        if total:
            percent = min(100.0, downloaded * 100.0 / total)
        return cls(
            status="finished" if finished else "downloading",
            percent=percent,
            downloaded_bytes=downloaded,
            total_bytes=total or None,
            filename=filename,
        )

    @classmethod
    def from_json_line(cls, line: str) -> DownloadProgress | None:
        """Parse a JSON progress line from yt-dlp --progress-template output.

        Args:
            line: A single line from yt-dlp stdout (may or may not be JSON)

        Returns:
            DownloadProgress if line is valid progress JSON, None otherwise
        """
        line = line.strip()
        if not line.startswith("{"):
            return None

        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            return None

        if not isinstance(data, dict) or "status" not in data:
            return None

        # Parse percent from string like "  5.0%" or "100%"
        percent = None
        if data.get("percent"):
            with contextlib.suppress(ValueError, AttributeError):
                percent = float(str(data["percent"]).strip().rstrip("%"))

        downloaded_bytes = None
        total_bytes = None
        with contextlib.suppress(ValueError, TypeError):
            downloaded_bytes = int(data.get("downloaded_bytes")) or None
        with contextlib.suppress(ValueError, TypeError):
            total_bytes = int(data.get("total_bytes")) or None

        postprocessor = data.get("postprocessor")
        return cls(
            status=str(data["status"]),
            percent=percent,
            speed=data.get("speed"),
            eta=data.get("eta"),
            downloaded_bytes=downloaded_bytes,
            total_bytes=total_bytes,
            filename=data.get("filename"),
            postprocessor=postprocessor if postprocessor not in ("", "NA") else None,
        )


class ProgressCallback(Protocol):
    """Protocol for progress callback functions."""

    def __call__(self, progress: DownloadProgress) -> None:
        """Called with progress updates during download."""
        ...


def _format_bytes(count: int) -> str:
    size = float(count)
    for unit in ("B", "KiB", "MiB"):
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}GiB"


class ConsoleProgressReporter:
    """Simple console progress reporter with optional bar display.

    Example usage:
        reporter = ConsoleProgressReporter()
        download_file(url, path, on_progress=reporter)
    """

    def __init__(
        self,
        output: TextIO | None = None,
        show_bar: bool = True,
        bar_width: int = 30,
        prefix: str = "",
    ) -> None:
        self.output = output or sys.stderr
        self.show_bar = show_bar
        self.bar_width = bar_width
        self.prefix = prefix
        self._last_line_len = 0

    def __call__(self, progress: DownloadProgress) -> None:
        """Handle progress update from download operation."""
        if progress.postprocessor:
            self._handle_postprocess(progress)
            return
        self._handle_download(progress)

    def _handle_download(self, progress: DownloadProgress) -> None:
        status = progress.status

        if status == "downloading":
            parts = [self.prefix] if self.prefix else []

            if self.show_bar and progress.percent is not None:
                filled = int(self.bar_width * progress.percent / 100)
                bar = "█" * filled + "░" * (self.bar_width - filled)
                parts.append(f"[{bar}]")
                parts.append(f"{progress.percent:5.1f}%")
            elif progress.downloaded_bytes:
                parts.append(_format_bytes(progress.downloaded_bytes))

            if progress.speed:
                speed = progress.speed.strip()
                if speed and speed != "N/A":
                    parts.append(f"@ {speed}")

            if progress.eta:
                eta = progress.eta.strip()
                if eta and eta != "N/A":
                    parts.append(f"ETA: {eta}")

            self._write_line(" ".join(parts), end="\r")

        elif status == "finished":
            self._clear_line()
            if progress.filename:
                filename = progress.filename.replace("\\", "/").split("/")[-1]
                self._write_line(f"{self.prefix}Downloaded: {filename}")
            else:
                self._write_line(f"{self.prefix}Download complete")

    def _handle_postprocess(self, progress: DownloadProgress) -> None:
        pp = progress.postprocessor or "Processing"
        friendly_name = {
            "FFmpegExtractAudio": "Extracting audio",
            "FFmpegMetadata": "Writing metadata",
        }.get(pp, pp)

        if progress.status in ("started", "processing"):
            self._write_line(f"{self.prefix}{friendly_name}...", end="\r")
        elif progress.status == "finished":
            self._clear_line()
            self._write_line(f"{self.prefix}{friendly_name}: done")

    def _write_line(self, text: str, end: str = "\n") -> None:
        """Write a line, tracking length for clearing."""
        self.output.write(text + end)
        self.output.flush()
        self._last_line_len = len(text)

    def _clear_line(self) -> None:
        if self._last_line_len > 0:
            self.output.write("\r" + " " * self._last_line_len + "\r")
            self.output.flush()
            self._last_line_len = 0


def create_console_reporter(
    verbose: bool = True,
    prefix: str = "",
) -> ConsoleProgressReporter | None:
    """Create a progress reporter, or None when progress output is off."""
    if verbose:
        return ConsoleProgressReporter(prefix=prefix)
    return None
