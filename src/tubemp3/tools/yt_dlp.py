"""
yt-dlp tool wrapper for delegated download and MP3 conversion.

Used when the audio cannot be fetched directly. The downloader is run with
an argument list (never through a generated script), and its output file
is taken as the result.
"""

from __future__ import annotations

import contextlib
import importlib.util
import logging
import os
import re
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tubemp3.config import get_config
from tubemp3.config.defaults import (
    DELEGATED_AUDIO_QUALITY,
    READER_JOIN_TIMEOUT,
    TOOL_CHECK_TIMEOUT,
)
from tubemp3.exceptions import ToolExecutionError, ToolNotFoundError
from tubemp3.tools.base import ExternalTool, ToolResult
from tubemp3.tools.progress import DownloadProgress
from tubemp3.utils.system import find_tool

if TYPE_CHECKING:
    from tubemp3.tools.progress import ProgressCallback

logger = logging.getLogger(__name__)

# Executables tried in order when no downloader is configured
DOWNLOADER_NAMES = ("yt-dlp", "youtube-dl")


@dataclass
class DownloaderError:
    """Structured error information parsed from downloader output.

    Attributes:
        category: Reason classification (e.g., "private", "geo_restricted")
        message: The main ERROR line, or the whole output if there is none
        details: Additional parsed details (HTTP codes, etc.)
        warnings: WARNING lines, deduplicated, in order
    """

    category: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


# Each tuple: (pattern, category). First match wins, so the specific
# access reasons come before the generic network ones.
_ERROR_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"private video|video is private", re.IGNORECASE), "private"),
    (
        re.compile(
            r"Sign in to confirm your age|age.restricted|inappropriate for some users",
            re.IGNORECASE,
        ),
        "age_restricted",
    ),
    (
        re.compile(
            r"available in your country|geo.?restrict|blocked in your country",
            re.IGNORECASE,
        ),
        "geo_restricted",
    ),
    (re.compile(r"HTTP Error 429|too many requests|rate.?limit", re.IGNORECASE), "rate_limited"),
    (
        re.compile(
            r"Video unavailable|This video is unavailable|has been removed|"
            r"removed by the uploader|Incomplete YouTube ID",
            re.IGNORECASE,
        ),
        "unavailable",
    ),
    (
        re.compile(
            r"Connection reset|Connection refused|timed out|Name or service not known|"
            r"Temporary failure in name resolution|Unable to download webpage|"
            r"HTTP Error \d+|SSL.*error",
            re.IGNORECASE,
        ),
        "network",
    ),
]

_SUGGESTIONS = {
    "private": "The video is private; it cannot be downloaded without access.",
    "age_restricted": "The video is age-restricted and requires a signed-in session.",
    "geo_restricted": "The video is blocked in your region.",
    "rate_limited": "The site is rate limiting requests; wait and try again.",
    "unavailable": "Check that the video still exists.",
    "network": "Check your internet connection and try again.",
    "unknown": "Try updating the downloader: pip install -U yt-dlp",
}

_ERROR_LINE = re.compile(r"ERROR:\s*(.+?)(?:\n|$)")
_WARNING_LINE = re.compile(r"WARNING:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_HTTP_CODE = re.compile(r"HTTP Error (\d+)", re.IGNORECASE)


def _extract_warnings(output: str) -> list[str]:
    warnings = []
    for match in _WARNING_LINE.finditer(output):
        text = match.group(1).strip()
        if text and text not in warnings:
            warnings.append(text)
    return warnings


def parse_downloader_error(output: str) -> DownloaderError:
    """Classify the output of a failed downloader run.

    Args:
        output: Combined stderr/stdout of the failed command

    Returns:
        DownloaderError with category, message, details, and warnings
    """
    error_match = _ERROR_LINE.search(output)
    message = error_match.group(1).strip() if error_match else output.strip()
    warnings = _extract_warnings(output)

    details: dict[str, Any] = {}
    code_match = _HTTP_CODE.search(output)
    if code_match:
        details["http_code"] = int(code_match.group(1))

    # Classify on the ERROR line when there is one so warnings don't mislead
    haystack = message if error_match else output
    for pattern, category in _ERROR_PATTERNS:
        if pattern.search(haystack):
            return DownloaderError(category, message or category, details, warnings)

    return DownloaderError("unknown", message or "no output", details, warnings)


class YtDlpTool(ExternalTool):
    """Wrapper for the yt-dlp (or youtube-dl) downloader."""

    install_hint = (
        "Install yt-dlp (pip install yt-dlp) or point TUBEMP3_DOWNLOADER at "
        "a yt-dlp or youtube-dl executable."
    )

    # JSON progress templates for structured output parsing.
    _PROGRESS_TEMPLATE_DOWNLOAD = (
        '{"status":"%(progress.status)s",'
        '"percent":"%(progress._percent_str)s",'
        '"speed":"%(progress._speed_str)s",'
        '"eta":"%(progress._eta_str)s",'
        '"downloaded_bytes":%(progress.downloaded_bytes|0)s,'
        '"total_bytes":%(progress.total_bytes|0)s,'
        '"filename":"%(info.filename)s"}'
    )
    _PROGRESS_TEMPLATE_POSTPROCESS = (
        '{"status":"%(progress.status)s",'
        '"postprocessor":"%(progress.postprocessor)s",'
        '"filename":"%(info.filename)s"}'
    )

    @property
    def name(self) -> str:
        return "yt-dlp"

    def get_command(self) -> list[str] | None:
        """Resolve the command prefix that launches the downloader.

        Order: configured path, yt-dlp, youtube-dl, then ``python -m yt_dlp``
        when the package is importable in this interpreter.
        """
        configured = get_config().downloader_path
        if configured:
            return [find_tool(configured) or configured]

        for name in DOWNLOADER_NAMES:
            path = find_tool(name)
            if path:
                return [path]

        if importlib.util.find_spec("yt_dlp") is not None:
            return [sys.executable, "-m", "yt_dlp"]
        return None

    def require_command(self) -> list[str]:
        command = self.get_command()
        if not command:
            raise ToolNotFoundError(self.name, suggestion=self.install_hint)
        return command

    def get_path(self) -> str | None:
        """Get path to the downloader executable (or interpreter)."""
        command = self.get_command()
        return command[0] if command else None

    def is_available(self) -> bool:
        """Check if a downloader can be launched."""
        command = self.get_command()
        if not command:
            return False
        try:
            result = subprocess.run(
                [*command, "--version"],
                capture_output=True,
                timeout=TOOL_CHECK_TIMEOUT,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    @staticmethod
    def _supports_progress_template(command: list[str]) -> bool:
        # youtube-dl has no --progress-template
        return "youtube-dl" not in Path(command[0]).name

    def _ffmpeg_args(self) -> list[str]:
        configured = get_config().ffmpeg_path
        if configured:
            return ["--ffmpeg-location", configured]
        return []

    def _subprocess_env(self) -> dict[str, str]:
        """Build env dict that keeps system tool directories on PATH.

        Inside a venv the inherited PATH can miss the directory ffmpeg lives
        in, which the downloader needs for audio extraction.
        """
        env = os.environ.copy()
        system_paths = ["/usr/local/bin", "/opt/homebrew/bin", "/usr/bin", "/bin"]
        current = env.get("PATH", "")
        for p in system_paths:
            if p not in current.split(os.pathsep):
                current = f"{current}{os.pathsep}{p}" if current else p
        env["PATH"] = current
        return env

    def _run(
        self,
        args: list[str],
        timeout: int | None = None,
    ) -> ToolResult:
        """Run the downloader with given arguments."""
        cmd = self.require_command() + args
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=self._subprocess_env(),
            )
            return ToolResult(
                success=result.returncode == 0,
                stdout=result.stdout,
                stderr=result.stderr,
                returncode=result.returncode,
            )
        except subprocess.TimeoutExpired:
            return ToolResult.from_error(f"Timeout after {timeout}s")
        except FileNotFoundError as e:
            raise ToolNotFoundError(self.name, suggestion=self.install_hint) from e
        except OSError as e:
            return ToolResult.from_error(str(e))

    def _run_with_progress(
        self,
        args: list[str],
        on_progress: ProgressCallback,
        timeout: int | None = None,
    ) -> ToolResult:
        """Run the downloader, forwarding --progress-template JSON lines.

        stderr is merged into stdout and read on a worker thread, so a
        chatty downloader cannot fill a pipe nobody drains, and the timeout
        bounds the whole run.

        Args:
            args: Command arguments (without the downloader executable)
            on_progress: Callback invoked with DownloadProgress for each update
            timeout: Seconds before the process is killed (None waits forever)

        Returns:
            ToolResult with success status and the non-progress output
        """
        command = self.require_command()
        if not self._supports_progress_template(command):
            return self._run(args, timeout=timeout)

        progress_args = [
            "--progress-template",
            f"download:{self._PROGRESS_TEMPLATE_DOWNLOAD}",
            "--progress-template",
            f"postprocess:{self._PROGRESS_TEMPLATE_POSTPROCESS}",
            "--newline",
        ]
        cmd = command + progress_args + args
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=self._subprocess_env(),
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(self.name, suggestion=self.install_hint) from e
        except OSError as e:
            return ToolResult.from_error(str(e))

        output_lines: list[str] = []

        def read_output() -> None:
            if not process.stdout:
                return
            for line in process.stdout:
                progress = DownloadProgress.from_json_line(line)
                if progress:
                    # Don't let callback errors stop the download
                    with contextlib.suppress(Exception):
                        on_progress(progress)
                else:
                    output_lines.append(line)

        reader = threading.Thread(target=read_output, daemon=True)
        reader.start()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
            reader.join(READER_JOIN_TIMEOUT)
            logger.warning(f"{self.name} killed after {timeout}s")
            return ToolResult.from_error(f"Timeout after {timeout}s")

        reader.join()
        return ToolResult(
            success=process.returncode == 0,
            stdout="".join(output_lines),
            returncode=process.returncode,
        )

    def download_mp3(
        self,
        url: str,
        output_path: Path,
        video_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Download and convert a video's audio to MP3 in one delegated run.

        Args:
            url: Canonical watch URL
            output_path: Desired MP3 path; the downloader writes
                ``<stem>.mp3`` next to it
            video_id: Used to recognize the output if the downloader named
                the file differently
            on_progress: Optional callback for progress updates

        Returns:
            Path of the MP3 file, moved to output_path when found elsewhere

        Raises:
            ToolNotFoundError: If no downloader can be located
            ToolExecutionError: If the run fails or produces no MP3
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        template = str(output_path.with_suffix("")) + ".%(ext)s"
        args = [
            *self._ffmpeg_args(),
            "-x",
            "--audio-format",
            "mp3",
            "--audio-quality",
            DELEGATED_AUDIO_QUALITY,
            "--no-playlist",
            "-o",
            template,
            url,
        ]

        timeout = get_config().subprocess_timeout
        if on_progress:
            result = self._run_with_progress(args, on_progress, timeout=timeout)
        else:
            result = self._run(args, timeout=timeout)

        if not result.success:
            parsed = parse_downloader_error(result.output)
            details = dict(parsed.details)
            details["reason"] = parsed.category
            if parsed.warnings:
                details["warnings"] = parsed.warnings
            raise ToolExecutionError(
                f"{self.name} failed ({parsed.category}): {parsed.message}",
                tool_name=self.name,
                returncode=result.returncode,
                stderr=result.output,
                details=details,
                suggestion=_SUGGESTIONS.get(parsed.category, ""),
            )

        produced = self._find_output(output_path, video_id)
        if produced is None:
            raise ToolExecutionError(
                f"{self.name} exited successfully but no MP3 was found in "
                f"{output_path.parent}",
                tool_name=self.name,
                returncode=result.returncode,
                stderr=result.output,
                details={"reason": "unknown"},
            )

        if produced != output_path:
            logger.info(f"Renaming {produced.name} to {output_path.name}")
            produced.replace(output_path)
        return output_path

    @staticmethod
    def _find_output(output_path: Path, video_id: str) -> Path | None:
        """Locate the downloader's MP3: the expected path, else one naming the id."""
        if output_path.exists():
            return output_path
        matches = sorted(
            p for p in output_path.parent.glob("*.mp3") if video_id in p.name
        )
        return matches[0] if matches else None
