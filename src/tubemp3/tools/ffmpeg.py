"""
FFmpeg tool wrapper for MP3 transcoding.
"""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from tubemp3.config import get_config
from tubemp3.config.defaults import MP3_BITRATE, MP3_SAMPLE_RATE, TOOL_CHECK_TIMEOUT
from tubemp3.exceptions import ToolExecutionError, ToolNotFoundError
from tubemp3.tools.base import ExternalTool, ToolResult
from tubemp3.utils.system import find_tool

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class FFmpegTool(ExternalTool):
    """Wrapper for the FFmpeg transcoder."""

    install_hint = (
        "Install ffmpeg (e.g. 'brew install ffmpeg' or 'apt install ffmpeg') "
        "or point TUBEMP3_FFMPEG at the executable."
    )

    @property
    def name(self) -> str:
        return "ffmpeg"

    def transcode_to_mp3(
        self,
        input_path: Path,
        output_path: Path,
        bitrate: str = MP3_BITRATE,
        sample_rate: int = MP3_SAMPLE_RATE,
    ) -> Path:
        """Convert any audio/video file to a constant-bitrate MP3.

        ffmpeg sometimes exits non-zero on stream quirks after writing a
        perfectly playable file, so a non-empty output counts as success.

        Args:
            input_path: Source media file
            output_path: MP3 destination (overwritten)
            bitrate: Audio bitrate (default "128k")
            sample_rate: Sample rate in Hz (default 44100)

        Returns:
            output_path

        Raises:
            ToolNotFoundError: If ffmpeg cannot be located
            ToolExecutionError: If no usable output was produced; any partial
                output is removed first
        """
        args = [
            "-y",  # Overwrite output
            "-i",
            str(input_path),
            "-vn",  # No video
            "-ab",
            bitrate,
            "-ar",
            str(sample_rate),
            "-f",
            "mp3",
            str(output_path),
        ]

        result = self._run(args, timeout=get_config().subprocess_timeout)
        produced = output_path.exists() and output_path.stat().st_size > 0

        if result.success and produced:
            return output_path

        if produced and result.error is None:
            logger.warning(
                f"ffmpeg exited with code {result.returncode} but wrote "
                f"{output_path.name}; keeping it"
            )
            return output_path

        # A failed or timed-out run can leave a truncated file behind
        output_path.unlink(missing_ok=True)

        if result.success:
            message = "ffmpeg reported success but produced no output"
        else:
            message = result.error or f"ffmpeg exited with code {result.returncode}"
        raise ToolExecutionError(
            f"Transcode failed: {message}",
            tool_name=self.name,
            returncode=result.returncode,
            stderr=result.stderr,
        )

    def is_available(self) -> bool:
        """Check if ffmpeg is installed."""
        path = self.get_path()
        if not path:
            return False
        try:
            result = subprocess.run(
                [path, "-version"],
                capture_output=True,
                timeout=TOOL_CHECK_TIMEOUT,
            )
            return result.returncode == 0
        except (OSError, subprocess.SubprocessError):
            return False

    def get_path(self) -> str | None:
        """Get path to ffmpeg executable, honoring the configured override."""
        configured = get_config().ffmpeg_path
        if configured:
            return find_tool(configured) or configured
        return find_tool("ffmpeg")

    def _run(
        self,
        args: list[str],
        timeout: int | None = None,
    ) -> ToolResult:
        """Run ffmpeg with given arguments."""
        cmd = [self.require_path()] + args
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
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
