"""
Download orchestration: URL in, MP3 path out.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from tubemp3.config import get_config
from tubemp3.exceptions import (
    InputError,
    StreamUnavailableError,
    ToolNotFoundError,
    TubeMP3Error,
)
from tubemp3.models.attempt import DownloadAttempt, DownloadOptions, Strategy
from tubemp3.models.video_url import VideoURL
from tubemp3.operations.acquire import AudioAcquirer
from tubemp3.operations.select import select_audio_stream
from tubemp3.scraping import fetch_video_info
from tubemp3.tools.ffmpeg import FFmpegTool
from tubemp3.tools.progress import create_console_reporter
from tubemp3.tools.yt_dlp import YtDlpTool
from tubemp3.utils.filenames import output_stem
from tubemp3.utils.logging import log_progress, log_timed

logger = logging.getLogger(__name__)

# Stage labels, in pipeline order
STAGE_TOOL_CHECK = "tool check"
STAGE_URL_PARSING = "URL parsing"
STAGE_METADATA = "metadata fetch"
STAGE_OUTPUT_SETUP = "output setup"
STAGE_SELECTION = "stream selection"
STAGE_ACQUISITION = "audio acquisition"

# Singleton tool instances
_ffmpeg: FFmpegTool | None = None
_yt_dlp: YtDlpTool | None = None


def _get_ffmpeg() -> FFmpegTool:
    """Get or create ffmpeg tool instance."""
    global _ffmpeg
    if _ffmpeg is None:
        _ffmpeg = FFmpegTool()
    return _ffmpeg


def _get_yt_dlp() -> YtDlpTool:
    """Get or create yt-dlp tool instance."""
    global _yt_dlp
    if _yt_dlp is None:
        _yt_dlp = YtDlpTool()
    return _yt_dlp


def check_tools() -> None:
    """Verify the local transcoder is usable before any network work.

    The delegated downloader is looked up lazily, only if it is needed.

    Raises:
        ToolNotFoundError: If ffmpeg is missing or does not run
    """
    ffmpeg = _get_ffmpeg()
    if not ffmpeg.is_available():
        raise ToolNotFoundError(
            ffmpeg.name,
            "FFmpeg is not installed or not in PATH",
            suggestion=ffmpeg.install_hint,
        )


class _Stage:
    """Context manager that tags errors with the pipeline stage they left."""

    def __init__(self, name: str):
        self.name = name

    def __enter__(self) -> _Stage:
        logger.debug(f"Stage: {self.name}")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            return False
        if isinstance(exc, TubeMP3Error):
            if exc.stage is None:
                exc.stage = self.name
            return False
        if not isinstance(exc, Exception):
            # KeyboardInterrupt and friends pass through untouched
            return False
        wrapped = TubeMP3Error(str(exc) or exc.__class__.__name__)
        wrapped.stage = self.name
        raise wrapped from exc


def download_mp3(
    url: str,
    output_dir: str | Path | None = None,
    **options,
) -> Path:
    """Download a YouTube video's audio as an MP3.

    Args:
        url: Any supported YouTube URL shape
        output_dir: Destination directory (default: configured output_dir,
            else the current directory); created if missing
        **options: show_progress / quiet, filename, quality

    Returns:
        Absolute path to the MP3 file

    Raises:
        TubeMP3Error: (or a subclass) with ``stage`` set to the failing stage
    """
    try:
        opts = DownloadOptions.from_kwargs(**options)
    except TypeError as e:
        raise InputError(f"Unknown download option: {e}") from e

    config = get_config()
    show = opts.show_progress
    start = time.time()

    with _Stage(STAGE_TOOL_CHECK):
        check_tools()

    with _Stage(STAGE_URL_PARSING):
        log_progress(f"Processing YouTube URL: {url}", show)
        video_url = VideoURL.parse(url)
        log_progress(f"Extracted video ID: {video_url.video_id}", show)

    with _Stage(STAGE_METADATA):
        log_progress("Fetching video information...", show)
        metadata = fetch_video_info(
            video_url.video_id,
            rules=config.extra_rules,
            timeout=config.http_timeout,
        )
        log_progress(f"Video title: {metadata.title}", show)

    stem = output_stem(opts.filename, metadata.title, video_url.video_id)

    with _Stage(STAGE_OUTPUT_SETUP):
        target_dir = Path(output_dir) if output_dir else (config.output_dir or Path.cwd())
        target_dir = target_dir.expanduser().resolve()
        if not target_dir.exists():
            target_dir.mkdir(parents=True, exist_ok=True)
            log_progress(f"Created output directory: {target_dir}", show)
        mp3_path = target_dir / f"{stem}.mp3"
        log_progress(f"Output file: {mp3_path}", show)

    attempt = DownloadAttempt(
        video_id=video_url.video_id,
        source_url=video_url.watch_url,
        output_path=mp3_path,
        quality=opts.quality,
        show_progress=show,
    )
    if opts.quality:
        logger.debug(f"Quality hint {opts.quality!r} noted; best bitrate is always used")

    with _Stage(STAGE_SELECTION):
        try:
            candidate = select_audio_stream(metadata)
        except StreamUnavailableError as e:
            logger.info(f"No direct audio stream ({e.message}); using delegated download")
            attempt.abandon(Strategy.DIRECT, e.message)
            candidate = None

    with _Stage(STAGE_ACQUISITION):
        log_progress("Starting download and conversion process...", show)
        acquirer = AudioAcquirer(
            ffmpeg=_get_ffmpeg(),
            downloader=_get_yt_dlp(),
            http_timeout=config.http_timeout,
            on_progress=create_console_reporter(verbose=show),
        )
        result = acquirer.run(attempt, candidate)

    log_timed(f"Download and conversion complete! ({attempt.strategy.value})", start, show)
    return result.resolve()
