"""
External tool wrappers for tubemp3.
"""

from tubemp3.tools.base import ExternalTool, ToolResult
from tubemp3.tools.ffmpeg import FFmpegTool
from tubemp3.tools.progress import (
    ConsoleProgressReporter,
    DownloadProgress,
    ProgressCallback,
    create_console_reporter,
)
from tubemp3.tools.yt_dlp import DownloaderError, YtDlpTool, parse_downloader_error

__all__ = [
    "ConsoleProgressReporter",
    "DownloadProgress",
    "DownloaderError",
    "ExternalTool",
    "FFmpegTool",
    "ProgressCallback",
    "ToolResult",
    "YtDlpTool",
    "create_console_reporter",
    "parse_downloader_error",
]
