"""
tubemp3 - Save the audio of a YouTube video as an MP3.

1. Scrape the watch page for the title and audio streams
2. Download the best audio stream and transcode it with ffmpeg
3. Fall back to yt-dlp when the stream cannot be fetched directly
"""

from tubemp3.exceptions import (
    InputError,
    NetworkError,
    ParseError,
    StreamUnavailableError,
    ToolExecutionError,
    ToolNotFoundError,
    TubeMP3Error,
)
from tubemp3.models import VideoMetadata, VideoURL, extract_video_id
from tubemp3.operations import download_mp3, select_audio_stream
from tubemp3.scraping import fetch_video_info
from tubemp3.utils import sanitize_filename

__version__ = "0.1.0"

__all__ = [
    "InputError",
    "NetworkError",
    "ParseError",
    "StreamUnavailableError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "TubeMP3Error",
    "VideoMetadata",
    "VideoURL",
    "__version__",
    "download_mp3",
    "extract_video_id",
    "fetch_video_info",
    "sanitize_filename",
    "select_audio_stream",
]
