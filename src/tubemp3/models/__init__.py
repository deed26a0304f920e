"""
Data models for tubemp3.
"""

from tubemp3.models.attempt import DownloadAttempt, DownloadOptions, Strategy
from tubemp3.models.metadata import AudioStreamCandidate, VideoMetadata
from tubemp3.models.video_url import VideoURL, extract_video_id

__all__ = [
    "AudioStreamCandidate",
    "DownloadAttempt",
    "DownloadOptions",
    "Strategy",
    "VideoMetadata",
    "VideoURL",
    "extract_video_id",
]
