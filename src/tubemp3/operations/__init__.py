"""
High-level download operations.
"""

from tubemp3.operations.acquire import AcquisitionState, AudioAcquirer, decode_cipher
from tubemp3.operations.download import check_tools, download_mp3
from tubemp3.operations.select import audio_candidates, select_audio_stream

__all__ = [
    "AcquisitionState",
    "AudioAcquirer",
    "audio_candidates",
    "check_tools",
    "decode_cipher",
    "download_mp3",
    "select_audio_stream",
]
