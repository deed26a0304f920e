"""
Audio acquisition as an explicit state machine.

    DIRECT ──────────────► DONE
      │ (any failure)        ▲
      ▼                      │
    DELEGATED_FALLBACK ──────┘
      ▲         │
      │         ▼
    CIPHER_FALLBACK       FAILED
      │
      └──► DIRECT (signature already usable)

Entry depends on the selected candidate: a direct URL starts at DIRECT, a
cipher payload at CIPHER_FALLBACK, and no candidate at DELEGATED_FALLBACK.
Every abandoned strategy leaves its reason on the attempt.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from tubemp3.config.defaults import HTTP_TIMEOUT
from tubemp3.exceptions import TubeMP3Error
from tubemp3.models.attempt import Strategy
from tubemp3.net import download_file
from tubemp3.tools.ffmpeg import FFmpegTool
from tubemp3.tools.yt_dlp import YtDlpTool
from tubemp3.utils.logging import log_progress
from tubemp3.utils.tempfiles import temporary_artifact

if TYPE_CHECKING:
    from pathlib import Path

    from tubemp3.models.attempt import DownloadAttempt
    from tubemp3.models.metadata import AudioStreamCandidate
    from tubemp3.tools.progress import ProgressCallback

logger = logging.getLogger(__name__)


class AcquisitionState(Enum):
    DIRECT = "direct"
    CIPHER_FALLBACK = "cipher_fallback"
    DELEGATED_FALLBACK = "delegated_fallback"
    DONE = "done"
    FAILED = "failed"


TRANSITIONS: dict[AcquisitionState, frozenset[AcquisitionState]] = {
    AcquisitionState.DIRECT: frozenset(
        {AcquisitionState.DONE, AcquisitionState.DELEGATED_FALLBACK}
    ),
    AcquisitionState.CIPHER_FALLBACK: frozenset(
        {AcquisitionState.DIRECT, AcquisitionState.DELEGATED_FALLBACK}
    ),
    AcquisitionState.DELEGATED_FALLBACK: frozenset(
        {AcquisitionState.DONE, AcquisitionState.FAILED}
    ),
    AcquisitionState.DONE: frozenset(),
    AcquisitionState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({AcquisitionState.DONE, AcquisitionState.FAILED})


def _first(params: dict[str, list[str]], *keys: str) -> str | None:
    for key in keys:
        values = params.get(key)
        if values and values[0]:
            return values[0]
    return None


def decode_cipher(payload: str) -> tuple[str | None, str]:
    """Recover a fetchable URL from a signatureCipher query string.

    Only signatures that are already plain (``sig``/``signature``) or absent
    are usable. An encrypted ``s`` value would need the player's decipher
    routine, which is left to the delegated downloader.

    Returns:
        (url, reason): url is None when the cipher cannot be used, and
        reason says why (or how the URL was built)
    """
    params = parse_qs(payload, keep_blank_values=False)
    base_url = _first(params, "url")
    if not base_url:
        return None, "cipher payload carries no url parameter"

    signature = _first(params, "sig", "signature")
    if signature is None and _first(params, "s"):
        return None, "signature is encrypted and would need deciphering"
    if signature is None:
        return base_url, "cipher url needs no signature"

    sig_param = _first(params, "sp") or "signature"
    parts = urlsplit(base_url)
    query = parse_qs(parts.query, keep_blank_values=True)
    query[sig_param] = [signature]
    url = urlunsplit(parts._replace(query=urlencode(query, doseq=True)))
    return url, f"plain signature attached as '{sig_param}'"


class AudioAcquirer:
    """Turns a selected stream (or none) into an MP3 at the attempt's path.

    Args:
        ffmpeg: Transcoder used after a direct download
        downloader: Delegated downloader used as the last resort
        http_timeout: Timeout for the direct audio GET
        on_progress: Optional callback for byte/percent updates
    """

    def __init__(
        self,
        ffmpeg: FFmpegTool | None = None,
        downloader: YtDlpTool | None = None,
        http_timeout: float = HTTP_TIMEOUT,
        on_progress: ProgressCallback | None = None,
    ):
        self.ffmpeg = ffmpeg or FFmpegTool()
        self.downloader = downloader or YtDlpTool()
        self.http_timeout = http_timeout
        self.on_progress = on_progress
        self.history: list[AcquisitionState] = []

    @staticmethod
    def initial_state(candidate: AudioStreamCandidate | None) -> AcquisitionState:
        if candidate is None:
            return AcquisitionState.DELEGATED_FALLBACK
        if candidate.url:
            return AcquisitionState.DIRECT
        if candidate.cipher_payload:
            return AcquisitionState.CIPHER_FALLBACK
        return AcquisitionState.DELEGATED_FALLBACK

    def _transition(
        self, current: AcquisitionState, target: AcquisitionState
    ) -> AcquisitionState:
        if target not in TRANSITIONS[current]:
            raise RuntimeError(
                f"Illegal acquisition transition {current.value} -> {target.value}"
            )
        logger.debug(f"Acquisition {current.value} -> {target.value}")
        self.history.append(target)
        return target

    def run(
        self,
        attempt: DownloadAttempt,
        candidate: AudioStreamCandidate | None = None,
    ) -> Path:
        """Drive the state machine until DONE or FAILED.

        Returns:
            Path to the MP3 (attempt.output_path)

        Raises:
            TubeMP3Error: The delegated downloader's error once every
                strategy is exhausted, with ``details["abandoned"]`` listing
                why each earlier strategy was left
        """
        state = self.initial_state(candidate)
        self.history = [state]
        if candidate is not None and candidate.url:
            attempt.stream_url = candidate.url

        while state not in TERMINAL_STATES:
            if state is AcquisitionState.DIRECT:
                target = self._direct(attempt, candidate)
            elif state is AcquisitionState.CIPHER_FALLBACK:
                target = self._cipher(attempt, candidate)
            else:
                try:
                    self._delegated(attempt)
                except TubeMP3Error as e:
                    self._transition(state, AcquisitionState.FAILED)
                    e.details["abandoned"] = list(attempt.abandoned)
                    for reason in attempt.abandoned:
                        logger.warning(f"Abandoned strategy {reason}")
                    raise
                target = AcquisitionState.DONE
            state = self._transition(state, target)

        return attempt.output_path

    def _direct(
        self,
        attempt: DownloadAttempt,
        candidate: AudioStreamCandidate | None,
    ) -> AcquisitionState:
        """Stream the audio to a temporary file, then transcode it."""
        if attempt.strategy is not Strategy.CIPHER:
            attempt.strategy = Strategy.DIRECT
        suffix = f".{candidate.container}" if candidate else ""
        output_dir = attempt.output_path.parent
        try:
            with temporary_artifact(output_dir, attempt.video_id, suffix) as temp_path:
                log_progress("Downloading audio stream...", attempt.show_progress)
                download_file(
                    attempt.stream_url,
                    temp_path,
                    timeout=self.http_timeout,
                    on_progress=self.on_progress,
                )
                log_progress("Converting to MP3...", attempt.show_progress)
                self.ffmpeg.transcode_to_mp3(temp_path, attempt.output_path)
        except (TubeMP3Error, OSError) as e:
            logger.warning(f"Direct download failed, falling back to downloader: {e}")
            attempt.abandon(attempt.strategy, e)
            return AcquisitionState.DELEGATED_FALLBACK
        return AcquisitionState.DONE

    def _cipher(
        self,
        attempt: DownloadAttempt,
        candidate: AudioStreamCandidate | None,
    ) -> AcquisitionState:
        attempt.strategy = Strategy.CIPHER
        payload = candidate.cipher_payload if candidate else None
        url, reason = decode_cipher(payload or "")
        if url is None:
            logger.info(f"Cipher stream not usable ({reason}); delegating")
            attempt.abandon(Strategy.CIPHER, reason)
            return AcquisitionState.DELEGATED_FALLBACK

        log_progress(
            "Using two-step process due to signature cipher", attempt.show_progress
        )
        logger.debug(f"Cipher decoded: {reason}")
        attempt.stream_url = url
        return AcquisitionState.DIRECT

    def _delegated(self, attempt: DownloadAttempt) -> Path:
        attempt.strategy = Strategy.DELEGATED
        log_progress(
            f"Downloading with {self.downloader.name} (delegated)...",
            attempt.show_progress,
        )
        return self.downloader.download_mp3(
            attempt.source_url,
            attempt.output_path,
            attempt.video_id,
            on_progress=self.on_progress,
        )
