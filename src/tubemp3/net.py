"""
HTTP access for watch pages and direct audio URLs.

Both requests go through urllib. The watch-page GET lets urllib follow
redirects as usual; the audio GET follows at most one redirect hop itself.
"""

from __future__ import annotations

import contextlib
import logging
import urllib.error
import urllib.request
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from tubemp3.config.defaults import (
    ACCEPT,
    ACCEPT_LANGUAGE,
    DOWNLOAD_CHUNK_SIZE,
    HTTP_TIMEOUT,
    USER_AGENT,
)
from tubemp3.exceptions import NetworkError
from tubemp3.tools.progress import DownloadProgress

if TYPE_CHECKING:
    from pathlib import Path

    from tubemp3.tools.progress import ProgressCallback

logger = logging.getLogger(__name__)

REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})
MAX_REDIRECTS = 1

BROWSER_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept-Language": ACCEPT_LANGUAGE,
    "Accept": ACCEPT,
}


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Surface 3xx responses as HTTPError instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


def _build_opener(follow_redirects: bool = True) -> urllib.request.OpenerDirector:
    if follow_redirects:
        return urllib.request.build_opener()
    return urllib.request.build_opener(_NoRedirectHandler)


def fetch_text(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float = HTTP_TIMEOUT,
) -> str:
    """GET a URL and return the decoded body.

    Raises:
        NetworkError: On connection failure or an HTTP error status
    """
    request = urllib.request.Request(url, headers=headers or BROWSER_HEADERS)
    opener = _build_opener()
    try:
        with opener.open(request, timeout=timeout) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            body = response.read()
    except urllib.error.HTTPError as e:
        raise NetworkError(f"HTTP Error {e.code}: {e.reason}", url=url, http_code=e.code) from e
    except (urllib.error.URLError, OSError) as e:
        reason = getattr(e, "reason", e)
        raise NetworkError(str(reason), url=url) from e

    return body.decode(charset, errors="replace")


def _open_with_redirect(
    url: str,
    headers: dict[str, str],
    timeout: float,
):
    """Open ``url``, re-issuing the request once at a redirect's Location."""
    opener = _build_opener(follow_redirects=False)
    current = url
    for hop in range(MAX_REDIRECTS + 1):
        request = urllib.request.Request(current, headers=headers)
        try:
            return opener.open(request, timeout=timeout)
        except urllib.error.HTTPError as e:
            if e.code not in REDIRECT_CODES:
                raise NetworkError(
                    f"HTTP Error {e.code}: {e.reason}", url=current, http_code=e.code
                ) from e
            location = e.headers.get("Location")
            e.close()
            if not location:
                raise NetworkError(
                    f"Redirect {e.code} without Location header",
                    url=current,
                    http_code=e.code,
                ) from e
            if hop == MAX_REDIRECTS:
                raise NetworkError(
                    f"Too many redirects (limit {MAX_REDIRECTS})",
                    url=url,
                    http_code=e.code,
                ) from e
            current = urljoin(current, location)
            logger.debug(f"Following redirect {e.code} to {current}")
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise NetworkError(str(reason), url=current) from e

    raise NetworkError("Redirect handling ended without a response", url=url)


def download_file(
    url: str,
    output_path: Path,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = HTTP_TIMEOUT,
    on_progress: ProgressCallback | None = None,
) -> Path:
    """Stream a URL into ``output_path``, following at most one redirect.

    The destination is truncated first. On failure the caller owns cleanup
    of ``output_path`` (normally a scoped temporary artifact).

    Raises:
        NetworkError: On connection failure, HTTP error, redirect loop
            or an empty body
    """
    request_headers = {"User-Agent": USER_AGENT, **(headers or {})}
    downloaded = 0

    try:
        with _open_with_redirect(url, request_headers, timeout) as response:
            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            with open(output_path, "wb") as f:
                while True:
                    chunk = response.read(DOWNLOAD_CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
                    downloaded += len(chunk)
                    if on_progress:
                        # Don't let callback errors stop the download
                        with contextlib.suppress(Exception):
                            on_progress(
                                DownloadProgress.from_bytes(downloaded, total)
                            )
    except NetworkError:
        raise
    except OSError as e:
        raise NetworkError(f"Download interrupted: {e}", url=url) from e

    if downloaded == 0:
        raise NetworkError("Server returned an empty body", url=url)

    if on_progress:
        with contextlib.suppress(Exception):
            on_progress(
                DownloadProgress.from_bytes(
                    downloaded, total, filename=str(output_path), finished=True
                )
            )

    logger.debug(f"Downloaded {downloaded} bytes to {output_path}")
    return output_path
