"""
Watch-page scraping: fetch the HTML and recover metadata from it.

The page embeds several JSON blobs (player response, initial data, format
lists). Each is located by the extraction rules in order; a blob that fails
to decode is recorded and the next rule is tried, and a blob nobody could
decode becomes an empty default. Only the HTTP fetch itself can fail.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterable
from typing import Any

from tubemp3.config.defaults import HTTP_TIMEOUT, TITLE_SUFFIX
from tubemp3.exceptions import NetworkError, ParseError
from tubemp3.models.metadata import VideoMetadata, placeholder_title
from tubemp3.models.video_url import WATCH_URL_TEMPLATE
from tubemp3.net import BROWSER_HEADERS, fetch_text
from tubemp3.scraping.rules import (
    ADAPTIVE_FORMATS,
    DEFAULT_RULES,
    FORMATS,
    INITIAL_DATA,
    PLAYER_RESPONSE,
    ExtractionRule,
)

logger = logging.getLogger(__name__)

_TITLE_TAG = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)

WATCH_PAGE_HEADERS = dict(BROWSER_HEADERS)


def fetch_video_info(
    video_id: str,
    *,
    rules: Iterable[ExtractionRule] | None = None,
    timeout: float = HTTP_TIMEOUT,
) -> VideoMetadata:
    """Fetch a video's watch page and parse its metadata.

    Args:
        video_id: 11-character video identifier
        rules: Extra extraction rules, tried before the defaults
        timeout: HTTP timeout in seconds

    Returns:
        VideoMetadata (never fails because of page content)

    Raises:
        NetworkError: If the page cannot be fetched
    """
    url = WATCH_URL_TEMPLATE.format(video_id=video_id)
    logger.debug(f"Fetching watch page {url}")
    try:
        page = fetch_text(url, headers=WATCH_PAGE_HEADERS, timeout=timeout)
    except NetworkError as e:
        raise NetworkError(
            f"Failed to fetch video info: {e.message}",
            url=url,
            http_code=e.http_code,
        ) from e
    return parse_watch_page(page, video_id, rules=rules)


def _extract_target(
    page: str,
    target: str,
    rules: list[ExtractionRule],
    errors: list[ParseError],
) -> Any | None:
    """Return the first value any rule for ``target`` decodes."""
    for rule in rules:
        if rule.target != target:
            continue
        try:
            value = rule.apply(page)
        except ParseError as e:
            logger.warning(f"Could not parse {target} via rule {rule.name}: {e.message}")
            errors.append(e)
            continue
        if value is not None:
            logger.debug(f"Extracted {target} via rule {rule.name}")
            return value
    return None


def _title_from_tag(page: str) -> str | None:
    match = _TITLE_TAG.search(page)
    if not match:
        return None
    title = html.unescape(match.group(1)).strip()
    if title.endswith(TITLE_SUFFIX.strip()):
        title = title[: -len(TITLE_SUFFIX.strip())].rstrip(" -")
    return title.strip() or None


def parse_watch_page(
    page: str,
    video_id: str,
    rules: Iterable[ExtractionRule] | None = None,
) -> VideoMetadata:
    """Recover metadata from watch-page HTML.

    Args:
        page: Raw page HTML
        video_id: Identifier the page belongs to
        rules: Extra extraction rules, tried before the defaults

    Returns:
        VideoMetadata with a non-empty title; fragments that failed to
        decode are listed in ``parse_errors``
    """
    all_rules = [*(rules or ()), *DEFAULT_RULES]
    errors: list[ParseError] = []

    player_response = _extract_target(page, PLAYER_RESPONSE, all_rules, errors) or {}
    initial_data = _extract_target(page, INITIAL_DATA, all_rules, errors) or {}

    video_details = player_response.get("videoDetails")
    if not isinstance(video_details, dict):
        video_details = {}
    streaming_data = player_response.get("streamingData")
    streaming_data = dict(streaming_data) if isinstance(streaming_data, dict) else {}

    # Top-level arrays only fill gaps in the structured object
    if not isinstance(streaming_data.get("formats"), list):
        formats = _extract_target(page, FORMATS, all_rules, errors)
        if formats is not None:
            streaming_data["formats"] = formats
    if not isinstance(streaming_data.get("adaptiveFormats"), list):
        adaptive = _extract_target(page, ADAPTIVE_FORMATS, all_rules, errors)
        if adaptive is not None:
            streaming_data["adaptiveFormats"] = adaptive

    title = video_details.get("title")
    if not isinstance(title, str) or not title.strip():
        title = _title_from_tag(page) or placeholder_title(video_id)

    if errors:
        logger.debug(f"{len(errors)} fragment(s) of the page for {video_id} failed to parse")

    return VideoMetadata(
        video_id=video_id,
        title=title.strip(),
        video_details=video_details,
        streaming_data=streaming_data,
        initial_data=initial_data,
        parse_errors=errors,
    )
