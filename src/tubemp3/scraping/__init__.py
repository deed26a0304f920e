"""
Watch-page scraping for tubemp3.
"""

from tubemp3.scraping.rules import DEFAULT_RULES, ExtractionRule
from tubemp3.scraping.watch_page import fetch_video_info, parse_watch_page

__all__ = [
    "DEFAULT_RULES",
    "ExtractionRule",
    "fetch_video_info",
    "parse_watch_page",
]
