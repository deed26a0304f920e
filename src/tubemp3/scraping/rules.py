"""
Extraction rules for embedded JSON in watch pages.

A rule pairs a regex that finds where a JSON value starts with a decoder
that turns the text from that point into a Python value. Rules are plain
data: the scraper walks them in order per target, so supporting a new page
variant means adding a rule, not touching control flow.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from tubemp3.exceptions import ParseError

PLAYER_RESPONSE = "player_response"
INITIAL_DATA = "initial_data"
FORMATS = "formats"
ADAPTIVE_FORMATS = "adaptive_formats"

TARGETS = (PLAYER_RESPONSE, INITIAL_DATA, FORMATS, ADAPTIVE_FORMATS)

# Shape each target must decode to
_TARGET_TYPES: dict[str, type] = {
    PLAYER_RESPONSE: dict,
    INITIAL_DATA: dict,
    FORMATS: list,
    ADAPTIVE_FORMATS: list,
}

_decoder = json.JSONDecoder()

Decoder = Callable[[str, int], Any]


def decode_json_at(text: str, start: int) -> Any:
    """Decode the JSON value beginning at ``start``.

    Uses raw_decode so nested braces and brackets are balanced exactly,
    and trailing page script after the value is ignored.
    """
    try:
        value, _ = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON at offset {start}: {e.msg}") from e
    return value


def wrapping_decoder(key: str) -> Decoder:
    """Decoder that wraps the decoded fragment as ``{key: fragment}``."""

    def decode(text: str, start: int) -> dict:
        return {key: decode_json_at(text, start)}

    return decode


@dataclass(frozen=True)
class ExtractionRule:
    """One way of finding an embedded JSON value in a page.

    Attributes:
        name: Rule name for logs and diagnostics
        target: Which metadata fragment the rule produces (see TARGETS)
        pattern: Regex whose match ends right before the JSON value starts
        decoder: Callable(text, start) returning the decoded value
    """

    name: str
    target: str
    pattern: re.Pattern
    decoder: Decoder = field(default=decode_json_at, compare=False)

    def __post_init__(self) -> None:
        if self.target not in TARGETS:
            raise ValueError(f"Unknown extraction target: {self.target!r}")

    @classmethod
    def build(
        cls,
        name: str,
        target: str,
        pattern: str,
        wrap_key: str | None = None,
    ) -> ExtractionRule:
        """Build a rule from plain values, e.g. from a config file."""
        decoder = wrapping_decoder(wrap_key) if wrap_key else decode_json_at
        return cls(
            name=name,
            target=target,
            pattern=re.compile(pattern),
            decoder=decoder,
        )

    def apply(self, text: str) -> Any | None:
        """Run the rule against a page.

        Returns:
            The decoded value, or None when the pattern does not occur

        Raises:
            ParseError: If the pattern occurs but the value cannot be decoded
        """
        match = self.pattern.search(text)
        if not match:
            return None

        try:
            value = self.decoder(text, match.end())
        except ParseError as e:
            raise ParseError(f"{self.name}: {e.message}", fragment=self.target) from e

        expected = _TARGET_TYPES[self.target]
        if not isinstance(value, expected):
            raise ParseError(
                f"{self.name}: expected {expected.__name__}, got {type(value).__name__}",
                fragment=self.target,
            )
        return value


# Patterns end just before the opening brace/bracket so the decoder starts
# on the JSON value itself.
DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule.build(
        "player_response",
        PLAYER_RESPONSE,
        r"ytInitialPlayerResponse\s*=\s*(?=\{)",
    ),
    ExtractionRule.build(
        "player_response_var",
        PLAYER_RESPONSE,
        r"var\s+ytInitialPlayerResponse\s*=\s*(?=\{)",
    ),
    ExtractionRule.build(
        "player_response_window",
        PLAYER_RESPONSE,
        r"window\[\s*[\"']ytInitialPlayerResponse[\"']\s*\]\s*=\s*(?=\{)",
    ),
    ExtractionRule.build(
        "video_details",
        PLAYER_RESPONSE,
        r"\"videoDetails\"\s*:\s*(?=\{)",
        wrap_key="videoDetails",
    ),
    ExtractionRule.build(
        "initial_data",
        INITIAL_DATA,
        r"ytInitialData\s*=\s*(?=\{)",
    ),
    ExtractionRule.build(
        "initial_data_var",
        INITIAL_DATA,
        r"var\s+ytInitialData\s*=\s*(?=\{)",
    ),
    ExtractionRule.build(
        "initial_data_window",
        INITIAL_DATA,
        r"window\[\s*[\"']ytInitialData[\"']\s*\]\s*=\s*(?=\{)",
    ),
    ExtractionRule.build(
        "formats",
        FORMATS,
        r"\"formats\"\s*:\s*(?=\[)",
    ),
    ExtractionRule.build(
        "adaptive_formats",
        ADAPTIVE_FORMATS,
        r"\"adaptiveFormats\"\s*:\s*(?=\[)",
    ),
)
