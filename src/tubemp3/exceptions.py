"""
Custom exceptions for tubemp3.

All tubemp3 exceptions inherit from TubeMP3Error for easy catching.
"""

from __future__ import annotations

from typing import Any


class TubeMP3Error(Exception):
    """Base exception for all tubemp3 errors.

    Attributes:
        message: Human-readable error message
        category: Error classification (e.g., "network", "tool_execution")
        stderr: Captured diagnostic stream from an external tool, if any
        details: Additional diagnostic information
        suggestion: Recommended remediation steps
        stage: Pipeline stage the error surfaced from, set by the orchestrator
    """

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        stderr: str = "",
        details: dict[str, Any] | None = None,
        suggestion: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.stderr = stderr
        self.details = details or {}
        self.suggestion = suggestion
        self.stage: str | None = None

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage} failed: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a structured dict for reporting."""
        result: dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
            "category": self.category,
        }
        if self.stage:
            result["stage"] = self.stage
        if self.details:
            result["details"] = self.details
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class InputError(TubeMP3Error):
    """The input URL does not carry a recognizable video identifier."""

    def __init__(self, message: str, *, url: str | None = None):
        details = {"url": url} if url is not None else None
        super().__init__(
            message,
            category="input",
            details=details,
            suggestion="Pass a youtube.com/watch, youtu.be or embed URL.",
        )
        self.url = url


class ToolNotFoundError(TubeMP3Error):
    """Required external tool (ffmpeg, yt-dlp) not found."""

    def __init__(
        self,
        tool_name: str,
        message: str | None = None,
        *,
        suggestion: str = "",
    ):
        self.tool_name = tool_name
        msg = message or f"Required tool '{tool_name}' not found in PATH"
        super().__init__(
            msg,
            category="environment",
            details={"tool": tool_name},
            suggestion=suggestion,
        )


class NetworkError(TubeMP3Error):
    """Network-related error (connection issues, HTTP errors, redirects)."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        http_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if url:
            details["url"] = url
        if http_code:
            details["http_code"] = http_code

        super().__init__(
            message,
            category="network",
            details=details,
            suggestion="Check your internet connection and try again.",
        )
        self.url = url
        self.http_code = http_code


class ParseError(TubeMP3Error):
    """An embedded fragment of the watch page could not be decoded.

    Never fatal: the scraper records it and degrades to a default value.
    """

    def __init__(self, message: str, *, fragment: str | None = None):
        details = {"fragment": fragment} if fragment else None
        super().__init__(message, category="parse", details=details)
        self.fragment = fragment


class StreamUnavailableError(TubeMP3Error):
    """No usable audio-only stream among the scraped candidates."""

    def __init__(self, message: str, *, mime_types: list[str] | None = None):
        details = {"mime_types": mime_types} if mime_types else None
        super().__init__(message, category="stream_unavailable", details=details)
        self.mime_types = mime_types or []


class ToolExecutionError(TubeMP3Error):
    """External tool exited abnormally without recoverable output."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str,
        returncode: int | None = None,
        stderr: str = "",
        details: dict[str, Any] | None = None,
        suggestion: str = "",
    ):
        details = details or {}
        details["tool"] = tool_name
        if returncode is not None:
            details["returncode"] = returncode
        super().__init__(
            message,
            category="tool_execution",
            stderr=stderr,
            details=details,
            suggestion=suggestion,
        )
        self.tool_name = tool_name
        self.returncode = returncode
