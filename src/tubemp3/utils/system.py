"""
System utilities for finding executables.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path


def find_tool(name: str) -> str | None:
    """Find executable, checking venv first.

    Args:
        name: Tool name (e.g., "yt-dlp", "ffmpeg")

    Returns:
        Path to executable, or None if it is not installed
    """
    # Check venv bin directory first
    bin_dir = "Scripts" if sys.platform == "win32" else "bin"
    suffix = ".exe" if sys.platform == "win32" else ""
    venv = Path(sys.prefix) / bin_dir / f"{name}{suffix}"
    if venv.exists():
        return str(venv)

    # Fall back to system PATH
    return shutil.which(name)
