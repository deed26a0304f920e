"""
Utility functions for tubemp3.
"""

from tubemp3.utils.filenames import output_stem, sanitize_filename
from tubemp3.utils.logging import log_progress, log_timed
from tubemp3.utils.system import find_tool
from tubemp3.utils.tempfiles import temporary_artifact

__all__ = [
    "find_tool",
    "log_progress",
    "log_timed",
    "output_stem",
    "sanitize_filename",
    "temporary_artifact",
]
