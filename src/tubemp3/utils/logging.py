"""
Logging utilities.
"""

import logging
import time

logger = logging.getLogger("tubemp3")


def log_progress(msg: str, enabled: bool = True) -> None:
    """Log a user-facing progress message.

    Progress lines go out at INFO when enabled and drop to DEBUG otherwise,
    so quiet runs still leave a trace for debugging.
    """
    logger.log(logging.INFO if enabled else logging.DEBUG, msg)


def log_timed(msg: str, start_time: float | None = None, enabled: bool = True) -> None:
    """Log timestamped progress message.

    Args:
        msg: Message to log
        start_time: Start time from time.time(), or None for [START]
        enabled: Whether progress output is on
    """
    elapsed = f"[{time.time() - start_time:.1f}s]" if start_time else "[START]"
    log_progress(f"{elapsed} {msg}", enabled)
