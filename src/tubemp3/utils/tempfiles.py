"""
Scoped temporary files tied to one download attempt.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def temporary_artifact(
    directory: Path,
    prefix: str,
    suffix: str = "",
) -> Iterator[Path]:
    """Allocate a uniquely named file and delete it when the scope exits.

    The file is created empty so the name is reserved; concurrent attempts
    for the same video get distinct names. Removal happens on every exit
    route, including exceptions.

    Args:
        directory: Directory to create the file in
        prefix: Name prefix, normally the video id
        suffix: Name suffix including the dot (e.g. ".webm")

    Yields:
        Path to the temporary file
    """
    directory.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix=f"{prefix}_", suffix=suffix, dir=directory)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {path}: {e}")
        else:
            logger.debug(f"Removed temporary file {path}")
