"""Scoped temporary files."""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def scoped_temp_file(suffix: str = ".txt", directory: Optional[str] = None) -> Iterator[Path]:
    """Create an empty, uniquely named file and remove it on exit.

    The file is removed however the block is left, including when it
    raises. A file already deleted inside the block is not an error.

    Args:
        suffix: File name suffix.
        directory: Where to create the file; the system temp dir by default.

    Yields:
        Path to the writable file.
    """
    fd, name = tempfile.mkstemp(suffix=suffix, prefix="gpg-indicator-", dir=directory)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("removed temp file %s", path)
