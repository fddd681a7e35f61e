from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def write_file(path: str, contents: str, *, append: bool = False, mode: Optional[int] = None) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a" if append else "w", encoding="utf-8") as fh:
        fh.write(contents)
    if mode is not None:
        os.chmod(p, mode)
    logger.info("%s %s (%d bytes)", "Appended to" if append else "Wrote", str(p), len(contents))


def atomic_write_text(path: str, contents: str, *, mode: Optional[int] = None) -> None:
    """Replace a file so readers see either the old or the new contents, never a torn write.

    The temp file is created in the destination directory so os.replace() stays
    on one filesystem; both the file and the directory entry are fsynced.
    """

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(contents)
            fh.flush()
            os.fsync(fh.fileno())
        if mode is not None:
            os.chmod(tmp, mode)
        os.replace(tmp, p)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise

    dir_fd = os.open(str(p.parent), os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)
