"""
Atomic File Replacement

Write-temp-then-rename: the payload goes to a temporary file in the same
directory as the target, is flushed and fsynced, then ``os.replace`` swaps it
in. ``os.replace`` is atomic on POSIX and Windows when both paths share a
filesystem, so readers see either the old file or the new one.

If anything fails before the rename, the temporary file is removed and the
target is left exactly as it was.
"""

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, content: str, fsync: bool = True) -> None:
    """Write ``content`` to ``path`` atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_handle:
            tmp_handle.write(content)
            tmp_handle.flush()
            if fsync:
                os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
