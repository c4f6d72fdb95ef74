# allotment/integrations/fileio_progress.py
"""
File hashing/copying with byte-accurate progress. If a ``Progress`` node is
provided its internal max becomes the file size and every chunk advances it
by the bytes handled; otherwise we remain silent.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Optional

from ..node import Progress

CHUNK_SIZE = 1024 * 1024


def _prime(progress: Optional[Progress[Any, Any]], size: int) -> None:
    if progress is not None:
        # An empty file still needs a non-zero scale.
        progress.set_internal_max(max(1, size))


def hash_file(path: str | os.PathLike[str], progress: Optional[Progress[Any, Any]] = None) -> str:
    """
    Stream a file through SHA-256 and return the hex digest.
    Reports bytes read to *progress* if provided.
    """
    p = Path(path)
    _prime(progress, p.stat().st_size)

    h = hashlib.sha256()
    with p.open("rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            h.update(chunk)
            if progress is not None:
                progress.advance(len(chunk))
    return h.hexdigest()


def copy_file(
    src: str | os.PathLike[str],
    dst: str | os.PathLike[str],
    progress: Optional[Progress[Any, Any]] = None,
) -> Path:
    """
    Copy *src* to *dst* in 1 MiB chunks, reporting bytes written to *progress*.
    Writes are atomic (*.part -> final). Returns the destination path.
    """
    s = Path(src)
    d = Path(dst)
    d.parent.mkdir(parents=True, exist_ok=True)
    tmp = d.with_suffix(d.suffix + ".part")
    _prime(progress, s.stat().st_size)

    try:
        with s.open("rb") as fin, tmp.open("wb") as fout:
            for chunk in iter(lambda: fin.read(CHUNK_SIZE), b""):
                fout.write(chunk)
                if progress is not None:
                    progress.advance(len(chunk))
        os.replace(tmp, d)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return d
