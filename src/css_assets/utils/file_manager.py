"""
File Access Utilities

This module wraps the file-system operations the asset pipeline needs:
readability checks, content reads, modification-time tokens and POSIX
relative paths for URLs.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional
import logging


logger = logging.getLogger(__name__)


def is_readable_file(path: str) -> bool:
    """
    Check that a path is a regular file the process can read.

    Args:
        path: Absolute path to test

    Returns:
        True if the file exists and is readable
    """
    return os.path.isfile(path) and os.access(path, os.R_OK)


def read_bytes(path: str) -> bytes:
    """Read a whole file as bytes."""
    with open(path, 'rb') as f:
        data = f.read()
    logger.debug(f"Read {len(data)} bytes: {path}")
    return data


def mtime_token(path: str) -> str:
    """
    Build a cache-busting token from a file's modification time.

    The token is the modification time in milliseconds, in hexadecimal.
    It is read from disk on every call.
    """
    mtime_ms = os.stat(path).st_mtime_ns // 1_000_000
    return format(mtime_ms, 'x')


def absolute_dir(path: str, base: Optional[str] = None) -> str:
    """
    Resolve a directory option to a normalized absolute path.

    ``alpha``, ``alpha/`` and ``./alpha`` all resolve to the same directory.

    Args:
        path: Directory as configured
        base: Directory that relative paths are resolved against (CWD if None)
    """
    if not os.path.isabs(path):
        path = os.path.join(base or os.getcwd(), path)
    return os.path.normpath(os.path.abspath(path))


def unique_dirs(dirs: Iterable[str]) -> List[str]:
    """De-duplicate directories keeping the first occurrence."""
    return list(dict.fromkeys(dirs))


def posix_relpath(path: str, start: str) -> str:
    """Relative path from ``start`` to ``path`` with '/' separators."""
    return Path(os.path.relpath(path, start)).as_posix()
