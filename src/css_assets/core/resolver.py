"""
Asset path resolution.

Finds the file a stylesheet reference points to by searching, in order, the
``relativeTo`` directory, the source file's directory, the base paths and the
load paths, then computes the URL to write back into the stylesheet.
"""

from __future__ import annotations

import os
import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import ResolverConfig
from .errors import AssetNotFoundError
from ..utils.file_manager import is_readable_file, posix_relpath, unique_dirs
from ..utils.validators import (
    encode_pathname,
    get_validator,
    join_base_url,
    join_reference,
    split_reference,
)


@dataclass(frozen=True)
class ResolvedAsset:
    absolute_path: Optional[str]   # None for external URLs
    url_pathname: str
    query: Optional[str] = None    # Without the leading '?'
    fragment: Optional[str] = None  # Without the leading '#'

    @property
    def is_external(self) -> bool:
        return self.absolute_path is None

    @property
    def url(self) -> str:
        return join_reference(self.url_pathname, self.query, self.fragment)


CacheKey = Tuple[str, Optional[str], Tuple[str, ...], Tuple[str, ...]]


class ResolutionCache:
    """
    Memo table of path lookups, shared by every resolution of one plugin.

    Only (absolute path, URL pathname) pairs are stored; modification times
    are never cached.
    """

    def __init__(self):
        self._entries: Dict[CacheKey, Tuple[str, str]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Optional[Tuple[str, str]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
            else:
                self.hits += 1
            return entry

    def put(self, key: CacheKey, value: Tuple[str, str]) -> None:
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class PathResolver:
    def __init__(self, config: ResolverConfig, cache: Optional[ResolutionCache] = None):
        self.config = config
        self.cache = cache if config.cache else None
        self.validator = get_validator()
        self.logger = logging.getLogger(__name__)

    def resolve(self, reference: str, source: Optional[str] = None) -> ResolvedAsset:
        """
        Resolve a reference to a file on disk and its output URL.

        Args:
            reference: Unquoted reference, possibly with query and fragment
            source: Path of the stylesheet the reference appears in, if known

        Returns:
            ResolvedAsset for the first matching candidate

        Raises:
            AssetNotFoundError: If no candidate file exists or is readable
        """
        # Covers same-origin references too: anything carrying a host has a scheme or '//'
        if self.validator.is_absolute_url(reference):
            path, query, fragment = split_reference(reference)
            return ResolvedAsset(None, path, query, fragment)

        path, query, fragment = split_reference(reference)
        if not path:
            raise AssetNotFoundError(reference)

        source_dir = os.path.dirname(os.path.abspath(source)) if source else None
        key = (path, source_dir, self.config.base_paths, self.config.load_paths)

        entry = self.cache.get(key) if self.cache is not None else None
        if entry is None:
            entry = self._lookup(reference, path, source_dir)
            if self.cache is not None:
                self.cache.put(key, entry)
        else:
            self.logger.debug(f"Cache hit: {path}")

        absolute_path, url_pathname = entry
        return ResolvedAsset(absolute_path, url_pathname, query, fragment)

    def candidates(self, path: str, source_dir: Optional[str] = None) -> List[str]:
        """Ordered, de-duplicated directories searched for ``path``."""
        if path.startswith('/'):
            # Root-relative references live under the base paths
            return list(self.config.base_paths)

        dirs: List[str] = []
        if self.config.relative_to and source_dir:
            dirs.append(self.config.relative_to)
        if source_dir:
            dirs.append(source_dir)
        dirs.extend(self.config.base_paths)
        dirs.extend(self.config.load_paths)
        return unique_dirs(dirs)

    def _lookup(self, reference: str, path: str, source_dir: Optional[str]) -> Tuple[str, str]:
        searched = self.candidates(path, source_dir)
        relative = path.lstrip('/')
        for directory in searched:
            candidate = os.path.normpath(os.path.join(directory, relative))
            if is_readable_file(candidate):
                url_pathname = self.url_for(candidate)
                self.logger.debug(f"Resolved {reference} -> {candidate} ({url_pathname})")
                return candidate, url_pathname

        self.logger.debug(f"Asset not found: {reference} (searched {len(searched)} directories)")
        raise AssetNotFoundError(reference, searched)

    def url_for(self, absolute_path: str) -> str:
        """
        Compute the URL pathname written for a resolved file.

        relativeTo wins over baseUrl; without either, the path relative to the
        first base path is used as a relative reference. This is deliberate
        for files found through a load path or the stylesheet's directory as
        well: ``kateryna.jpg`` found under load path ``alpha`` is written as
        ``alpha/kateryna.jpg``, so the URL is the same whichever directory
        matched.
        """
        if self.config.relative_to:
            pathname = posix_relpath(absolute_path, self.config.relative_to)
            return encode_pathname(pathname)

        pathname = encode_pathname(posix_relpath(absolute_path, self.config.base_path))
        if self.config.base_url:
            return join_base_url(self.config.base_url, pathname)
        return pathname
