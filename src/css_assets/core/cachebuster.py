"""
Cache-busting strategies.

The ``cachebuster`` option is turned into one of these policies once, when
the plugin is configured:

* ``None``/``False`` -> :class:`NoCacheBuster`
* ``True``           -> :class:`MtimeCacheBuster`
* a callable         -> :class:`CustomCacheBuster`
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .errors import ConfigurationError
from ..utils.file_manager import mtime_token


@dataclass(frozen=True)
class BustResult:
    pathname: str
    token: Optional[str] = None  # Query token to append, None for no change


class CacheBusterPolicy:
    def bust(self, file_path: str, pathname: str) -> BustResult:
        raise NotImplementedError


class NoCacheBuster(CacheBusterPolicy):
    def bust(self, file_path: str, pathname: str) -> BustResult:
        return BustResult(pathname)

    def __repr__(self) -> str:
        return "NoCacheBuster()"


class MtimeCacheBuster(CacheBusterPolicy):
    def bust(self, file_path: str, pathname: str) -> BustResult:
        return BustResult(pathname, mtime_token(file_path))

    def __repr__(self) -> str:
        return "MtimeCacheBuster()"


class CustomCacheBuster(CacheBusterPolicy):
    """
    Delegates to a user function ``(file_path, url_pathname)``.

    The function may return a query string, an object or mapping with
    ``pathname`` and/or ``query``, or a falsy value for no change.
    """

    def __init__(self, func: Callable[[str, str], object]):
        self.func = func
        self.logger = logging.getLogger(__name__)

    def bust(self, file_path: str, pathname: str) -> BustResult:
        result = self.func(file_path, pathname)
        if not result:
            return BustResult(pathname)
        if isinstance(result, str):
            return BustResult(pathname, result)

        new_pathname, query = self._fields(result)
        if new_pathname is None and query is None:
            raise ConfigurationError(
                f"cachebuster returned {type(result).__name__}; expected a string, "
                f"an object with 'pathname'/'query', or a falsy value")
        self.logger.debug(f"Custom cachebuster rewrote {pathname} -> {new_pathname or pathname}")
        return BustResult(new_pathname or pathname, query or None)

    def _fields(self, result) -> Tuple[Optional[str], Optional[str]]:
        if isinstance(result, Mapping):
            pathname, query = result.get('pathname'), result.get('query')
        else:
            pathname, query = getattr(result, 'pathname', None), getattr(result, 'query', None)
        for name, value in (('pathname', pathname), ('query', query)):
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(f"cachebuster {name} must be a string, got {type(value).__name__}")
        return pathname, query

    def __repr__(self) -> str:
        return f"CustomCacheBuster({self.func!r})"


def build_cachebuster(option) -> CacheBusterPolicy:
    """
    Turn the ``cachebuster`` option into a policy.

    Raises:
        ConfigurationError: For values that are not None, a bool or a callable
    """
    if option is None or option is False:
        return NoCacheBuster()
    if option is True:
        return MtimeCacheBuster()
    if callable(option):
        return CustomCacheBuster(option)
    raise ConfigurationError(
        f"cachebuster must be a boolean or a function, got {type(option).__name__}: {option!r}")
