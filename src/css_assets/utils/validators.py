"""
Reference and URL Validation Utilities

This module provides the helpers used to classify, split and rewrite asset
references found in stylesheet values, and to validate the path options
given to the plugin.
"""

import posixpath
import re
from urllib.parse import quote, urlsplit, urlunsplit
from typing import List, Optional, Tuple
import logging

from ..core.errors import ConfigurationError


class URLValidator:
    """
    Classifies asset references as local paths or external URLs.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        # Scheme per RFC 3986; single letters are left out so that Windows
        # drive paths (C:/...) stay local
        self.scheme_pattern = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]+:')

    def is_absolute_url(self, reference: str) -> bool:
        """
        Check whether a reference points outside the file system.

        Args:
            reference: Reference as written in the stylesheet

        Returns:
            True for URLs with a scheme, protocol-relative URLs and data URIs
        """
        if not reference:
            return False
        if reference.startswith('//'):
            return True
        return bool(self.scheme_pattern.match(reference))


_validator_instance: Optional[URLValidator] = None


def get_validator() -> URLValidator:
    """Return the shared URLValidator instance."""
    global _validator_instance
    if _validator_instance is None:
        _validator_instance = URLValidator()
    return _validator_instance


def split_reference(reference: str) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Split a reference into (path, query, fragment).

    The query and fragment are returned without their leading '?' or '#',
    and are None when absent (an empty '?' gives an empty string).
    """
    fragment = None
    if '#' in reference:
        reference, fragment = reference.split('#', 1)
    query = None
    if '?' in reference:
        reference, query = reference.split('?', 1)
    return reference, query, fragment


def join_reference(pathname: str, query: Optional[str] = None, fragment: Optional[str] = None) -> str:
    """Reassemble a reference split by :func:`split_reference`."""
    out = pathname
    if query is not None:
        out += '?' + query
    if fragment is not None:
        out += '#' + fragment
    return out


def append_query(query: Optional[str], token: str) -> str:
    """Append a cache-busting token to an existing query string."""
    if query:
        return f"{query}&{token}"
    return token


def encode_pathname(pathname: str) -> str:
    """Percent-encode a file-system derived URL path, keeping separators."""
    return quote(pathname, safe="/:@!$&'()*+,;=~")


def join_base_url(base_url: str, relative_path: str) -> str:
    """
    Join a base URL and a path relative to the base path.

    Scheme and host of ``base_url`` are kept verbatim, e.g.
    ``http://example.com`` + ``alpha/a.png`` -> ``http://example.com/alpha/a.png``
    and ``/content/theme/`` + ``a.png`` -> ``/content/theme/a.png``.
    """
    parsed = urlsplit(base_url)
    path = parsed.path or '/'
    if not path.endswith('/'):
        path += '/'
    joined = posixpath.normpath(path + relative_path.lstrip('/'))
    if relative_path.endswith('/') and not joined.endswith('/'):
        joined += '/'
    return urlunsplit((parsed.scheme, parsed.netloc, joined, '', ''))


def unquote_css(value: str) -> str:
    """
    Remove surrounding quotes and CSS backslash escapes from an argument.

    ``'a b.png'``, ``"a b.png"`` and ``a\\ b.png`` all give ``a b.png``.
    """
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]
    return re.sub(r'\\(.)', r'\1', value)


def validate_path_list(value, option: str) -> List[str]:
    """
    Normalize a path option given as a string or a sequence of strings.

    Args:
        value: Option value
        option: Option name, used in error messages

    Returns:
        List of non-empty path strings

    Raises:
        ConfigurationError: If the value is neither a string nor a sequence of strings
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    try:
        paths = list(value)
    except TypeError:
        raise ConfigurationError(f"{option} must be a string or a list of strings, got {type(value).__name__}")
    for entry in paths:
        if not isinstance(entry, str) or not entry:
            raise ConfigurationError(f"{option} entries must be non-empty strings, got {entry!r}")
    return paths
