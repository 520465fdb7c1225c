"""
Asset handlers for stylesheet values.

This module wires path resolution, cache-busting, base64 inlining and image
measurement into the functions available inside property values:

    resolve('img/logo.png')      -> url("img/logo.png")
    inline('img/logo.png')       -> url("data:image/png;base64,...")
    width('img/logo.png')        -> 200
    height('img/logo.png', 2)    -> 28.5
    size('img/logo.png')         -> 200px 57px
"""

from __future__ import annotations

import base64
import mimetypes
import logging
from typing import Optional

from .config import ResolverConfig
from .dimensions import format_number, image_size
from .errors import AssetNotFoundError, InvalidArgumentsError, UnsupportedMediaError
from .evaluator import Handler, HandlerRegistry
from .resolver import PathResolver, ResolutionCache, ResolvedAsset
from ..utils.file_manager import read_bytes
from ..utils.validators import append_query, join_reference, unquote_css


# Types some platforms' mime tables lack
for _mime, _ext in (('image/svg+xml', '.svg'), ('image/webp', '.webp'),
                    ('font/woff', '.woff'), ('font/woff2', '.woff2'),
                    ('image/avif', '.avif')):
    mimetypes.add_type(_mime, _ext)


def css_url(value: str) -> str:
    """Wrap a URL in ``url("...")``, escaping quotes and backslashes."""
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'url("{escaped}")'


class AssetPipeline:
    def __init__(self, config: ResolverConfig, cache: Optional[ResolutionCache] = None,
                 source: Optional[str] = None):
        """
        Args:
            config: Resolved plugin configuration
            cache: Resolution cache owned by the plugin instance
            source: Path of the stylesheet being processed, if known
        """
        self.config = config
        self.resolver = PathResolver(config, cache)
        self.source = source
        self.logger = logging.getLogger(__name__)

    def for_source(self, source: Optional[str]) -> 'AssetPipeline':
        """Pipeline sharing this one's cache, bound to another stylesheet."""
        return AssetPipeline(self.config, self.resolver.cache, source)

    def _resolve(self, reference: str) -> ResolvedAsset:
        return self.resolver.resolve(unquote_css(reference), self.source)

    def _local(self, reference: str) -> ResolvedAsset:
        asset = self._resolve(reference)
        if asset.is_external:
            raise AssetNotFoundError(asset.url)
        return asset

    def url(self, reference: str) -> str:
        """Resolved URL with cache-busting applied."""
        asset = self._resolve(reference)
        if asset.is_external:
            return asset.url
        busted = self.config.cachebuster.bust(asset.absolute_path, asset.url_pathname)
        query = asset.query
        if busted.token is not None:
            query = append_query(query, busted.token)
        return join_reference(busted.pathname, query, asset.fragment)

    def data(self, reference: str) -> str:
        """
        Return the asset as a base64 ``data:`` URI.

        Raises:
            AssetNotFoundError: If the file cannot be found or is external
            UnsupportedMediaError: If the extension has no known MIME type
                and no ``inline_fallback_type`` is configured
        """
        asset = self._local(reference)
        mime, _ = mimetypes.guess_type(asset.absolute_path)
        mime = mime or self.config.inline_fallback_type
        if not mime:
            raise UnsupportedMediaError(asset.absolute_path)
        b64 = base64.b64encode(read_bytes(asset.absolute_path)).decode('ascii')
        uri = f"data:{mime};base64,{b64}"
        if asset.fragment is not None:
            uri += '#' + asset.fragment
        return uri

    def dimensions(self, reference: str, density: Optional[str] = None):
        asset = self._local(reference)
        width, height = image_size(asset.absolute_path)
        if density is not None:
            ratio = self._density(density)
            width, height = width / ratio, height / ratio
        return width, height

    def _density(self, value: str) -> float:
        try:
            ratio = float(unquote_css(value))
        except ValueError:
            raise InvalidArgumentsError(f"density must be a positive number, got {value!r}")
        if ratio <= 0:
            raise InvalidArgumentsError(f"density must be a positive number, got {value!r}")
        return ratio

    # Handlers

    def resolve(self, reference: str) -> str:
        return css_url(self.url(reference))

    def inline(self, reference: str) -> str:
        return css_url(self.data(reference))

    def width(self, reference: str, density: Optional[str] = None) -> str:
        return format_number(self.dimensions(reference, density)[0])

    def height(self, reference: str, density: Optional[str] = None) -> str:
        return format_number(self.dimensions(reference, density)[1])

    def size(self, reference: str, density: Optional[str] = None) -> str:
        width, height = self.dimensions(reference, density)
        return f"{format_number(width)}px {format_number(height)}px"

    def handlers(self) -> HandlerRegistry:
        return HandlerRegistry({
            'resolve': Handler('resolve', self.resolve),
            'inline': Handler('inline', self.inline),
            'width': Handler('width', self.width, 1, 2),
            'height': Handler('height', self.height, 1, 2),
            'size': Handler('size', self.size, 1, 2),
        })
