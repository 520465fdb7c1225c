"""
css-assets: asset resolution for stylesheet values

A stylesheet-processing plugin that resolves asset paths against base and
load paths, rewrites URLs, busts caches, inlines files as data URIs and
measures images, through functions written inside property values.
"""

__version__ = "2.0"
__author__ = "css-assets Project"
__description__ = "Asset resolution for stylesheet values"

from .core.assets import AssetPipeline
from .core.config import AssetsOptions, ResolverConfig, build_config
from .core.errors import (
    AssetNotFoundError,
    AssetsError,
    ConfigurationError,
    ImageCorruptedError,
    InvalidArgumentsError,
    UnsupportedMediaError,
)
from .core.evaluator import Handler, HandlerRegistry, map_functions, parse_calls
from .core.plugin import AssetsPlugin, TransformResult, create_plugin, transform_stylesheet
from .core.resolver import PathResolver, ResolutionCache, ResolvedAsset

__all__ = [
    "AssetNotFoundError",
    "AssetPipeline",
    "AssetsError",
    "AssetsOptions",
    "AssetsPlugin",
    "ConfigurationError",
    "Handler",
    "HandlerRegistry",
    "ImageCorruptedError",
    "InvalidArgumentsError",
    "PathResolver",
    "ResolutionCache",
    "ResolvedAsset",
    "ResolverConfig",
    "TransformResult",
    "UnsupportedMediaError",
    "build_config",
    "create_plugin",
    "map_functions",
    "parse_calls",
    "transform_stylesheet",
]
