"""
Plugin configuration.

``AssetsOptions`` mirrors the options a host passes to the plugin; it is
turned into an immutable ``ResolverConfig`` once per plugin instance.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from .cachebuster import CacheBusterPolicy, build_cachebuster
from .errors import ConfigurationError
from ..utils.file_manager import absolute_dir, unique_dirs
from ..utils.validators import validate_path_list


# Host-style option names accepted by AssetsOptions.from_mapping()
OPTION_ALIASES = {
    'basePath': 'base_path',
    'loadPaths': 'load_paths',
    'baseUrl': 'base_url',
    'relativeTo': 'relative_to',
    'inlineFallbackType': 'inline_fallback_type',
}


@dataclass
class AssetsOptions:
    base_path: Union[str, List[str], None] = None  # None = working directory
    load_paths: List[str] = field(default_factory=list)
    base_url: Optional[str] = None
    relative_to: Optional[str] = None
    cachebuster: Union[bool, Callable[[str, str], Any], None] = None
    cache: bool = True
    inline_fallback_type: Optional[str] = None
    functions: Optional[List[str]] = None  # None = every handler

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None, **kwargs) -> 'AssetsOptions':
        """
        Build options from a dict using either camelCase or snake_case keys.

        Raises:
            ConfigurationError: On unknown option names
        """
        merged = dict(options or {})
        merged.update(kwargs)
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in merged.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown option: {key}")
            values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class ResolverConfig:
    base_paths: Tuple[str, ...]
    load_paths: Tuple[str, ...]
    base_url: Optional[str]
    relative_to: Optional[str]
    cachebuster: CacheBusterPolicy
    cache: bool = True
    inline_fallback_type: Optional[str] = None

    @property
    def base_path(self) -> str:
        """Primary base path; output URLs are relative to it."""
        return self.base_paths[0]


def build_config(options: Union[AssetsOptions, Mapping[str, Any], None] = None) -> ResolverConfig:
    """
    Validate options and resolve every path to an absolute directory.

    Load paths are resolved against each base path, in order.
    """
    if options is None:
        options = AssetsOptions()
    elif not isinstance(options, AssetsOptions):
        options = AssetsOptions.from_mapping(options)

    cwd = os.getcwd()
    base_paths = unique_dirs(absolute_dir(p, cwd) for p in validate_path_list(options.base_path, 'basePath'))
    if not base_paths:
        base_paths = [cwd]

    load_paths = []
    for entry in validate_path_list(options.load_paths, 'loadPaths'):
        for base in base_paths:
            load_paths.append(absolute_dir(entry, base))

    if options.base_url is not None and not isinstance(options.base_url, str):
        raise ConfigurationError(f"baseUrl must be a string, got {type(options.base_url).__name__}")
    if options.relative_to is not None and not isinstance(options.relative_to, str):
        raise ConfigurationError(f"relativeTo must be a string, got {type(options.relative_to).__name__}")

    return ResolverConfig(
        base_paths=tuple(base_paths),
        load_paths=tuple(unique_dirs(load_paths)),
        base_url=options.base_url or None,
        relative_to=absolute_dir(options.relative_to, cwd) if options.relative_to else None,
        cachebuster=build_cachebuster(options.cachebuster),
        cache=bool(options.cache),
        inline_fallback_type=options.inline_fallback_type,
    )
