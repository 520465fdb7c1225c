"""
Plugin entry points for stylesheet hosts.

An ``AssetsPlugin`` is built once per configuration. It transforms single
property values, ``tinycss2`` declaration nodes, whole ``tinycss2`` rule
lists, CSS text, or batches of values processed concurrently.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

import tinycss2

from .assets import AssetPipeline
from .config import AssetsOptions, build_config
from .errors import ConfigurationError
from .evaluator import HandlerRegistry, function_names, map_functions
from .logger import create_error_tracker
from .resolver import ResolutionCache


# At-rules whose block holds rules rather than declarations
NESTED_RULE_AT_RULES = {'media', 'supports', 'document', '-moz-document', 'layer', 'container', 'scope', 'starting-style'}

# At-rules whose block holds declarations
DECLARATION_AT_RULES = {'font-face', 'page', 'counter-style', 'property', 'font-palette-values', 'viewport'}

INSIGNIFICANT = ('whitespace', 'comment')


def _descends_into(keyword: str) -> bool:
    """Whether the block of an at-rule is searched for declarations."""
    return keyword in NESTED_RULE_AT_RULES or keyword in DECLARATION_AT_RULES or keyword.endswith('keyframes')


def _significant(tokens: List[Any]) -> List[Any]:
    return [token for token in tokens if token.type not in INSIGNIFICANT]


@dataclass
class TransformResult:
    value: str
    output: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AssetsPlugin:
    def __init__(self, options: Union[AssetsOptions, Mapping[str, Any], None] = None, **kwargs):
        """
        Args:
            options: AssetsOptions, or a dict with camelCase/snake_case keys
            **kwargs: Extra options merged over ``options`` (dict form only)
        """
        if isinstance(options, AssetsOptions) and not kwargs:
            self.options = options
        else:
            if isinstance(options, AssetsOptions):
                raise ConfigurationError("Pass either AssetsOptions or keyword options, not both")
            self.options = AssetsOptions.from_mapping(options, **kwargs)

        self.config = build_config(self.options)
        self.cache = ResolutionCache()
        self.pipeline = AssetPipeline(self.config, self.cache)
        self.logger = logging.getLogger(__name__)
        self.error_tracker = create_error_tracker('plugin')

        available = self.pipeline.handlers()
        if self.options.functions is None:
            self.function_names = tuple(available)
        else:
            unknown = set(self.options.functions) - set(available)
            if unknown:
                raise ConfigurationError(f"Unknown functions: {', '.join(sorted(unknown))}")
            self.function_names = tuple(self.options.functions)
        self.handlers = available.restrict(self.function_names)

        self.logger.debug(f"Plugin configured: base paths {self.config.base_paths}, "
                          f"load paths {self.config.load_paths}, cachebuster {self.config.cachebuster!r}")

    def handlers_for(self, source: Optional[str] = None) -> HandlerRegistry:
        """Handler registry bound to a stylesheet path."""
        if source is None:
            return self.handlers
        return self.pipeline.for_source(source).handlers().restrict(self.function_names)

    def mentions_functions(self, value: str) -> bool:
        """Whether ``value`` calls an enabled function outside quoted strings."""
        if not any(f"{name}(" in value for name in self.function_names):
            return False
        return not function_names(value).isdisjoint(self.function_names)

    def transform_value(self, value: str, source: Optional[str] = None) -> str:
        """
        Reduce every asset function in a single property value.

        Args:
            value: Declaration value text
            source: Path of the stylesheet the value comes from, if known

        Returns:
            The transformed value
        """
        if not self.mentions_functions(value):
            return value
        return map_functions(value, self.handlers_for(source))

    __call__ = transform_value

    def transform_declaration(self, declaration, source: Optional[str] = None):
        """Transform a tinycss2 Declaration in place and return it."""
        text = tinycss2.serialize(declaration.value)
        output = self.transform_value(text, source)
        if output != text:
            declaration.value = tinycss2.parse_component_value_list(output)
        return declaration

    def transform_rules(self, nodes: List[Any], source: Optional[str] = None) -> List[Any]:
        """
        Transform every declaration in a tinycss2 rule list.

        Args:
            nodes: Result of ``tinycss2.parse_stylesheet`` or ``parse_rule_list``
            source: Path of the stylesheet, if known

        Returns:
            The node list, with parse errors removed
        """
        out = []
        for node in nodes:
            if node.type == 'error':
                # tinycss2 keeps no source text for these, so they cannot be written back
                self.error_tracker.log_warning(f"Dropping unparseable CSS: {node.message}",
                                               source=source)
                continue
            if node.type == 'qualified-rule':
                node.content = self._transform_block(node.content, source)
            elif node.type == 'at-rule' and node.content is not None and _descends_into(node.lower_at_keyword):
                node.content = self._transform_block(node.content, source)
            out.append(node)
        return out

    def _transform_block(self, tokens: List[Any], source: Optional[str]) -> List[Any]:
        """
        Transform the declarations in a list of component values.

        Works for a whole stylesheet, a rule body or an at-rule body, nested
        rules included. Tokens that are not part of a declaration value are
        returned as they came, so nothing the functions do not touch is
        reformatted or lost.
        """
        out: List[Any] = []
        segment: List[Any] = []
        for token in tokens:
            segment.append(token)
            if token.type == '{} block':
                out.extend(self._transform_nested(segment, source))
                segment = []
            elif token.type == 'literal' and token.value == ';':
                out.extend(self._transform_segment(segment, source))
                segment = []
        out.extend(self._transform_segment(segment, source))
        return out

    def _transform_nested(self, segment: List[Any], source: Optional[str]) -> List[Any]:
        block = segment[-1]
        head = _significant(segment[:-1])
        if head and head[0].type == 'at-keyword' and not _descends_into(head[0].lower_value):
            return segment
        block.content = self._transform_block(block.content, source)
        return segment

    def _transform_segment(self, segment: List[Any], source: Optional[str]) -> List[Any]:
        head = [i for i, token in enumerate(segment) if token.type not in INSIGNIFICANT]
        if len(head) < 2:
            return segment
        name, colon = segment[head[0]], segment[head[1]]
        if name.type != 'ident' or colon.type != 'literal' or colon.value != ':':
            return segment

        start = head[1] + 1
        end = len(segment)
        if segment[-1].type == 'literal' and segment[-1].value == ';':
            end -= 1
        text = tinycss2.serialize(segment[start:end])
        output = self.transform_value(text, source)
        if output == text:
            return segment
        return segment[:start] + tinycss2.parse_component_value_list(output) + segment[end:]

    def process(self, css: str, source: Optional[str] = None) -> str:
        """Transform a whole stylesheet, keeping everything else as written."""
        tokens = tinycss2.parse_component_value_list(css)
        return tinycss2.serialize(self._transform_block(tokens, source))

    def process_many(self, values: Iterable[str], source: Optional[str] = None,
                     max_workers: int = 4) -> List[TransformResult]:
        """
        Transform many values concurrently.

        A failing value does not affect the others; its exception is kept
        in the corresponding TransformResult.
        """
        values = list(values)
        results: List[Optional[TransformResult]] = [None] * len(values)
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as ex:
            futures = {ex.submit(self.transform_value, value, source): idx for idx, value in enumerate(values)}
            for fut in as_completed(futures):
                idx = futures[fut]
                try:
                    results[idx] = TransformResult(values[idx], output=fut.result())
                except Exception as e:
                    self.error_tracker.log_error(e, value=values[idx], source=source)
                    results[idx] = TransformResult(values[idx], error=e)
        return results


def create_plugin(options: Union[AssetsOptions, Mapping[str, Any], None] = None, **kwargs) -> AssetsPlugin:
    """Build a plugin; the result is callable on property values."""
    return AssetsPlugin(options, **kwargs)


def transform_stylesheet(nodes: List[Any], source: Optional[str] = None) -> List[Any]:
    """Transform a tinycss2 rule list with default options."""
    return AssetsPlugin().transform_rules(nodes, source)
