"""
Function-call evaluator for stylesheet property values.

Parses nested calls such as ``double(increase(100px))`` into a small tree and
reduces it innermost first, left to right, using a registry that maps
function names to handlers. Calls whose name is not registered are written
back verbatim (after their own arguments have been reduced).
"""

from __future__ import annotations

import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional, Set, Union

from .errors import InvalidArgumentsError


IDENT_START = frozenset(string.ascii_letters + '_-')
IDENT_CHARS = IDENT_START | frozenset(string.digits)
QUOTES = ('"', "'")

# Deepest call/group nesting accepted in a single value
MAX_NESTING = 100


@dataclass
class Text:
    value: str


@dataclass
class Call:
    name: str                                   # '' for a bare parenthesised group
    args: List[List['Node']] = field(default_factory=list)
    source: str = ''                            # Original text span, name included


Node = Union[Text, Call]


class Handler:
    """A named handler with a fixed argument count (or range)."""

    def __init__(self, name: str, func: Callable[..., object], min_args: int = 1,
                 max_args: Optional[int] = None):
        self.name = name
        self.func = func
        self.min_args = min_args
        self.max_args = min_args if max_args is None else max_args

    def __call__(self, *args: str) -> object:
        if not self.min_args <= len(args) <= self.max_args:
            if self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise InvalidArgumentsError(f"{self.name}() takes {expected} argument(s), got {len(args)}")
        return self.func(*args)

    def __repr__(self) -> str:
        return f"Handler({self.name!r}, args={self.min_args}..{self.max_args})"


class HandlerRegistry(Mapping):
    """Read-only mapping of function name to handler."""

    def __init__(self, handlers: Optional[Mapping] = None):
        self._handlers = MappingProxyType(dict(handlers or {}))

    def __getitem__(self, name: str) -> Callable[..., object]:
        return self._handlers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def restrict(self, names) -> 'HandlerRegistry':
        """Return a registry exposing only ``names``."""
        wanted = set(names)
        return HandlerRegistry({k: v for k, v in self._handlers.items() if k in wanted})


class _Unbalanced(Exception):
    pass


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.depth = 0

    def parse(self) -> List[Node]:
        return self._sequence(stops='')

    def _sequence(self, stops: str) -> List[Node]:
        text = self.text
        nodes: List[Node] = []
        buf: List[str] = []

        def flush():
            if buf:
                nodes.append(Text(''.join(buf)))
                buf.clear()

        while self.pos < len(text):
            ch = text[self.pos]
            if ch in stops:
                break
            if ch in QUOTES:
                buf.append(self._string())
                continue

            if ch == '(':
                start = self.pos
            elif ch in IDENT_START and not (self.pos and text[self.pos - 1] in IDENT_CHARS):
                start = self.pos
                end = start + 1
                while end < len(text) and text[end] in IDENT_CHARS:
                    end += 1
                if end >= len(text) or text[end] != '(':
                    buf.append(text[start:end])
                    self.pos = end
                    continue
                self.pos = end
            else:
                buf.append(ch)
                self.pos += 1
                continue

            flush()
            try:
                nodes.append(self._call(text[start:self.pos], start))
            except _Unbalanced:
                if stops:
                    raise
                # Missing ')': keep the rest of the value as written
                nodes.append(Text(text[start:]))
                self.pos = len(text)

        flush()
        return nodes

    def _call(self, name: str, start: int) -> Call:
        if self.depth >= MAX_NESTING:
            raise InvalidArgumentsError(f"Calls nested deeper than {MAX_NESTING} levels at offset {start}")
        self.pos += 1  # '('
        self.depth += 1
        args: List[List[Node]] = []
        while True:
            args.append(self._sequence(stops=',)'))
            if self.pos >= len(self.text):
                raise _Unbalanced()
            closing = self.text[self.pos] == ')'
            self.pos += 1
            if closing:
                break
        self.depth -= 1
        return Call(name=name, args=args, source=self.text[start:self.pos])

    def _string(self) -> str:
        text = self.text
        quote = text[self.pos]
        end = self.pos + 1
        while end < len(text) and text[end] != quote:
            end += 2 if text[end] == '\\' else 1
        end = min(end + 1, len(text))
        literal = text[self.pos:end]
        self.pos = end
        return literal


def parse_calls(text: str) -> List[Node]:
    """Parse ``text`` into literal text and call nodes."""
    return _Parser(text).parse()


def function_names(text: str) -> Set[str]:
    """Names of every call appearing in ``text``, nested ones included."""
    names: Set[str] = set()

    def walk(nodes: List[Node]):
        for node in nodes:
            if isinstance(node, Call):
                if node.name:
                    names.add(node.name)
                for arg in node.args:
                    walk(arg)

    walk(parse_calls(text))
    return names


def _reduce(nodes: List[Node], handlers: Mapping) -> str:
    out = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        else:
            out.append(_apply(node, handlers))
    return ''.join(out)


def _apply(call: Call, handlers: Mapping) -> str:
    args = [_reduce(arg, handlers) for arg in call.args]
    handler = handlers.get(call.name) if call.name else None
    if handler is None:
        return f"{call.name}({','.join(args)})"
    stripped = [a.strip() for a in args]
    if stripped == ['']:
        stripped = []
    return str(handler(*stripped))


def map_functions(text: str, handlers: Union[HandlerRegistry, Dict[str, Callable[..., object]]]) -> str:
    """
    Replace every registered function call in ``text`` with its handler result.

    Args:
        text: A single property value
        handlers: Mapping of function name to callable taking string arguments

    Returns:
        The value with known calls reduced and unknown calls left as written
    """
    return _reduce(parse_calls(text), handlers)
