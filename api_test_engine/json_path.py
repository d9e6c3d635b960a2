"""Resolve dotted paths against parsed JSON documents.

Supported syntax::

    data.id             mapping lookup
    data[0].email       list index (negative indices count from the end)
    data.0.email        list index written as a segment
    data.email          on a list, collects ``email`` from every item
    data.size()         length of a list, mapping or string

Missing keys and out-of-range indices resolve to ``None``; only a malformed
path raises.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

_SEGMENT = re.compile(r"(?P<name>[^.\[\]]*)(?P<indices>(?:\[-?\d+\])*)")
_INDEX = re.compile(r"\[(-?\d+)\]")
_SIZE = "size()"

type Token = str | int


class PathError(ValueError):
    """Raised when a path expression cannot be parsed."""


def parse_path(path: str) -> Sequence[Token]:
    """Split a path expression into name and index tokens."""
    if not path or not path.strip():
        raise PathError("Path must not be empty")

    tokens: list[Token] = []
    for segment in path.strip().split("."):
        match = _SEGMENT.fullmatch(segment)
        if match is None or not segment:
            raise PathError(f"Malformed path '{path}'")

        name = match.group("name")
        indices = [int(index) for index in _INDEX.findall(match.group("indices"))]
        if not name and not indices:
            raise PathError(f"Malformed path '{path}'")
        if name:
            tokens.append(name)
        tokens.extend(indices)
    return tokens


def resolve(document: Any, path: str) -> Any:
    """Resolve ``path`` against ``document``."""
    current = document
    for token in parse_path(path):
        if current is None:
            return None
        current = _step(current, token)
    return current


def _step(current: Any, token: Token) -> Any:
    if token == _SIZE:
        if isinstance(current, (Mapping, list, str)):
            return len(current)
        return None

    if isinstance(token, int) or (
        isinstance(current, list) and token.lstrip("-").isdigit()
    ):
        return _index(current, int(token))

    if isinstance(current, Mapping):
        return current.get(token)

    if isinstance(current, list):
        return [item.get(token) if isinstance(item, Mapping) else None for item in current]

    return None


def _index(current: Any, index: int) -> Any:
    if not isinstance(current, list):
        return None
    if -len(current) <= index < len(current):
        return current[index]
    return None
