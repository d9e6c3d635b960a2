"""Normalized, read-only view of a single HTTP response."""

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from api_test_engine import json_path


@dataclass(frozen=True, kw_only=True)
class ResponseFacts:
    """Snapshot of one HTTP response consumed by validators and strategies.

    Headers are kept as the ordered list of raw ``(name, value)`` pairs so
    repeated headers can still be enumerated; single-value lookups are
    case-insensitive and the last occurrence wins. The structured body is
    parsed lazily on first access.
    """

    status_code: int
    header_items: Sequence[tuple[str, str]] = ()
    body: bytes | None = b""
    elapsed_ms: int = 0

    def __post_init__(self) -> None:
        if self.elapsed_ms < 0:
            raise ValueError(f"elapsed_ms must be non-negative, got {self.elapsed_ms}")

    @classmethod
    def build(
        cls,
        status_code: int,
        *,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] = (),
        body: bytes | str | None = b"",
        elapsed_ms: int = 0,
    ) -> "ResponseFacts":
        """Create facts from a header mapping or pairs and a str or bytes body."""
        items = headers.items() if isinstance(headers, Mapping) else headers
        if isinstance(body, str):
            body = body.encode()
        return cls(
            status_code=status_code,
            header_items=tuple((str(name), str(value)) for name, value in items),
            body=body,
            elapsed_ms=elapsed_ms,
        )

    @cached_property
    def headers(self) -> Mapping[str, str]:
        """Headers keyed by lower-cased name, last value wins."""
        return {name.lower(): value for name, value in self.header_items}

    def header(self, name: str) -> str | None:
        """Return the last value of a header, ignoring case."""
        return self.headers.get(name.lower())

    def header_values(self, name: str) -> Sequence[str]:
        """Return every value sent for a header, in order."""
        wanted = name.lower()
        return [value for key, value in self.header_items if key.lower() == wanted]

    @property
    def content_type(self) -> str | None:
        return self.header("Content-Type")

    @cached_property
    def text(self) -> str:
        return (self.body or b"").decode("utf-8", errors="replace")

    @cached_property
    def _document(self) -> Any:
        return json.loads(self.text)

    def json(self) -> Any:
        """Return the parsed JSON body.

        Raises:
            ValueError: If the body is not valid JSON

        """
        return self._document

    def path(self, expression: str) -> Any:
        """Resolve a path expression against the JSON body."""
        return json_path.resolve(self.json(), expression)

    def list_at(self, expression: str) -> Sequence[Any]:
        """Resolve a path expected to hold a list.

        Raises:
            ValueError: If the resolved value is not a list

        """
        value = self.path(expression)
        if not isinstance(value, list):
            raise ValueError(
                f"Expected a list at '{expression}', got {type(value).__name__}"
            )
        return value
