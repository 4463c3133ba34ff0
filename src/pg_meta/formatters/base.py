"""Formatter protocol, registry and cell rendering shared by formatters."""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pg_meta.core.models import QueryResult


@runtime_checkable
class Formatter(Protocol):
    """Transforms a QueryResult into lines of text.

    Catalog rows may carry nested values (a relation's attributes and
    constraints); flat formatters render those through cell_text().
    """

    def format(self, result: QueryResult) -> Iterator[str]: ...


class FormatterRegistry:
    def __init__(self) -> None:
        self._formatters: dict[str, type[Formatter]] = {}

    def register(self, name: str, formatter_class: type[Formatter]) -> None:
        self._formatters[name] = formatter_class

    def get(self, name: str, **kwargs: object) -> Formatter:
        """Return a formatter instance by name.

        Raises KeyError if the format name is not registered.
        """
        try:
            formatter_class = self._formatters[name]
        except KeyError:
            msg = f"Unknown format {name!r}. Available: {', '.join(self.available)}"
            raise KeyError(msg) from None
        return formatter_class(**kwargs)

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


def plain_value(value: Any) -> Any:
    """Convert a cell value into JSON-compatible primitives."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [plain_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): plain_value(v) for k, v in value.items()}
    if isinstance(value, (int, float, str, bool, type(None))):
        return value
    return str(value)


def cell_text(value: Any) -> str:
    """Render one cell for flat (table/CSV) output."""
    value = plain_value(value)
    if value is None:
        return ""
    if isinstance(value, list) and all(not isinstance(v, (list, dict)) for v in value):
        return ",".join("" if v is None else str(v) for v in value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


registry = FormatterRegistry()
