"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pg_meta.core.models import QueryResult
    from pg_meta.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None, configured: str | None = None) -> str:
    """Pick the output format name.

    --format wins over the config file's default_format. With neither,
    a terminal gets a table and a pipe gets CSV.
    """
    if format_flag is not None:
        return format_flag
    if configured is not None:
        return configured
    return "table" if detect_tty() else "csv"


def get_formatter(
    format_flag: str | None = None,
    *,
    configured: str | None = None,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
    title: str | None = None,
) -> Formatter:
    """Instantiate the formatter for the resolved format.

    Each formatter only receives the options it understands.
    """
    # Importing the package registers every formatter.
    import pg_meta.formatters  # noqa: F401
    from pg_meta.formatters.base import registry

    options: dict[str, dict[str, object]] = {
        "table": {"width": width, "title": title},
        "json": {"compact": compact},
        "csv": {"no_header": no_header},
    }
    fmt_name = resolve_format(format_flag, configured)
    return registry.get(fmt_name, **options.get(fmt_name, {}))


def write_output(formatter: Formatter, result: QueryResult) -> None:
    for line in formatter.format(result):
        sys.stdout.write(line + "\n")
