"""Output formatters for pg-meta."""

from pg_meta.formatters.base import Formatter, FormatterRegistry, registry
from pg_meta.formatters.csv import CSVFormatter
from pg_meta.formatters.json import JSONFormatter
from pg_meta.formatters.table import TableFormatter
