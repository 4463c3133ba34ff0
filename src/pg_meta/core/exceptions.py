"""Exception hierarchy for pg-meta.

All exceptions carry an exit_code for CLI return value mapping.
Exit codes are defined in exit_codes.py.
"""

from pg_meta.core.exit_codes import ExitCode


class PgMetaError(Exception):
    """Base exception for all pg-meta errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConnectionError(PgMetaError):
    """Unreachable server, rejected authentication, TLS failure, lost connection."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(ConnectionError):
    """Statement cancelled by the server-side statement timeout."""

    exit_code: int = ExitCode.TIMEOUT


class QueryError(PgMetaError):
    """SQL rejected by the server."""

    exit_code: int = ExitCode.QUERY_ERROR


class InputError(PgMetaError):
    """Invalid parameters, e.g. a malformed table identifier."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(PgMetaError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
