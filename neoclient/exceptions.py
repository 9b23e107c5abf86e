"""Exception hierarchy for neoclient.

Every failure surfaces to the caller as a subclass of ``NeoClientError``.
Each error carries a short ``code`` and an optional ``details`` payload
(usually the server's JSON error body) so callers can log or inspect it.
"""

from __future__ import annotations

from typing import Any


class NeoClientError(Exception):
    """Base error with a structured payload."""

    code: str = "neoclient_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            return f"{base} :: {self.details}"
        return base


class ConfigError(NeoClientError):
    """Invalid or duplicate connection configuration."""

    code = "config_error"


class NotFoundError(NeoClientError):
    """No resolvable connection, or a 404 from the server."""

    code = "not_found"


class DatabaseConnectionError(NeoClientError):
    """The server could not be reached (refused, DNS failure, timeout)."""

    code = "connection_error"


class ServerError(NeoClientError):
    """5xx status or a response body that is not the expected JSON."""

    code = "server_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code


class QueryError(NeoClientError):
    """4xx status or statement-level errors reported by the server."""

    code = "query_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.errors = errors or []
        self.status_code = status_code

    @property
    def server_codes(self) -> list[str]:
        """Neo4j status codes, e.g. ``Neo.ClientError.Statement.InvalidSyntax``."""
        return [err.get("code", "") for err in self.errors if err.get("code")]


class ResourceNotFoundError(QueryError, NotFoundError):
    """404 from the server, e.g. an expired or unknown transaction id."""

    code = "not_found"
