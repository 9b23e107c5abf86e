"""
HTTP request dispatcher for the Neo4j REST API.

Usage
-----
    from neoclient.database.connection_registry import ConnectionRegistry
    from neoclient.database.http_client import HttpClient

    registry = ConnectionRegistry()
    registry.register_default_local()

    with HttpClient(registry) as http:
        http.ping()
        body = http.send_query("MATCH (n) RETURN count(n)")

Every public call is one round trip. Status codes are mapped onto the
neoclient exception hierarchy:

    network failure / timeout  → DatabaseConnectionError
    5xx / malformed JSON body  → ServerError
    404                        → ResourceNotFoundError (a QueryError)
    other 4xx / "errors" list  → QueryError
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from neoclient import config
from neoclient.database.connection_registry import ConnectionRegistry
from neoclient.exceptions import (
    DatabaseConnectionError,
    QueryError,
    ResourceNotFoundError,
    ServerError,
)
from neoclient.models.schemas import Connection

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# REST paths (Neo4j 2.x)
# ---------------------------------------------------------------------------
ROOT_PATH = "/"
DATA_PATH = "/db/data/"
TRANSACTION_PATH = "/db/data/transaction"
COMMIT_PATH = "/db/data/transaction/commit"

_DEFAULT_HEADERS = {
    "Accept": "application/json; charset=UTF-8",
    "User-Agent": config.USER_AGENT,
    "X-Stream": "true",
}


def build_statement(
    statement: str,
    params: dict[str, Any] | None = None,
    result_data_contents: list[str] | None = None,
) -> dict[str, Any]:
    """Shape one entry of the transactional endpoint's ``statements`` array."""
    payload: dict[str, Any] = {
        "statement": statement,
        "parameters": params or {},
    }
    contents = result_data_contents or config.NEO4J_RESULT_DATA_CONTENTS
    if contents:
        payload["resultDataContents"] = list(contents)
    return payload


def raise_for_statement_errors(body: dict[str, Any]) -> None:
    """
    The transactional endpoint answers 200 even when a statement fails and
    reports the failure in an ``errors`` array instead.
    """
    errors = body.get("errors") or []
    if errors:
        first = errors[0]
        message = first.get("message") or first.get("code") or "Statement failed"
        logger.error("Cypher statement rejected: %s", message)
        raise QueryError(message, errors=errors, details={"errors": errors})


class HttpClient:
    """Builds and sends HTTP requests against the registered endpoints."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        timeout: float = config.NEO4J_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._registry = registry
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    # ---------------------------------------------------------------------------
    # Discovery
    # ---------------------------------------------------------------------------
    def get_root(self, alias: str | None = None) -> dict[str, Any]:
        """
        ``GET /``: the server's discovery document.

        Returns
        -------
        dict
            Contains at least the ``data`` and ``management`` URLs.
        """
        body = self.request("GET", ROOT_PATH, alias=alias, write=False)
        if not isinstance(body, dict) or "data" not in body or "management" not in body:
            raise ServerError(
                "Root endpoint response lacks 'data'/'management' URLs",
                details={"body": body},
            )
        return body

    def get_version(self, alias: str | None = None) -> str:
        """Return the server version, e.g. ``"2.1.5"``."""
        body = self.request("GET", DATA_PATH, alias=alias, write=False)
        version = body.get("neo4j_version") if isinstance(body, dict) else None
        if not version:
            raise ServerError(
                "Data endpoint response lacks 'neo4j_version'",
                details={"body": body},
            )
        return str(version)

    def ping(self, alias: str | None = None) -> None:
        """
        Check the data endpoint. Returns nothing when the server answers.

        Raises
        ------
        DatabaseConnectionError
            If the server is unreachable or does not answer correctly.
        NotFoundError
            If ``alias`` (or the default) is not registered; nothing is sent.
        """
        try:
            self.request("GET", DATA_PATH, alias=alias, write=False)
        except (ServerError, QueryError) as exc:
            logger.warning("Neo4j ping failed: %s", exc)
            raise DatabaseConnectionError(
                "Server answered the ping with an error",
                details={"cause": str(exc)},
            ) from exc

    # ---------------------------------------------------------------------------
    # Cypher
    # ---------------------------------------------------------------------------
    def send_query(
        self,
        statement: str,
        params: dict[str, Any] | None = None,
        alias: str | None = None,
        result_data_contents: list[str] | None = None,
        write_mode: bool = True,
    ) -> dict[str, Any]:
        """
        Execute a single Cypher statement in its own committed transaction.

        Parameters
        ----------
        statement : str
            Cypher query string. Use ``{param}`` placeholders for safety.
        params : dict, optional
            Parameter values for the placeholders.
        alias : str, optional
            Connection alias; the default (or HA master/slave) when omitted.
        result_data_contents : list[str], optional
            Any of ``"row"``, ``"graph"``, ``"REST"``.
        write_mode : bool
            In HA mode, False routes the statement to a slave.

        Returns
        -------
        dict
            The raw ``{"results": [...], "errors": []}`` body.
        """
        return self.send_multiple(
            [build_statement(statement, params, result_data_contents)],
            alias=alias,
            write_mode=write_mode,
        )

    def send_multiple(
        self,
        statements: list[dict[str, Any]],
        alias: str | None = None,
        write_mode: bool = True,
    ) -> dict[str, Any]:
        """Execute several prepared statements in one committed transaction."""
        body = self.request(
            "POST",
            COMMIT_PATH,
            alias=alias,
            json={"statements": statements},
            write=write_mode,
        )
        if not isinstance(body, dict):
            raise ServerError("Transactional endpoint returned no JSON object")
        raise_for_statement_errors(body)
        return body

    # ---------------------------------------------------------------------------
    # Low-level
    # ---------------------------------------------------------------------------
    def request(
        self,
        method: str,
        path: str,
        alias: str | None = None,
        json: Any = None,
        write: bool = True,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None when empty).

        ``path`` is either relative to the connection's base URL or an
        absolute URL handed out by the server (transaction commit URLs).
        """
        connection = self._registry.resolve_for(write, alias)
        url = path if path.startswith(("http://", "https://")) else connection.base_url + path
        response = self._send(method, url, connection, json)
        return self._decode(method, url, response)

    def _send(
        self,
        method: str,
        url: str,
        connection: Connection,
        json: Any,
    ) -> requests.Response:
        logger.debug("%s %s [%s]", method, url, connection.alias)
        headers = dict(_DEFAULT_HEADERS)
        if json is not None:
            headers["Content-Type"] = "application/json"
        try:
            return self._session.request(
                method,
                url,
                json=json,
                headers=headers,
                auth=connection.auth,
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as exc:
            logger.error("Neo4j request timed out: %s %s", method, url)
            raise DatabaseConnectionError(
                f"Request to {url} timed out after {self._timeout}s",
                details={"alias": connection.alias},
            ) from exc
        except requests.exceptions.RequestException as exc:
            logger.error("Neo4j unavailable: %s", exc)
            raise DatabaseConnectionError(
                f"Could not reach {connection.base_url}",
                details={"alias": connection.alias, "cause": str(exc)},
            ) from exc

    @staticmethod
    def _decode(method: str, url: str, response: requests.Response) -> Any:
        status = response.status_code
        body: Any = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                if status < 400:
                    raise ServerError(
                        f"Malformed JSON in response to {method} {url}",
                        status_code=status,
                        details={"text": response.text[:500]},
                    ) from None
                body = {"message": response.text[:500]}

        if status < 400:
            return body

        message = _error_message(body) or f"HTTP {status} for {method} {url}"
        details = body if isinstance(body, dict) else {"body": body}
        if status >= 500:
            logger.error("Neo4j server error %d: %s", status, message)
            raise ServerError(message, status_code=status, details=details)
        errors = details.get("errors") if isinstance(details.get("errors"), list) else [details]
        if status == 404:
            logger.warning("Neo4j resource not found: %s %s", method, url)
            raise ResourceNotFoundError(
                message, errors=errors, status_code=status, details=details
            )
        logger.error("Neo4j rejected request (%d): %s", status, message)
        raise QueryError(message, errors=errors, status_code=status, details=details)

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------
    def close(self) -> None:
        """Release pooled HTTP connections."""
        self._session.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _error_message(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return errors[0].get("message") or errors[0].get("code")
    return body.get("message")


__all__ = [
    "HttpClient",
    "build_statement",
    "raise_for_statement_errors",
]
