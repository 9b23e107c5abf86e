"""
Explicit multi-request transactions over the transactional endpoint.

Usage
-----
    with client.begin_transaction() as tx:
        tx.push("CREATE (n:Person {name: {name}})", {"name": "Ada"})
        tx.push("MATCH (n:Person) RETURN count(n)")
    # committed here, rolled back if the block raised

The server keeps an open transaction alive only for a limited time
(``transaction.expires``), so transactions are meant to be short.
"""

from __future__ import annotations

import logging
from typing import Any

from neoclient.database.http_client import (
    TRANSACTION_PATH,
    HttpClient,
    build_statement,
    raise_for_statement_errors,
)
from neoclient.exceptions import NeoClientError, QueryError, ServerError
from neoclient.services.formatter import ResponseFormatter
from neoclient.services.result import Result

logger = logging.getLogger(__name__)


class Transaction:
    """One server-side transaction pinned to a single connection."""

    def __init__(
        self,
        http: HttpClient,
        alias: str | None = None,
        formatter: ResponseFormatter | None = None,
    ) -> None:
        self._http = http
        # Pin the connection so every request of the transaction hits the same server
        self._alias = http.registry.resolve_for(True, alias).alias
        self._formatter = formatter
        self._location: str | None = None
        self._commit_url: str | None = None
        self._closed = False

    # ---------------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._location is not None and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _ensure_usable(self) -> None:
        if self._closed:
            raise QueryError("Transaction is already committed or rolled back")

    # ---------------------------------------------------------------------------
    # Operations
    # ---------------------------------------------------------------------------
    def begin(self, statements: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Open the transaction, optionally running a first batch of statements."""
        self._ensure_usable()
        if self._location is not None:
            raise QueryError("Transaction is already open")
        body = self._post(TRANSACTION_PATH, statements or [])
        commit_url = body.get("commit")
        if not commit_url:
            raise ServerError("Transaction response lacks a commit URL", details={"body": body})
        self._commit_url = commit_url
        self._location = commit_url.rsplit("/commit", 1)[0]
        logger.debug("Transaction opened: %s", self._location)
        return body

    def push(
        self,
        statement: str,
        params: dict[str, Any] | None = None,
        result_data_contents: list[str] | None = None,
    ) -> dict[str, Any] | Result:
        """Run one statement inside the open transaction (opening it if needed)."""
        statements = [build_statement(statement, params, result_data_contents)]
        if self._location is None:
            body = self.begin(statements)
        else:
            self._ensure_usable()
            body = self._post(self._location, statements)
        if self._formatter is not None:
            return self._formatter.decode(body)
        return body

    def commit(self) -> dict[str, Any]:
        self._ensure_usable()
        url = self._commit_url or f"{TRANSACTION_PATH}/commit"
        try:
            body = self._post(url, [])
        finally:
            self._closed = True
        logger.debug("Transaction committed: %s", self._location)
        return body

    def rollback(self) -> None:
        self._ensure_usable()
        self._closed = True
        if self._location is None:
            return
        self._http.request("DELETE", self._location, alias=self._alias)
        logger.debug("Transaction rolled back: %s", self._location)

    def _post(self, url: str, statements: list[dict[str, Any]]) -> dict[str, Any]:
        try:
            body = self._http.request(
                "POST", url, alias=self._alias, json={"statements": statements}
            )
            if not isinstance(body, dict):
                raise ServerError("Transactional endpoint returned no JSON object")
            raise_for_statement_errors(body)
        except QueryError:
            # Statement errors roll the transaction back server-side; a 404
            # means it already expired
            self._closed = True
            raise
        return body

    # ---------------------------------------------------------------------------
    # Context manager
    # ---------------------------------------------------------------------------
    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.commit()
        else:
            logger.warning("Rolling back transaction after error: %s", exc)
            try:
                self.rollback()
            except NeoClientError as rollback_exc:
                logger.warning("Rollback failed for %s: %s", self._location, rollback_exc)
