"""
Client facade.

Usage
-----
    from neoclient import build_client

    client = build_client(default_local=True, auto_format_response=True)
    client.ping()
    result = client.send_cypher_query("MATCH (a:Actor)-[r]-(m:Movie) RETURN *")
    movies = result.get_nodes("Movie")

``build_client`` takes the whole configuration as arguments; a
``ConnectionRegistry`` can also be prepared by hand and passed to ``Client``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable

import requests

from neoclient import config
from neoclient.database.connection_registry import ConnectionRegistry
from neoclient.database.http_client import HttpClient, build_statement
from neoclient.database.schema_admin import SchemaAdmin
from neoclient.models.schemas import Connection, Constraint, SchemaIndex
from neoclient.services.formatter import ResponseFormatter
from neoclient.services.result import Result
from neoclient.services.transaction import Transaction

logger = logging.getLogger(__name__)


class Client:
    """Entry point bundling the registry, dispatcher, decoder and admin helpers."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        auto_format_response: bool = config.NEO4J_AUTO_FORMAT_RESPONSE,
        timeout: float = config.NEO4J_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._registry = registry
        self._http = HttpClient(registry, timeout=timeout, session=session)
        self._schema = SchemaAdmin(self._http)
        self._formatter = ResponseFormatter()
        self.auto_format_response = auto_format_response
        # Last formatted result, one slot per calling thread
        self._local = threading.local()

    @classmethod
    def from_env(cls, **kwargs: Any) -> Client:
        """Client with a single ``default`` connection taken from ``config``."""
        registry = ConnectionRegistry()
        registry.register(
            config.DEFAULT_ALIAS,
            config.NEO4J_SCHEME,
            config.NEO4J_HOST,
            config.NEO4J_PORT,
            user=config.NEO4J_USER,
            password=config.NEO4J_PASSWORD,
        )
        return cls(registry, **kwargs)

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    def get_connection(self, alias: str | None = None) -> Connection:
        return self._registry.resolve(alias)

    # ---------------------------------------------------------------------------
    # Discovery
    # ---------------------------------------------------------------------------
    def get_root(self, alias: str | None = None) -> dict[str, Any]:
        return self._http.get_root(alias)

    def get_neo4j_version(self, alias: str | None = None) -> str:
        return self._http.get_version(alias)

    def ping(self, alias: str | None = None) -> None:
        self._http.ping(alias)

    # ---------------------------------------------------------------------------
    # Cypher
    # ---------------------------------------------------------------------------
    def send_cypher_query(
        self,
        statement: str,
        params: dict[str, Any] | None = None,
        alias: str | None = None,
        result_data_contents: list[str] | None = None,
        write_mode: bool = True,
    ) -> dict[str, Any] | Result:
        """
        Execute one Cypher statement.

        Returns a decoded ``Result`` when ``auto_format_response`` is on,
        otherwise the raw response body.
        """
        body = self._http.send_query(
            statement,
            params,
            alias=alias,
            result_data_contents=result_data_contents,
            write_mode=write_mode,
        )
        return self._shape(body)

    def send_multiple(
        self,
        statements: Iterable[tuple[str, dict[str, Any] | None] | str],
        alias: str | None = None,
        write_mode: bool = True,
    ) -> dict[str, Any] | Result:
        """Execute several statements in one committed transaction."""
        prepared = []
        for item in statements:
            if isinstance(item, str):
                prepared.append(build_statement(item))
            else:
                statement, params = item
                prepared.append(build_statement(statement, params))
        body = self._http.send_multiple(prepared, alias=alias, write_mode=write_mode)
        return self._shape(body)

    def format_response(self, body: dict[str, Any]) -> Result:
        return self._formatter.decode(body)

    def get_result(self) -> Result | None:
        """The last ``Result`` formatted for the calling thread."""
        return getattr(self._local, "result", None)

    def _shape(self, body: dict[str, Any]) -> dict[str, Any] | Result:
        if not self.auto_format_response:
            self._local.result = None
            return body
        result = self._formatter.decode(body)
        self._local.result = result
        return result

    def begin_transaction(self, alias: str | None = None) -> Transaction:
        formatter = self._formatter if self.auto_format_response else None
        return Transaction(self._http, alias=alias, formatter=formatter)

    # ---------------------------------------------------------------------------
    # Schema administration
    # ---------------------------------------------------------------------------
    def get_labels(self, alias: str | None = None) -> list[str]:
        return self._schema.get_labels(alias)

    def get_property_keys(self, alias: str | None = None) -> list[str]:
        return self._schema.get_property_keys(alias)

    def rename_label(
        self,
        old_label: str,
        new_label: str,
        alias: str | None = None,
        batch_size: int = config.RENAME_BATCH_SIZE,
    ) -> int:
        return self._schema.rename_label(old_label, new_label, alias=alias, batch_size=batch_size)

    def create_unique_constraint(
        self, label: str, property_key: str, alias: str | None = None
    ) -> Constraint:
        return self._schema.create_unique_constraint(label, property_key, alias)

    def drop_unique_constraint(
        self, label: str, property_key: str, alias: str | None = None
    ) -> None:
        self._schema.drop_unique_constraint(label, property_key, alias)

    def get_unique_constraints(self, alias: str | None = None) -> dict[str, set[str]]:
        return self._schema.get_unique_constraints(alias)

    def create_index(
        self, label: str, property_key: str, alias: str | None = None
    ) -> SchemaIndex:
        return self._schema.create_index(label, property_key, alias)

    def get_indexes(
        self, label: str | None = None, alias: str | None = None
    ) -> dict[str, set[str]]:
        return self._schema.get_indexes(label, alias)

    def drop_index(self, label: str, property_key: str, alias: str | None = None) -> None:
        self._schema.drop_index(label, property_key, alias)

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------
    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_client(
    connections: Iterable[dict[str, Any]] = (),
    default_local: bool = False,
    default_alias: str | None = None,
    master: str | None = None,
    slaves: Iterable[str] = (),
    auto_format_response: bool = config.NEO4J_AUTO_FORMAT_RESPONSE,
    timeout: float = config.NEO4J_TIMEOUT,
    session: requests.Session | None = None,
) -> Client:
    """
    Build a ``Client`` from plain configuration values.

    Parameters
    ----------
    connections : iterable of dict
        Keyword arguments for ``ConnectionRegistry.register``, e.g.
        ``{"alias": "default", "scheme": "http", "host": "localhost", "port": 7474}``.
    default_local : bool
        Also register ``default`` at http://localhost:7474.
    default_alias : str, optional
        Alias to use when calls do not name one.
    master, slaves : optional
        Enable HA routing: writes to ``master``, reads to the first slave.
    auto_format_response : bool
        Decode query responses into ``Result`` objects.

    Raises
    ------
    ConfigError
        Duplicate alias or invalid connection settings.
    NotFoundError
        ``default_alias``, ``master`` or a slave names an unknown alias.
    """
    registry = ConnectionRegistry()
    if default_local:
        registry.register_default_local()
    for settings in connections:
        registry.register(**settings)
    if default_alias is not None:
        registry.set_default(default_alias)
    if master is not None:
        registry.set_master(master)
    for alias in slaves:
        registry.add_slave(alias)

    logger.debug("Client built with connections: %s", ", ".join(registry.aliases))
    return Client(
        registry,
        auto_format_response=auto_format_response,
        timeout=timeout,
        session=session,
    )
