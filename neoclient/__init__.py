"""
neoclient: a thin HTTP client for the Neo4j 2.x REST API.

    from neoclient import build_client

    client = build_client(default_local=True, auto_format_response=True)
    result = client.send_cypher_query("MATCH (n) RETURN n LIMIT 10")
"""

from __future__ import annotations

import logging

from neoclient import config
from neoclient.client import Client, build_client
from neoclient.database.connection_registry import ConnectionRegistry
from neoclient.exceptions import (
    ConfigError,
    DatabaseConnectionError,
    NeoClientError,
    NotFoundError,
    QueryError,
    ResourceNotFoundError,
    ServerError,
)
from neoclient.models.schemas import Connection, Constraint, Node, Relationship, SchemaIndex
from neoclient.services.result import Result
from neoclient.services.transaction import Transaction

__version__ = config.CLIENT_VERSION

logging.getLogger(__name__).addHandler(logging.NullHandler())


def configure_logging(level: str | int = config.LOG_LEVEL) -> None:
    """Apply the package's log format to the root logger (for applications and scripts)."""
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT,
    )


__all__ = [
    "Client",
    "ConfigError",
    "Connection",
    "ConnectionRegistry",
    "Constraint",
    "DatabaseConnectionError",
    "NeoClientError",
    "Node",
    "NotFoundError",
    "ResourceNotFoundError",
    "QueryError",
    "Relationship",
    "Result",
    "SchemaIndex",
    "ServerError",
    "Transaction",
    "build_client",
    "configure_logging",
]
