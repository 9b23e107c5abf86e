"""
Named connection registry.

Usage
-----
    from neoclient.database.connection_registry import ConnectionRegistry

    registry = ConnectionRegistry()
    registry.register("default", "http", "localhost", 7474)
    conn = registry.resolve()          # → the default connection

The registry is configured once and then only read, so it carries no lock.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from neoclient import config
from neoclient.exceptions import ConfigError, NotFoundError
from neoclient.models.schemas import Connection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Holds named endpoint configurations and resolves the default one."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._default_alias: str | None = None
        # HA mode: one master for writes, slaves for reads
        self._master_alias: str | None = None
        self._slave_aliases: list[str] = []

    # ---------------------------------------------------------------------------
    # Registration
    # ---------------------------------------------------------------------------
    def register(
        self,
        alias: str,
        scheme: str = config.DEFAULT_SCHEME,
        host: str = config.DEFAULT_HOST,
        port: int = config.DEFAULT_PORT,
        user: str | None = None,
        password: str | None = None,
    ) -> Connection:
        """
        Add a connection under ``alias``.

        The first registered connection becomes the default until
        ``set_default`` picks another one.

        Raises
        ------
        ConfigError
            If the alias is already taken or the settings are invalid.
        """
        if alias in self._connections:
            raise ConfigError(
                f"A connection with alias '{alias}' is already registered",
                details={"alias": alias},
            )
        try:
            connection = Connection(
                alias=alias,
                scheme=scheme,
                host=host,
                port=port,
                user=user,
                password=password,
            )
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid settings for connection '{alias}'",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        self._connections[alias] = connection
        if self._default_alias is None:
            self._default_alias = alias
        logger.info("Connection registered: %s → %s", alias, connection.base_url)
        return connection

    def register_default_local(self) -> Connection:
        """Register ``default`` at http://localhost:7474."""
        return self.register(
            config.DEFAULT_ALIAS,
            config.DEFAULT_SCHEME,
            config.DEFAULT_HOST,
            config.DEFAULT_PORT,
        )

    def set_default(self, alias: str) -> None:
        self._require(alias)
        self._default_alias = alias

    # ---------------------------------------------------------------------------
    # HA mode
    # ---------------------------------------------------------------------------
    def set_master(self, alias: str) -> None:
        self._require(alias)
        self._master_alias = alias

    def add_slave(self, alias: str) -> None:
        self._require(alias)
        if alias not in self._slave_aliases:
            self._slave_aliases.append(alias)

    @property
    def ha_enabled(self) -> bool:
        return self._master_alias is not None

    # ---------------------------------------------------------------------------
    # Resolution
    # ---------------------------------------------------------------------------
    def resolve(self, alias: str | None = None) -> Connection:
        """
        Return the connection registered under ``alias``, or the default one.

        Raises
        ------
        NotFoundError
            Unknown alias, or no alias given and no default registered.
        """
        if alias is None:
            if self._default_alias is None:
                raise NotFoundError("No default connection is registered")
            alias = self._default_alias
        return self._require(alias)

    def resolve_for(self, write: bool, alias: str | None = None) -> Connection:
        """
        Pick the connection for a read or a write.

        An explicit alias always wins. In HA mode writes go to the master and
        reads to the first slave, falling back to the master.
        """
        if alias is not None or not self.ha_enabled:
            return self.resolve(alias)
        if not write and self._slave_aliases:
            return self._connections[self._slave_aliases[0]]
        return self._connections[self._master_alias]

    def _require(self, alias: str) -> Connection:
        try:
            return self._connections[alias]
        except KeyError:
            raise NotFoundError(
                f"No connection registered under alias '{alias}'",
                details={"alias": alias, "known": sorted(self._connections)},
            ) from None

    # ---------------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------------
    @property
    def aliases(self) -> list[str]:
        return list(self._connections)

    @property
    def default_alias(self) -> str | None:
        return self._default_alias

    def __contains__(self, alias: object) -> bool:
        return alias in self._connections

    def __len__(self) -> int:
        return len(self._connections)
