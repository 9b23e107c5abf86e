"""
Pydantic v2 models for the neoclient data model.

Structure
---------
1.  Connection: one named REST endpoint (immutable)
2.  Graph objects: Node / Relationship parsed from the REST "graph" format
3.  Schema objects: uniqueness constraints and schema indexes
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator


# =============================================================================
# 1. Connection
# =============================================================================

class Connection(BaseModel):
    """A named Neo4j REST endpoint. Frozen once registered."""

    model_config = ConfigDict(frozen=True)

    alias:    str = Field(..., min_length=1)
    scheme:   str = "http"
    host:     str = Field("localhost", min_length=1)
    port:     int = Field(7474, ge=1, le=65535)
    user:     str | None = None
    password: str | None = None

    @field_validator("scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        scheme = value.lower()
        if scheme not in ("http", "https"):
            raise ValueError(f"Unsupported scheme: {value!r}. Must be 'http' or 'https'")
        return scheme

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def auth(self) -> tuple[str, str] | None:
        """Basic-auth tuple for requests, or None when no credentials are set."""
        if self.user is None:
            return None
        return (self.user, self.password or "")


# =============================================================================
# 2. Graph objects
# =============================================================================

class Node(BaseModel):
    """A node as returned in the ``graph`` result data content."""

    id:         int
    labels:     list[str] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)

    # Filled by the formatter once every relationship of the result is known
    _outbound: list[Relationship] = PrivateAttr(default_factory=list)
    _inbound:  list[Relationship] = PrivateAttr(default_factory=list)

    @property
    def label(self) -> str | None:
        return self.labels[0] if self.labels else None

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    @property
    def outbound_relationships(self) -> list[Relationship]:
        return list(self._outbound)

    @property
    def inbound_relationships(self) -> list[Relationship]:
        return list(self._inbound)

    @property
    def relationships(self) -> list[Relationship]:
        return self.outbound_relationships + self.inbound_relationships

    def _attach(self, rel: Relationship) -> None:
        if rel.start_node_id == self.id and rel not in self._outbound:
            self._outbound.append(rel)
        if rel.end_node_id == self.id and rel not in self._inbound:
            self._inbound.append(rel)

    def __hash__(self) -> int:
        return hash(("node", self.id))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Node) and other.id == self.id


class Relationship(BaseModel):
    """A relationship as returned in the ``graph`` result data content."""

    id:            int
    type:          str
    start_node_id: int
    end_node_id:   int
    properties:    dict[str, Any] = Field(default_factory=dict)

    _start_node: Node | None = PrivateAttr(default=None)
    _end_node:   Node | None = PrivateAttr(default=None)

    @property
    def start_node(self) -> Node | None:
        return self._start_node

    @property
    def end_node(self) -> Node | None:
        return self._end_node

    def _bind(self, start: Node | None, end: Node | None) -> None:
        self._start_node = start
        self._end_node = end

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def other_node(self, node: Node) -> Node | None:
        """Return the node at the opposite end from ``node``."""
        if node.id == self.start_node_id:
            return self._end_node
        if node.id == self.end_node_id:
            return self._start_node
        return None

    def __hash__(self) -> int:
        return hash(("relationship", self.id))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Relationship) and other.id == self.id


# =============================================================================
# 3. Schema objects
# =============================================================================

class Constraint(BaseModel):
    """One entry of ``GET /db/data/schema/constraint/``."""

    label:         str
    property_keys: list[str] = Field(default_factory=list)
    type:          str = "UNIQUENESS"


class SchemaIndex(BaseModel):
    """One entry of ``GET /db/data/schema/index/``."""

    label:         str
    property_keys: list[str] = Field(default_factory=list)


Node.model_rebuild()
Relationship.model_rebuild()
