"""
Decoded query result.

A ``Result`` is built by ``ResponseFormatter.decode`` for one call and handed
back to the caller; it is never shared between calls.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from neoclient.exceptions import NotFoundError
from neoclient.models.schemas import Node, Relationship


class Result:
    """Nodes, relationships and tabular rows of a Cypher response."""

    def __init__(self) -> None:
        # Keyed by server id so repeated occurrences across rows collapse
        self._nodes: dict[int, Node] = {}
        self._relationships: dict[int, Relationship] = {}
        self._columns: list[str] = []
        self._rows: list[dict[str, Any]] = []

    # ---------------------------------------------------------------------------
    # Population (formatter side)
    # ---------------------------------------------------------------------------
    def add_node(self, node: Node) -> Node:
        return self._nodes.setdefault(node.id, node)

    def add_relationship(self, rel: Relationship) -> Relationship:
        return self._relationships.setdefault(rel.id, rel)

    def add_row(self, columns: list[str], values: list[Any]) -> None:
        for column in columns:
            if column not in self._columns:
                self._columns.append(column)
        self._rows.append(dict(zip(columns, values)))

    # ---------------------------------------------------------------------------
    # Nodes
    # ---------------------------------------------------------------------------
    def get_nodes(
        self,
        labels: str | Iterable[str] | None = None,
        group_by_label: bool = False,
    ) -> list[Node] | dict[str, list[Node]]:
        """
        Return the nodes carrying any of ``labels`` (all nodes when omitted).

        Parameters
        ----------
        labels : str | list[str], optional
            One label or several.
        group_by_label : bool
            When True, return ``{label: [nodes]}`` with one key per requested
            label. A node carrying several requested labels is listed under
            each of them.
        """
        if labels is None:
            if group_by_label:
                grouped: dict[str, list[Node]] = {}
                for node in self._nodes.values():
                    for label in node.labels:
                        grouped.setdefault(label, []).append(node)
                return grouped
            return list(self._nodes.values())

        wanted = [labels] if isinstance(labels, str) else list(labels)
        if group_by_label:
            return {
                label: [node for node in self._nodes.values() if node.has_label(label)]
                for label in wanted
            }
        return [
            node for node in self._nodes.values()
            if any(node.has_label(label) for label in wanted)
        ]

    def get_single_node(self, label: str | None = None) -> Node | None:
        """First node (optionally with ``label``), or None."""
        nodes = self.get_nodes(label)
        return nodes[0] if nodes else None

    def get_node_by_id(self, node_id: int) -> Node:
        try:
            return self._nodes[int(node_id)]
        except KeyError:
            raise NotFoundError(f"Node {node_id} is not part of this result") from None

    def get_nodes_count(self) -> int:
        return len(self._nodes)

    # ---------------------------------------------------------------------------
    # Relationships
    # ---------------------------------------------------------------------------
    def get_relationships(
        self,
        types: str | Iterable[str] | None = None,
    ) -> list[Relationship]:
        if types is None:
            return list(self._relationships.values())
        wanted = {types} if isinstance(types, str) else set(types)
        return [rel for rel in self._relationships.values() if rel.type in wanted]

    def get_relationship_by_id(self, rel_id: int) -> Relationship:
        try:
            return self._relationships[int(rel_id)]
        except KeyError:
            raise NotFoundError(f"Relationship {rel_id} is not part of this result") from None

    def get_relationships_count(self) -> int:
        return len(self._relationships)

    # ---------------------------------------------------------------------------
    # Rows
    # ---------------------------------------------------------------------------
    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def rows(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows]

    def get_identifiers(self) -> list[str]:
        return self.columns

    def has_identifier(self, identifier: str) -> bool:
        return identifier in self._columns

    def get(self, identifier: str, default: Any = None) -> Any:
        """
        Row values returned under ``identifier``.

        A single row yields the bare value, several rows yield a list, and an
        unknown identifier yields ``default``.
        """
        if identifier not in self._columns:
            return default
        values = [row[identifier] for row in self._rows if identifier in row]
        if len(values) == 1:
            return values[0]
        return values

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return (
            f"<Result nodes={self.get_nodes_count()} "
            f"relationships={self.get_relationships_count()} rows={len(self._rows)}>"
        )
