"""
formatter.py: turns transactional-endpoint JSON into a ``Result``.

Pure Python: takes the body already fetched by ``HttpClient`` and makes no
network calls. Expected shape (``resultDataContents: ["row", "graph"]``):

    {
      "results": [{
        "columns": ["a", "r", "m"],
        "data": [{
          "row":   [...],
          "graph": {"nodes": [{"id": "1", "labels": [...], "properties": {...}}],
                    "relationships": [{"id": "5", "type": "ACTS_IN",
                                       "startNode": "1", "endNode": "2",
                                       "properties": {...}}]}
        }]
      }],
      "errors": []
    }
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from neoclient.exceptions import ServerError
from neoclient.models.schemas import Node, Relationship
from neoclient.services.result import Result

logger = logging.getLogger(__name__)


class ResponseFormatter:
    """Builds ``Result`` objects from raw response bodies."""

    def decode(self, raw: dict[str, Any]) -> Result:
        """
        Parameters
        ----------
        raw : dict
            Body returned by the transactional endpoint.

        Returns
        -------
        Result
            Nodes and relationships deduplicated by server id, rows keyed
            by column name, and every relationship linked to its end nodes.

        Raises
        ------
        ServerError
            If the body does not follow the transactional format.
        """
        if not isinstance(raw, dict) or not isinstance(raw.get("results", []), list):
            raise ServerError("Response body is not a transactional result", details={"body": raw})

        result = Result()
        for statement_result in raw.get("results", []):
            self._decode_statement(statement_result, result)
        self._link(result)

        logger.debug(
            "Decoded result: %d nodes, %d relationships, %d rows",
            result.get_nodes_count(),
            result.get_relationships_count(),
            len(result),
        )
        return result

    def _decode_statement(self, statement_result: dict[str, Any], result: Result) -> None:
        columns = list(statement_result.get("columns") or [])
        for entry in statement_result.get("data") or []:
            if "row" in entry:
                result.add_row(columns, entry["row"])
            graph = entry.get("graph") or {}
            for raw_node in graph.get("nodes") or []:
                result.add_node(self._node(raw_node))
            for raw_rel in graph.get("relationships") or []:
                result.add_relationship(self._relationship(raw_rel))

    @staticmethod
    def _node(raw: dict[str, Any]) -> Node:
        try:
            return Node(
                id=raw["id"],
                labels=raw.get("labels") or [],
                properties=raw.get("properties") or {},
            )
        except (KeyError, ValidationError) as exc:
            raise ServerError("Malformed node in graph data", details={"node": raw}) from exc

    @staticmethod
    def _relationship(raw: dict[str, Any]) -> Relationship:
        try:
            return Relationship(
                id=raw["id"],
                type=raw["type"],
                start_node_id=raw["startNode"],
                end_node_id=raw["endNode"],
                properties=raw.get("properties") or {},
            )
        except (KeyError, ValidationError) as exc:
            raise ServerError(
                "Malformed relationship in graph data", details={"relationship": raw}
            ) from exc

    @staticmethod
    def _link(result: Result) -> None:
        nodes = {node.id: node for node in result.get_nodes()}
        for rel in result.get_relationships():
            start = nodes.get(rel.start_node_id)
            end = nodes.get(rel.end_node_id)
            rel._bind(start, end)
            if start is not None:
                start._attach(rel)
            if end is not None:
                end._attach(rel)
