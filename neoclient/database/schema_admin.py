"""
Schema administration: labels, uniqueness constraints and schema indexes.

Neo4j 2.x exposes these through dedicated REST resources:

    GET    /db/data/labels
    GET    /db/data/propertykeys
    POST   /db/data/schema/constraint/{label}/uniqueness/     {"property_keys": [p]}
    GET    /db/data/schema/constraint/
    DELETE /db/data/schema/constraint/{label}/uniqueness/{p}
    POST   /db/data/schema/index/{label}                      {"property_keys": [p]}
    GET    /db/data/schema/index/{label}
    DELETE /db/data/schema/index/{label}/{p}

Label renaming has no endpoint of its own and is done with batched Cypher.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

from pydantic import ValidationError

from neoclient import config
from neoclient.database.http_client import HttpClient
from neoclient.exceptions import ServerError
from neoclient.models.schemas import Constraint, SchemaIndex

logger = logging.getLogger(__name__)

_LABELS_PATH = "/db/data/labels"
_PROPERTY_KEYS_PATH = "/db/data/propertykeys"
_CONSTRAINT_PATH = "/db/data/schema/constraint/"
_INDEX_PATH = "/db/data/schema/index/"

SchemaModel = TypeVar("SchemaModel", Constraint, SchemaIndex)

_RENAME_BATCH = (
    "MATCH (n:`{old}`) WITH n LIMIT {limit} "
    "REMOVE n:`{old}` SET n:`{new}` "
    "RETURN count(n) AS relabelled"
)


def _check_name(value: str, kind: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{kind} must be a non-empty string")
    if "`" in value:
        raise ValueError(f"{kind} may not contain backticks: {value!r}")
    return value


def _segment(value: str) -> str:
    return quote(value, safe="")


class SchemaAdmin:
    """Thin wrappers over the schema endpoints of one ``HttpClient``."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    # ---------------------------------------------------------------------------
    # Labels & property keys
    # ---------------------------------------------------------------------------
    def get_labels(self, alias: str | None = None) -> list[str]:
        body = self._http.request("GET", _LABELS_PATH, alias=alias, write=False)
        return sorted(body or [])

    def get_property_keys(self, alias: str | None = None) -> list[str]:
        body = self._http.request("GET", _PROPERTY_KEYS_PATH, alias=alias, write=False)
        return sorted(body or [])

    def rename_label(
        self,
        old_label: str,
        new_label: str,
        alias: str | None = None,
        batch_size: int = config.RENAME_BATCH_SIZE,
    ) -> int:
        """
        Move every node labelled ``old_label`` to ``new_label``.

        Nodes are relabelled ``batch_size`` at a time so very large labels do
        not blow up a single transaction.

        Returns
        -------
        int
            Number of nodes relabelled.

        Raises
        ------
        QueryError
            If a batch statement is rejected by the server.
        """
        _check_name(old_label, "Label")
        _check_name(new_label, "Label")
        if old_label == new_label:
            raise ValueError("Old and new label are identical")
        if batch_size < 1:
            raise ValueError("batch_size must be positive")

        statement = _RENAME_BATCH.format(old=old_label, new=new_label, limit=int(batch_size))
        total = 0
        while True:
            body = self._http.send_query(statement, alias=alias, result_data_contents=["row"])
            moved = _first_cell(body)
            total += moved
            logger.debug("Relabelled %d nodes %s → %s", moved, old_label, new_label)
            if moved < batch_size:
                break

        logger.info("Label renamed: %s → %s (%d nodes)", old_label, new_label, total)
        return total

    # ---------------------------------------------------------------------------
    # Uniqueness constraints
    # ---------------------------------------------------------------------------
    def create_unique_constraint(
        self,
        label: str,
        property_key: str,
        alias: str | None = None,
    ) -> Constraint:
        """
        Create a uniqueness constraint on ``(label, property_key)``.

        The server decides what a duplicate creation means; its error is
        passed through as ``QueryError``.
        """
        _check_name(label, "Label")
        _check_name(property_key, "Property")
        body = self._http.request(
            "POST",
            f"{_CONSTRAINT_PATH}{_segment(label)}/uniqueness/",
            alias=alias,
            json={"property_keys": [property_key]},
        )
        logger.info("Unique constraint created: %s.%s", label, property_key)
        if isinstance(body, dict):
            return _parse(Constraint, body)
        return Constraint(label=label, property_keys=[property_key])

    def list_constraints(self, alias: str | None = None) -> list[Constraint]:
        body = self._http.request("GET", _CONSTRAINT_PATH, alias=alias, write=False)
        return [_parse(Constraint, entry) for entry in body or []]

    def get_unique_constraints(self, alias: str | None = None) -> dict[str, set[str]]:
        """
        Uniqueness constraints grouped by label.

        Returns
        -------
        dict[str, set[str]]
            ``{label: {property, ...}}``
        """
        grouped: dict[str, set[str]] = {}
        for constraint in self.list_constraints(alias):
            if constraint.type.upper() != "UNIQUENESS":
                continue
            grouped.setdefault(constraint.label, set()).update(constraint.property_keys)
        return grouped

    def drop_unique_constraint(
        self,
        label: str,
        property_key: str,
        alias: str | None = None,
    ) -> None:
        _check_name(label, "Label")
        _check_name(property_key, "Property")
        self._http.request(
            "DELETE",
            f"{_CONSTRAINT_PATH}{_segment(label)}/uniqueness/{_segment(property_key)}",
            alias=alias,
        )
        logger.info("Unique constraint dropped: %s.%s", label, property_key)

    # ---------------------------------------------------------------------------
    # Schema indexes
    # ---------------------------------------------------------------------------
    def create_index(
        self,
        label: str,
        property_key: str,
        alias: str | None = None,
    ) -> SchemaIndex:
        _check_name(label, "Label")
        _check_name(property_key, "Property")
        body = self._http.request(
            "POST",
            f"{_INDEX_PATH}{_segment(label)}",
            alias=alias,
            json={"property_keys": [property_key]},
        )
        logger.info("Index created: %s.%s", label, property_key)
        if isinstance(body, dict):
            return _parse(SchemaIndex, body)
        return SchemaIndex(label=label, property_keys=[property_key])

    def get_indexes(
        self,
        label: str | None = None,
        alias: str | None = None,
    ) -> dict[str, set[str]]:
        """
        Indexed properties grouped by label.

        Without ``label`` every known label is queried in turn.
        """
        labels = [_check_name(label, "Label")] if label is not None else self.get_labels(alias)
        grouped: dict[str, set[str]] = {}
        for name in labels:
            body = self._http.request(
                "GET", f"{_INDEX_PATH}{_segment(name)}", alias=alias, write=False
            )
            for entry in body or []:
                index = _parse(SchemaIndex, entry)
                grouped.setdefault(index.label, set()).update(index.property_keys)
        return grouped

    def drop_index(
        self,
        label: str,
        property_key: str,
        alias: str | None = None,
    ) -> None:
        _check_name(label, "Label")
        _check_name(property_key, "Property")
        self._http.request(
            "DELETE",
            f"{_INDEX_PATH}{_segment(label)}/{_segment(property_key)}",
            alias=alias,
        )
        logger.info("Index dropped: %s.%s", label, property_key)


def _parse(model: type[SchemaModel], entry: Any) -> SchemaModel:
    try:
        return model.model_validate(entry)
    except ValidationError as exc:
        raise ServerError(
            f"Malformed {model.__name__} entry in schema response",
            details={"entry": entry},
        ) from exc


def _first_cell(body: dict[str, Any]) -> int:
    try:
        return int(body["results"][0]["data"][0]["row"][0])
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise ServerError("Unexpected response to relabel batch", details={"body": body}) from exc
