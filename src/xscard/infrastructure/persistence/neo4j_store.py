"""Neo4j implementation of DocumentStore.
Graph: one (:Document {collection, doc_id, created_at}) node per document.
Each top-level field is a node property named "f.<field>" holding the JSON-encoded
value, so a merge-write is a plain `SET d += $props`.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any

from neo4j.exceptions import DriverError, Neo4jError

from xscard.application.ports import DocumentNotFoundError, DocumentStoreError

FIELD_PREFIX = "f."

_CONSTRAINT_QUERY = """
CREATE CONSTRAINT document_key IF NOT EXISTS
FOR (d:Document) REQUIRE (d.collection, d.doc_id) IS UNIQUE
"""

_GET_QUERY = """
MATCH (d:Document { collection: $collection, doc_id: $doc_id })
RETURN properties(d) AS props
"""

_REPLACE_QUERY = """
MERGE (d:Document { collection: $collection, doc_id: $doc_id })
ON CREATE SET d.created_at = $now
WITH d, d.created_at AS created_at
SET d = $props
SET d.created_at = created_at
"""

_MERGE_QUERY = """
MERGE (d:Document { collection: $collection, doc_id: $doc_id })
ON CREATE SET d.created_at = $now
SET d += $props
"""

_UPDATE_QUERY = """
MATCH (d:Document { collection: $collection, doc_id: $doc_id })
SET d += $props
RETURN d.doc_id AS doc_id
"""

_DELETE_QUERY = """
MATCH (d:Document { collection: $collection, doc_id: $doc_id })
DETACH DELETE d
"""

_FIND_QUERY = """
MATCH (d:Document { collection: $collection })
WHERE d[$key] = $value
RETURN d.doc_id AS doc_id, properties(d) AS props
ORDER BY d.created_at
"""

_LIST_QUERY = """
MATCH (d:Document { collection: $collection })
RETURN d.doc_id AS doc_id, properties(d) AS props
ORDER BY d.created_at
"""


def ensure_document_constraint(driver) -> None:
    """Create unique constraint on Document(collection, doc_id) if missing."""
    with driver.session() as session:
        session.run(_CONSTRAINT_QUERY)


def _encode(data: dict[str, Any]) -> dict[str, str]:
    return {FIELD_PREFIX + key: json.dumps(value) for key, value in data.items()}


def _decode(props: dict[str, Any]) -> dict[str, Any]:
    return {
        key[len(FIELD_PREFIX):]: json.loads(value)
        for key, value in props.items()
        if key.startswith(FIELD_PREFIX)
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Neo4jDocumentStore:
    """Stores documents as Neo4j nodes. Driver failures surface as DocumentStoreError."""

    def __init__(self, driver: object) -> None:
        self._driver = driver

    def _run(self, query: str, **params: Any) -> list:
        try:
            with self._driver.session() as session:
                return list(session.run(query, **params))
        except (Neo4jError, DriverError) as e:
            raise DocumentStoreError(str(e)) from e

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        records = self._run(_GET_QUERY, collection=collection, doc_id=doc_id)
        if not records:
            return None
        return _decode(records[0]["props"])

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        if merge:
            self._run(
                _MERGE_QUERY,
                collection=collection,
                doc_id=doc_id,
                props=_encode(data),
                now=_now(),
            )
            return
        props = {"collection": collection, "doc_id": doc_id, **_encode(data)}
        self._run(
            _REPLACE_QUERY, collection=collection, doc_id=doc_id, props=props, now=_now()
        )

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        records = self._run(
            _UPDATE_QUERY, collection=collection, doc_id=doc_id, props=_encode(fields)
        )
        if not records:
            raise DocumentNotFoundError(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        self._run(_DELETE_QUERY, collection=collection, doc_id=doc_id)

    def find(
        self, collection: str, field: str, value: Any
    ) -> list[tuple[str, dict[str, Any]]]:
        records = self._run(
            _FIND_QUERY,
            collection=collection,
            key=FIELD_PREFIX + field,
            value=json.dumps(value),
        )
        return [(rec["doc_id"], _decode(rec["props"])) for rec in records]

    def list_all(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        records = self._run(_LIST_QUERY, collection=collection)
        return [(rec["doc_id"], _decode(rec["props"])) for rec in records]
