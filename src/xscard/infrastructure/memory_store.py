"""In-memory implementation of DocumentStore (no DB)."""

import copy
import uuid
from typing import Any

from xscard.application.ports import DocumentNotFoundError


class InMemoryDocumentStore:
    """Stores documents in memory. Order preserved by insertion.
    Reads and writes copy the data so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        data = self._collection(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        docs = self._collection(collection)
        if merge and doc_id in docs:
            docs[doc_id] = {**docs[doc_id], **copy.deepcopy(data)}
        else:
            docs[doc_id] = copy.deepcopy(data)

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._collection(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise DocumentNotFoundError(collection, doc_id)
        docs[doc_id] = {**docs[doc_id], **copy.deepcopy(fields)}

    def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def find(
        self, collection: str, field: str, value: Any
    ) -> list[tuple[str, dict[str, Any]]]:
        return [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
            if field in data and data[field] == value
        ]

    def list_all(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        return [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in self._collection(collection).items()
        ]
