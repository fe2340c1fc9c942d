"""Application ports (interfaces). Implemented by infrastructure adapters."""

from typing import Any, Protocol

from xscard.domain import ContactEntry


class DocumentStoreError(Exception):
    """Any failure of the underlying document store."""


class DocumentNotFoundError(DocumentStoreError):
    """update() addressed a document that does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} does not exist")
        self.collection = collection
        self.doc_id = doc_id


class NotificationError(Exception):
    """Notification could not be delivered."""


class QrEncodingError(Exception):
    """QR image could not be produced."""


class WalletPassError(Exception):
    """Wallet-pass provider rejected the request or was unreachable."""


class DocumentStore(Protocol):
    """Collections of JSON-like documents keyed by id. Whole-document reads and writes."""

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of the document's fields, or None."""
        ...

    def set(
        self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False
    ) -> None:
        """Create or replace the document. With merge, fields absent from data are kept."""
        ...

    def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""
        ...

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Overwrite the given fields of an existing document. Raises DocumentNotFoundError."""
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        """Remove the document. Deleting an absent document is a no-op."""
        ...

    def find(
        self, collection: str, field: str, value: Any
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return (id, fields) for every document whose field equals value."""
        ...

    def list_all(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (id, fields) for every document in the collection."""
        ...


class NotificationDispatcher(Protocol):
    def send_contact_saved(self, owner_email: str, entry: ContactEntry) -> None:
        """Tell the card owner someone saved their card. Raises NotificationError."""
        ...


class QrEncoder(Protocol):
    def encode_png(self, data: str) -> bytes:
        """Encode data as a PNG QR image. Raises QrEncodingError."""
        ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, stored: str) -> bool: ...


class WalletPassProvider(Protocol):
    def create_pass(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a wallet pass and return the provider's response. Raises WalletPassError."""
        ...
