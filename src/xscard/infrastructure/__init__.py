"""Infrastructure layer: concrete implementations of application ports."""

from xscard.infrastructure.memory_store import InMemoryDocumentStore
from xscard.infrastructure.notifications import SmtpNotificationDispatcher, SmtpSettings
from xscard.infrastructure.passwords import Pbkdf2PasswordHasher
from xscard.infrastructure.persistence.neo4j_store import (
    Neo4jDocumentStore,
    ensure_document_constraint,
)
from xscard.infrastructure.qr import SegnoQrEncoder
from xscard.infrastructure.wallet import PassCreatorClient

__all__ = [
    "InMemoryDocumentStore",
    "Neo4jDocumentStore",
    "PassCreatorClient",
    "Pbkdf2PasswordHasher",
    "SegnoQrEncoder",
    "SmtpNotificationDispatcher",
    "SmtpSettings",
    "ensure_document_constraint",
]
