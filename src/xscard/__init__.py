"""
XS Card core: clean-architecture layout.

- domain: entities (ContactEntry, ContactListDocument, UserProfile, CardProfile). No outer dependencies.
- application: use cases (ContactService, DirectoryService, SharingService), ports, DTOs.
- infrastructure: adapters (InMemoryDocumentStore, Neo4jDocumentStore, SMTP, QR, wallet).
"""

from xscard.application import (
    ContactInfo,
    ContactSaved,
    ContactService,
    DirectoryService,
    DocumentStore,
    IndexOutOfRange,
    Invalid,
    NotFound,
    PartialSuccess,
    SharingService,
    UpstreamFailure,
)
from xscard.domain import (
    CardProfile,
    ContactEntry,
    ContactListDocument,
    SocialPlatform,
    UserProfile,
)
from xscard.infrastructure import InMemoryDocumentStore, Neo4jDocumentStore

__all__ = [
    "CardProfile",
    "ContactEntry",
    "ContactInfo",
    "ContactListDocument",
    "ContactSaved",
    "ContactService",
    "DirectoryService",
    "DocumentStore",
    "InMemoryDocumentStore",
    "IndexOutOfRange",
    "Invalid",
    "Neo4jDocumentStore",
    "NotFound",
    "PartialSuccess",
    "SharingService",
    "SocialPlatform",
    "UpstreamFailure",
    "UserProfile",
]
