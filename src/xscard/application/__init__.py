"""Application layer: use cases, ports, and DTOs. Depends only on domain."""

from xscard.application.contact_service import ContactService
from xscard.application.directory_service import DirectoryService
from xscard.application.dto import (
    CardDetails,
    CardSaved,
    Conflict,
    ContactInfo,
    ContactSaved,
    Deleted,
    EntryRemoved,
    IndexOutOfRange,
    Invalid,
    ListCreated,
    ListDeleted,
    ListUpdated,
    NewUser,
    NotFound,
    PartialSuccess,
    ProviderFailure,
    QrImage,
    SignedIn,
    UpstreamFailure,
    UserCreated,
    WalletPass,
)
from xscard.application.ports import (
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
    NotificationDispatcher,
    NotificationError,
    PasswordHasher,
    QrEncoder,
    QrEncodingError,
    WalletPassError,
    WalletPassProvider,
)
from xscard.application.sharing_service import SharingService

__all__ = [
    "CardDetails",
    "CardSaved",
    "Conflict",
    "ContactInfo",
    "ContactSaved",
    "ContactService",
    "Deleted",
    "DirectoryService",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "EntryRemoved",
    "IndexOutOfRange",
    "Invalid",
    "ListCreated",
    "ListDeleted",
    "ListUpdated",
    "NewUser",
    "NotFound",
    "NotificationDispatcher",
    "NotificationError",
    "PartialSuccess",
    "PasswordHasher",
    "ProviderFailure",
    "QrEncoder",
    "QrEncodingError",
    "QrImage",
    "SharingService",
    "SignedIn",
    "UpstreamFailure",
    "UserCreated",
    "WalletPass",
    "WalletPassError",
    "WalletPassProvider",
]
