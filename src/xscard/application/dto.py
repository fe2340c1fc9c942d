"""Input DTOs and result types for contact-list and directory use cases."""

from dataclasses import dataclass, field

from xscard.domain import CardProfile, ContactEntry, ContactListDocument, UserProfile


@dataclass(frozen=True)
class ContactInfo:
    """Contact details as submitted by whoever saves the owner's card."""

    name: str
    surname: str = ""
    phone: str = ""
    how_we_met: str = ""


@dataclass(frozen=True)
class NewUser:
    name: str
    surname: str
    email: str
    password: str
    phone: str = ""
    occupation: str = ""
    company: str = ""
    color_scheme: str | None = None
    socials: dict[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class CardDetails:
    company: str = ""
    email: str = ""
    phone_number: str = ""
    title: str = ""
    social_links: tuple[tuple[str, str], ...] = ()


# --- failure kinds shared by every use case ---


@dataclass(frozen=True)
class Invalid:
    """Missing or malformed input (e.g. no contact info, non-integer index)."""

    reason: str


@dataclass(frozen=True)
class NotFound:
    """The addressed document (contact list, user, card, entry) does not exist."""

    kind: str
    id: str

    @property
    def message(self) -> str:
        return f"{self.kind} not found"


@dataclass(frozen=True)
class IndexOutOfRange:
    """Delete-by-index outside 0 <= index < length. Nothing was written."""

    index: int
    length: int


@dataclass(frozen=True)
class UpstreamFailure:
    """Document store or third-party error, wrapped with its raw text."""

    message: str
    error: str


@dataclass(frozen=True)
class ProviderFailure:
    """A third-party service (wallet-pass provider) failed or is not configured."""

    message: str
    error: str


@dataclass(frozen=True)
class Conflict:
    """A unique field (user email) is already taken."""

    reason: str


# --- contact list results ---


@dataclass(frozen=True)
class ContactSaved:
    """Entry appended and owner notified."""

    list_id: str
    entry: ContactEntry


@dataclass(frozen=True)
class PartialSuccess:
    """Entry appended but the owner notification failed. The append stands."""

    list_id: str
    entry: ContactEntry
    message: str
    error: str


@dataclass(frozen=True)
class ListCreated:
    list_id: str
    document: ContactListDocument


@dataclass(frozen=True)
class ListUpdated:
    document: ContactListDocument


@dataclass(frozen=True)
class ListDeleted:
    list_id: str


@dataclass(frozen=True)
class EntryRemoved:
    list_id: str
    removed: ContactEntry
    remaining: int


# --- directory results ---


@dataclass(frozen=True)
class UserCreated:
    user: UserProfile


@dataclass(frozen=True)
class SignedIn:
    user: UserProfile


@dataclass(frozen=True)
class CardSaved:
    card: CardProfile


@dataclass(frozen=True)
class Deleted:
    id: str


@dataclass(frozen=True)
class QrImage:
    """PNG bytes encoding the owner's public card URL."""

    user_id: str
    url: str
    png: bytes


@dataclass(frozen=True)
class WalletPass:
    user_id: str
    response: dict
