"""Domain entities: contact lists, user profiles and cards."""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

DEFAULT_COLOR_SCHEME = "#1B2B5B"

_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_color_token(value: str | None) -> bool:
    """True for a `#RRGGBB` accent color."""
    return isinstance(value, str) and bool(_COLOR_PATTERN.match(value))


class SocialPlatform(str, Enum):
    """Closed set of social handles a user profile can carry."""

    WHATSAPP = "whatsapp"
    X = "x"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    WEBSITE = "website"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"


class Unset:
    """Tag for a social handle the user has not filled in."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = Unset()


@dataclass(frozen=True)
class SocialHandles:
    """
    Fixed-size mapping SocialPlatform -> handle or UNSET.
    None, empty and whitespace-only values all normalize to UNSET.
    """

    values: dict[SocialPlatform, str | Unset] = field(default_factory=dict)

    def __post_init__(self):
        normalized: dict[SocialPlatform, str | Unset] = {}
        for platform in SocialPlatform:
            raw = self.values.get(platform, UNSET)
            if isinstance(raw, str) and raw.strip():
                normalized[platform] = raw.strip()
            else:
                normalized[platform] = UNSET
        object.__setattr__(self, "values", normalized)

    @classmethod
    def from_raw(cls, raw: dict[str, str | None]) -> "SocialHandles":
        """Build from loosely-typed keys (e.g. a stored document or form)."""
        values = {}
        for platform in SocialPlatform:
            value = raw.get(platform.value)
            if isinstance(value, str):
                values[platform] = value
        return cls(values=values)

    def get(self, platform: SocialPlatform) -> str | Unset:
        return self.values[platform]

    def is_set(self, platform: SocialPlatform) -> bool:
        return self.values[platform] is not UNSET

    def items_set(self) -> list[tuple[SocialPlatform, str]]:
        """Set handles in enum order."""
        return [(p, v) for p, v in self.values.items() if v is not UNSET]

    def replace(self, **changes: str | None) -> "SocialHandles":
        """Return a copy with the given platforms (by value name) changed."""
        values = dict(self.values)
        for key, value in changes.items():
            values[SocialPlatform(key)] = value if value is not None else UNSET
        return SocialHandles(values=values)


@dataclass(frozen=True)
class ContactEntry:
    """
    One contact collected when someone saves the owner's card.
    created_at is stamped at append time and never changes afterwards.
    """

    name: str = ""
    surname: str = ""
    number: str = ""
    how_we_met: str = ""
    created_at: datetime = field(default_factory=_utcnow)
    entry_id: str | None = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class ContactListDocument:
    """
    All contacts of one owner, kept as a single ordered list inside one document.
    Position in entries is the index space used for deletion.
    """

    id: str
    owner_ref: str
    entries: tuple[ContactEntry, ...] = ()

    @property
    def owner_id(self) -> str:
        return self.owner_ref.rsplit("/", 1)[-1]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class SocialLink:
    platform: str
    url: str


@dataclass(frozen=True)
class UserProfile:
    """Account and card owner. colorScheme drives client theming."""

    id: str
    name: str = ""
    surname: str = ""
    email: str = ""
    phone: str = ""
    occupation: str = ""
    company: str = ""
    color_scheme: str = DEFAULT_COLOR_SCHEME
    profile_image: str | None = None
    company_logo: str | None = None
    socials: SocialHandles = field(default_factory=SocialHandles)
    created_at: datetime | None = None

    def __post_init__(self):
        if not is_color_token(self.color_scheme):
            object.__setattr__(self, "color_scheme", DEFAULT_COLOR_SCHEME)

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


@dataclass(frozen=True)
class CardProfile:
    """Business card owned by exactly one UserProfile (owner_ref = users/<id>)."""

    id: str
    owner_ref: str
    company: str = ""
    email: str = ""
    phone_number: str = ""
    title: str = ""
    social_links: tuple[SocialLink, ...] = ()
