"""Domain layer: entities and value objects. No dependencies on outer layers."""

from xscard.domain.entities import (
    DEFAULT_COLOR_SCHEME,
    UNSET,
    CardProfile,
    ContactEntry,
    ContactListDocument,
    SocialHandles,
    SocialLink,
    SocialPlatform,
    UserProfile,
)

__all__ = [
    "DEFAULT_COLOR_SCHEME",
    "UNSET",
    "CardProfile",
    "ContactEntry",
    "ContactListDocument",
    "SocialHandles",
    "SocialLink",
    "SocialPlatform",
    "UserProfile",
]
