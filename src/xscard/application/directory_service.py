"""User and card directory: id-keyed CRUD over the users and cards collections."""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from xscard.application.documents import (
    CARDS,
    SOCIAL_KEYS,
    USERS,
    card_from_document,
    card_to_document,
    user_from_document,
    user_ref,
    user_to_document,
)
from xscard.application.dto import (
    CardDetails,
    CardSaved,
    Conflict,
    Deleted,
    Invalid,
    NewUser,
    NotFound,
    SignedIn,
    UpstreamFailure,
    UserCreated,
)
from xscard.application.ports import (
    DocumentStore,
    DocumentStoreError,
    PasswordHasher,
)
from xscard.domain import CardProfile, SocialHandles, SocialLink, UserProfile
from xscard.domain.entities import DEFAULT_COLOR_SCHEME, is_color_token

logger = logging.getLogger(__name__)

USER = "User"
CARD = "Card"

PASSWORD_FIELD = "passwordHash"

# Profile fields a client may change through the generic update.
_USER_TEXT_FIELDS = ("name", "surname", "email", "phone", "occupation", "company")
_CARD_FIELDS = {
    "Company": "company",
    "Email": "email",
    "PhoneNumber": "phone_number",
    "title": "title",
}


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _links(raw: Any) -> tuple[SocialLink, ...] | None:
    if raw is None:
        return ()
    if not isinstance(raw, list | tuple):
        return None
    out = []
    for item in raw:
        if isinstance(item, dict):
            platform, url = _clean(item.get("platform")), _clean(item.get("url"))
        elif isinstance(item, list | tuple) and len(item) == 2:
            platform, url = _clean(item[0]), _clean(item[1])
        else:
            return None
        if not platform or not url:
            return None
        out.append(SocialLink(platform=platform, url=url))
    return tuple(out)


class DirectoryService:
    """Users (sign-up, sign-in, profile edits) and their cards."""

    def __init__(
        self,
        store: DocumentStore,
        hasher: PasswordHasher,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # --- users ---

    def add_user(self, new: NewUser) -> UserCreated | Invalid | Conflict | UpstreamFailure:
        email = _clean(new.email).lower()
        if not _clean(new.name) or not _clean(new.surname) or not email or not new.password:
            return Invalid(reason="Name, surname, email and password are required")
        color = _clean(new.color_scheme) or DEFAULT_COLOR_SCHEME
        if not is_color_token(color):
            return Invalid(reason="colorScheme must look like #RRGGBB")
        user = UserProfile(
            id="",
            name=_clean(new.name),
            surname=_clean(new.surname),
            email=email,
            phone=_clean(new.phone),
            occupation=_clean(new.occupation),
            company=_clean(new.company),
            color_scheme=color,
            socials=SocialHandles.from_raw(new.socials),
            created_at=self._clock(),
        )
        try:
            if self._store.find(USERS, "email", email):
                return Conflict(reason="A user with this email already exists")
            data = user_to_document(user)
            data[PASSWORD_FIELD] = self._hasher.hash(new.password)
            user_id = self._store.add(USERS, data)
        except DocumentStoreError as e:
            logger.exception("Creating user %s failed", email)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        logger.info("Created user %s", user_id)
        return UserCreated(user=replace(user, id=user_id))

    def sign_in(self, email: str, password: str) -> SignedIn | Invalid | UpstreamFailure:
        email = _clean(email).lower()
        if not email or not password:
            return Invalid(reason="Email and password are required")
        try:
            rows = self._store.find(USERS, "email", email)
        except DocumentStoreError as e:
            logger.exception("Sign-in lookup failed")
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        for user_id, data in rows:
            stored = data.get(PASSWORD_FIELD)
            if stored and self._hasher.verify(password, stored):
                return SignedIn(user=user_from_document(user_id, data))
        return Invalid(reason="Invalid email or password")

    def _read_user(self, user_id: str) -> dict[str, Any] | None:
        return self._store.get(USERS, user_id)

    def get_user(self, user_id: str) -> UserProfile | NotFound | UpstreamFailure:
        try:
            data = self._read_user(user_id)
        except DocumentStoreError as e:
            logger.exception("Reading user %s failed", user_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        if data is None:
            return NotFound(kind=USER, id=user_id)
        return user_from_document(user_id, data)

    def list_users(self) -> list[UserProfile] | UpstreamFailure:
        try:
            rows = self._store.list_all(USERS)
        except DocumentStoreError as e:
            logger.exception("Listing users failed")
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return [user_from_document(user_id, data) for user_id, data in rows]

    def _rewrite_user(
        self, user_id: str, change: Callable[[UserProfile], UserProfile | Invalid | Conflict]
    ) -> UserProfile | Invalid | Conflict | NotFound | UpstreamFailure:
        """Read the user, apply change, write the full document back (password kept)."""
        try:
            data = self._read_user(user_id)
            if data is None:
                return NotFound(kind=USER, id=user_id)
            updated = change(user_from_document(user_id, data))
            if isinstance(updated, Invalid | Conflict):
                return updated
            new_data = user_to_document(updated)
            if data.get(PASSWORD_FIELD):
                new_data[PASSWORD_FIELD] = data[PASSWORD_FIELD]
            self._store.set(USERS, user_id, new_data)
        except DocumentStoreError as e:
            logger.exception("Updating user %s failed", user_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return updated

    def update_user(
        self, user_id: str, changes: dict[str, Any]
    ) -> UserProfile | Invalid | Conflict | NotFound | UpstreamFailure:
        """Apply wire-named changes (name, email, whatsapp, ...). Null or empty social = unset."""
        unknown = set(changes) - set(_USER_TEXT_FIELDS) - set(SOCIAL_KEYS) - {"colorScheme"}
        if unknown:
            return Invalid(reason=f"Unknown fields: {', '.join(sorted(unknown))}")
        if not changes:
            return Invalid(reason="Nothing to update")

        def change(user: UserProfile) -> UserProfile | Invalid | Conflict:
            text = {k: _clean(v) for k, v in changes.items() if k in _USER_TEXT_FIELDS}
            if "email" in text:
                if not text["email"]:
                    return Invalid(reason="Email cannot be empty")
                text["email"] = text["email"].lower()
                taken = self._store.find(USERS, "email", text["email"])
                if any(other_id != user_id for other_id, _ in taken):
                    return Conflict(reason="A user with this email already exists")
            social = {k: changes[k] for k in changes if k in SOCIAL_KEYS}
            updated = replace(user, **text, socials=user.socials.replace(**social))
            if "colorScheme" in changes:
                if not is_color_token(changes["colorScheme"]):
                    return Invalid(reason="colorScheme must look like #RRGGBB")
                updated = replace(updated, color_scheme=changes["colorScheme"])
            return updated

        return self._rewrite_user(user_id, change)

    def set_color(
        self, user_id: str, color: str
    ) -> UserProfile | Invalid | NotFound | UpstreamFailure:
        color = _clean(color)
        if not is_color_token(color):
            return Invalid(reason="colorScheme must look like #RRGGBB")
        return self._rewrite_user(user_id, lambda u: replace(u, color_scheme=color))

    def set_profile_image(
        self, user_id: str, path: str
    ) -> UserProfile | Invalid | NotFound | UpstreamFailure:
        path = _clean(path)
        if not path:
            return Invalid(reason="Profile image is required")
        return self._rewrite_user(user_id, lambda u: replace(u, profile_image=path))

    def set_company_logo(
        self, user_id: str, path: str
    ) -> UserProfile | Invalid | NotFound | UpstreamFailure:
        path = _clean(path)
        if not path:
            return Invalid(reason="Company logo is required")
        return self._rewrite_user(user_id, lambda u: replace(u, company_logo=path))

    def delete_user(self, user_id: str) -> Deleted | NotFound | UpstreamFailure:
        try:
            if self._read_user(user_id) is None:
                return NotFound(kind=USER, id=user_id)
            self._store.delete(USERS, user_id)
        except DocumentStoreError as e:
            logger.exception("Deleting user %s failed", user_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return Deleted(id=user_id)

    # --- cards ---

    def add_card(
        self, user_id: str, details: CardDetails
    ) -> CardSaved | Invalid | NotFound | UpstreamFailure:
        """Create (or replace) the card of user_id. The card document id is the user id."""
        user_id = _clean(user_id)
        if not user_id:
            return Invalid(reason="User ID is required")
        required = (details.company, details.email, details.phone_number, details.title)
        if not all(_clean(v) for v in required):
            return Invalid(reason="Company, Email, PhoneNumber and title are required")
        links = _links([{"platform": p, "url": u} for p, u in details.social_links])
        if links is None:
            return Invalid(reason="socialLinks entries need platform and url")
        card = CardProfile(
            id=user_id,
            owner_ref=user_ref(user_id),
            company=_clean(details.company),
            email=_clean(details.email),
            phone_number=_clean(details.phone_number),
            title=_clean(details.title),
            social_links=links,
        )
        try:
            if self._read_user(user_id) is None:
                return NotFound(kind=USER, id=user_id)
            self._store.set(CARDS, user_id, card_to_document(card))
        except DocumentStoreError as e:
            logger.exception("Saving card for %s failed", user_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return CardSaved(card=card)

    def get_card(self, card_id: str) -> CardProfile | NotFound | UpstreamFailure:
        try:
            data = self._store.get(CARDS, card_id)
        except DocumentStoreError as e:
            logger.exception("Reading card %s failed", card_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        if data is None:
            return NotFound(kind=CARD, id=card_id)
        return card_from_document(card_id, data)

    def list_cards(self) -> list[CardProfile] | UpstreamFailure:
        try:
            rows = self._store.list_all(CARDS)
        except DocumentStoreError as e:
            logger.exception("Listing cards failed")
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return [card_from_document(card_id, data) for card_id, data in rows]

    def update_card(
        self, card_id: str, changes: dict[str, Any]
    ) -> CardSaved | Invalid | NotFound | UpstreamFailure:
        unknown = set(changes) - set(_CARD_FIELDS) - {"socialLinks"}
        if unknown:
            return Invalid(reason=f"Unknown fields: {', '.join(sorted(unknown))}")
        if not changes:
            return Invalid(reason="Nothing to update")
        fields = {_CARD_FIELDS[k]: _clean(v) for k, v in changes.items() if k in _CARD_FIELDS}
        if "socialLinks" in changes:
            links = _links(changes["socialLinks"])
            if links is None:
                return Invalid(reason="socialLinks entries need platform and url")
            fields["social_links"] = links
        try:
            data = self._store.get(CARDS, card_id)
            if data is None:
                return NotFound(kind=CARD, id=card_id)
            card = replace(card_from_document(card_id, data), **fields)
            self._store.set(CARDS, card_id, card_to_document(card), merge=True)
        except DocumentStoreError as e:
            logger.exception("Updating card %s failed", card_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return CardSaved(card=card)

    def delete_card(self, card_id: str) -> Deleted | NotFound | UpstreamFailure:
        try:
            if self._store.get(CARDS, card_id) is None:
                return NotFound(kind=CARD, id=card_id)
            self._store.delete(CARDS, card_id)
        except DocumentStoreError as e:
            logger.exception("Deleting card %s failed", card_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return Deleted(id=card_id)
