"""Mapping between stored documents (and their HTTP JSON form) and domain entities.

Stored field names follow the wire format the mobile client reads:
contacts {userId, contactsList}, users {name, ..., colorScheme, <social keys>},
cards {Company, Email, PhoneNumber, title, socialLinks, userId}.
"""

from datetime import datetime, timezone
from typing import Any

from xscard.domain import (
    CardProfile,
    ContactEntry,
    ContactListDocument,
    SocialHandles,
    SocialLink,
    SocialPlatform,
    UserProfile,
)
from xscard.domain.entities import DEFAULT_COLOR_SCHEME

USERS = "users"
CARDS = "cards"
CONTACTS = "contacts"

CONTACTS_FIELD = "contactsList"
OWNER_FIELD = "userId"


def user_ref(user_id: str) -> str:
    return f"{USERS}/{user_id}"


def ref_id(ref: str | None) -> str:
    """Id part of a reference path ('users/abc' -> 'abc')."""
    return (ref or "").rsplit("/", 1)[-1]


def datetime_to_iso(dt: datetime) -> str:
    return dt.isoformat()


def iso_to_datetime(s: str | None) -> datetime | None:
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(str(s).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


# --- contact lists ---


def entry_to_dict(entry: ContactEntry) -> dict[str, Any]:
    out = {
        "name": entry.name,
        "surname": entry.surname,
        "number": entry.number,
        "howWeMet": entry.how_we_met,
        "createdAt": datetime_to_iso(entry.created_at),
    }
    if entry.entry_id:
        out["entryId"] = entry.entry_id
    return out


def entry_from_dict(data: dict[str, Any]) -> ContactEntry:
    """Lenient: older entries may lack howWeMet, entryId or carry phone instead of number."""
    created_at = iso_to_datetime(data.get("createdAt")) or datetime.fromtimestamp(
        0, tz=timezone.utc
    )
    return ContactEntry(
        name=_text(data.get("name")),
        surname=_text(data.get("surname")),
        number=_text(data.get("number") or data.get("phone")),
        how_we_met=_text(data.get("howWeMet")),
        created_at=created_at,
        entry_id=_text(data.get("entryId")) or None,
    )


def contact_list_from_document(doc_id: str, data: dict[str, Any]) -> ContactListDocument:
    raw_entries = data.get(CONTACTS_FIELD)
    if not isinstance(raw_entries, list):
        raw_entries = []
    return ContactListDocument(
        id=doc_id,
        owner_ref=_text(data.get(OWNER_FIELD)),
        entries=tuple(entry_from_dict(e) for e in raw_entries if isinstance(e, dict)),
    )


def contact_list_to_document(document: ContactListDocument) -> dict[str, Any]:
    return {
        OWNER_FIELD: document.owner_ref,
        CONTACTS_FIELD: [entry_to_dict(e) for e in document.entries],
    }


def contact_list_to_json(document: ContactListDocument) -> dict[str, Any]:
    return {"id": document.id, **contact_list_to_document(document)}


# --- users ---


def user_from_document(doc_id: str, data: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=doc_id,
        name=_text(data.get("name")),
        surname=_text(data.get("surname")),
        email=_text(data.get("email")),
        phone=_text(data.get("phone")),
        occupation=_text(data.get("occupation")),
        company=_text(data.get("company")),
        color_scheme=_text(data.get("colorScheme")) or DEFAULT_COLOR_SCHEME,
        profile_image=_text(data.get("profileImage")) or None,
        company_logo=_text(data.get("companyLogo")) or None,
        socials=SocialHandles.from_raw(data),
        created_at=iso_to_datetime(data.get("createdAt")),
    )


def user_to_document(user: UserProfile) -> dict[str, Any]:
    """Stored form. Unset social handles are stored as absent keys, never null."""
    out: dict[str, Any] = {
        "name": user.name,
        "surname": user.surname,
        "email": user.email,
        "phone": user.phone,
        "occupation": user.occupation,
        "company": user.company,
        "colorScheme": user.color_scheme,
    }
    if user.profile_image:
        out["profileImage"] = user.profile_image
    if user.company_logo:
        out["companyLogo"] = user.company_logo
    if user.created_at is not None:
        out["createdAt"] = datetime_to_iso(user.created_at)
    for platform, handle in user.socials.items_set():
        out[platform.value] = handle
    return out


def user_to_json(user: UserProfile) -> dict[str, Any]:
    return {"id": user.id, **user_to_document(user)}


SOCIAL_KEYS = tuple(p.value for p in SocialPlatform)


# --- cards ---


def card_from_document(doc_id: str, data: dict[str, Any]) -> CardProfile:
    links = []
    for raw in data.get("socialLinks") or []:
        if not isinstance(raw, dict):
            continue
        platform = _text(raw.get("platform"))
        url = _text(raw.get("url"))
        if platform and url:
            links.append(SocialLink(platform=platform, url=url))
    return CardProfile(
        id=doc_id,
        owner_ref=_text(data.get(OWNER_FIELD)) or user_ref(doc_id),
        company=_text(data.get("Company")),
        email=_text(data.get("Email")),
        phone_number=_text(data.get("PhoneNumber")),
        title=_text(data.get("title")),
        social_links=tuple(links),
    )


def card_to_document(card: CardProfile) -> dict[str, Any]:
    return {
        OWNER_FIELD: card.owner_ref,
        "Company": card.company,
        "Email": card.email,
        "PhoneNumber": card.phone_number,
        "title": card.title,
        "socialLinks": [{"platform": s.platform, "url": s.url} for s in card.social_links],
    }


def card_to_json(card: CardProfile) -> dict[str, Any]:
    return {"id": card.id, **card_to_document(card)}
