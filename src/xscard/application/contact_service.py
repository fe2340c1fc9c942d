"""Contact lists: append, enumerate, update and delete entries of one embedded list."""

import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from xscard.application.documents import (
    CONTACTS,
    CONTACTS_FIELD,
    OWNER_FIELD,
    USERS,
    contact_list_from_document,
    entry_from_dict,
    entry_to_dict,
    user_ref,
)
from xscard.application.dto import (
    ContactInfo,
    ContactSaved,
    EntryRemoved,
    IndexOutOfRange,
    Invalid,
    ListCreated,
    ListDeleted,
    ListUpdated,
    NotFound,
    PartialSuccess,
    UpstreamFailure,
)
from xscard.application.ports import (
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
    NotificationDispatcher,
    NotificationError,
)
from xscard.domain import ContactEntry, ContactListDocument

logger = logging.getLogger(__name__)

CONTACT_LIST = "Contact list"
CONTACT_ENTRY = "Contact"

SAVED_MESSAGE = "Contact saved successfully"
SAVED_NOTIFICATION_FAILED_MESSAGE = (
    "Contact saved successfully, but the notification email could not be sent"
)

_INDEX_PATTERN = re.compile(r"^[+-]?\d+$")


def parse_index(raw: int | str | None) -> int | None:
    """Return raw as an int, or None when it is not an integer (e.g. '1.5', 'abc', True)."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and _INDEX_PATTERN.match(raw.strip()):
        return int(raw.strip())
    return None


def _stored_entries(data: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Entries of a stored document. Absent document or malformed field -> empty list."""
    if not data:
        return []
    entries = data.get(CONTACTS_FIELD)
    if not isinstance(entries, list):
        return []
    return list(entries)


class ContactService:
    """
    Contact List Manager. Every mutation reads the whole list, changes it in
    memory and writes the whole list back. There is no compare-and-swap: two
    concurrent mutations of the same document can both read the same list and
    the later write silently replaces the earlier one (last write wins).
    """

    def __init__(
        self,
        store: DocumentStore,
        notifier: NotificationDispatcher,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _new_entry(self, info: ContactInfo) -> ContactEntry | Invalid:
        name = (info.name or "").strip()
        if not name:
            return Invalid(reason="Contact name is required")
        return ContactEntry(
            name=name,
            surname=(info.surname or "").strip(),
            number=(info.phone or "").strip(),
            how_we_met=(info.how_we_met or "").strip(),
            created_at=self._clock(),
            entry_id=uuid.uuid4().hex,
        )

    def save_contact(
        self, owner_id: str, info: ContactInfo | None
    ) -> ContactSaved | PartialSuccess | Invalid | UpstreamFailure:
        """Append to the owner's list (created on first save) and notify the owner by email."""
        owner_id = (owner_id or "").strip()
        if not owner_id or info is None:
            return Invalid(reason="User ID and contact info are required")
        entry = self._new_entry(info)
        if isinstance(entry, Invalid):
            return entry

        try:
            entries = _stored_entries(self._store.get(CONTACTS, owner_id))
            entries.append(entry_to_dict(entry))
            self._store.set(
                CONTACTS,
                owner_id,
                {OWNER_FIELD: user_ref(owner_id), CONTACTS_FIELD: entries},
                merge=True,
            )
        except DocumentStoreError as e:
            logger.exception("Saving contact for owner %s failed", owner_id)
            return UpstreamFailure(message="Failed to save contact", error=str(e))

        logger.info("Saved contact %s for owner %s (%d total)", entry.entry_id, owner_id, len(entries))
        return self._notify_owner(owner_id, entry)

    def _notify_owner(
        self, owner_id: str, entry: ContactEntry
    ) -> ContactSaved | PartialSuccess:
        try:
            owner = self._store.get(USERS, owner_id)
        except DocumentStoreError as e:
            logger.warning("Owner lookup for notification failed: %s", e)
            return PartialSuccess(
                list_id=owner_id,
                entry=entry,
                message=SAVED_NOTIFICATION_FAILED_MESSAGE,
                error=str(e),
            )
        email = str((owner or {}).get("email") or "").strip()
        if not email:
            return PartialSuccess(
                list_id=owner_id,
                entry=entry,
                message=SAVED_NOTIFICATION_FAILED_MESSAGE,
                error="Card owner has no email address",
            )
        try:
            self._notifier.send_contact_saved(email, entry)
        except NotificationError as e:
            logger.warning("Notification to %s failed: %s", email, e)
            return PartialSuccess(
                list_id=owner_id,
                entry=entry,
                message=SAVED_NOTIFICATION_FAILED_MESSAGE,
                error=str(e),
            )
        return ContactSaved(list_id=owner_id, entry=entry)

    def create_list(
        self, owner_id: str, info: ContactInfo | None
    ) -> ListCreated | Invalid | UpstreamFailure:
        """Create a new list document (generated id) holding one entry."""
        owner_id = (owner_id or "").strip()
        if not owner_id or info is None:
            return Invalid(reason="User ID and contact info are required")
        entry = self._new_entry(info)
        if isinstance(entry, Invalid):
            return entry
        data = {OWNER_FIELD: user_ref(owner_id), CONTACTS_FIELD: [entry_to_dict(entry)]}
        try:
            list_id = self._store.add(CONTACTS, data)
        except DocumentStoreError as e:
            logger.exception("Creating contact list for owner %s failed", owner_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return ListCreated(list_id=list_id, document=contact_list_from_document(list_id, data))

    def get_list(self, list_id: str) -> ContactListDocument | NotFound | UpstreamFailure:
        """Enumerate. A missing document is NotFound; an existing empty one is an empty list."""
        try:
            data = self._store.get(CONTACTS, list_id)
        except DocumentStoreError as e:
            logger.exception("Reading contact list %s failed", list_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        if data is None:
            return NotFound(kind=CONTACT_LIST, id=list_id)
        return contact_list_from_document(list_id, data)

    def list_all(self) -> list[ContactListDocument] | UpstreamFailure:
        try:
            rows = self._store.list_all(CONTACTS)
        except DocumentStoreError as e:
            logger.exception("Listing contact lists failed")
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return [contact_list_from_document(doc_id, data) for doc_id, data in rows]

    def append_contact(
        self, list_id: str, info: ContactInfo | None
    ) -> ListUpdated | Invalid | NotFound | UpstreamFailure:
        """Append without notification. The list must already exist."""
        if info is None:
            return Invalid(reason="Contact info is required")
        entry = self._new_entry(info)
        if isinstance(entry, Invalid):
            return entry
        try:
            data = self._store.get(CONTACTS, list_id)
            if data is None:
                return NotFound(kind=CONTACT_LIST, id=list_id)
            entries = _stored_entries(data)
            entries.append(entry_to_dict(entry))
            self._store.update(CONTACTS, list_id, {CONTACTS_FIELD: entries})
        except DocumentNotFoundError:
            return NotFound(kind=CONTACT_LIST, id=list_id)
        except DocumentStoreError as e:
            logger.exception("Updating contact list %s failed", list_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        return ListUpdated(
            document=contact_list_from_document(list_id, {**data, CONTACTS_FIELD: entries})
        )

    def delete_at(
        self, list_id: str, index: int | str
    ) -> EntryRemoved | Invalid | NotFound | IndexOutOfRange | UpstreamFailure:
        """
        Remove the entry at a zero-based position; later entries shift down by one.
        The caller derives index from its last fetch, so a concurrent append or
        delete can make it point at a different entry than intended.
        """
        position = parse_index(index)
        if position is None:
            return Invalid(reason="Invalid contact index")
        try:
            data = self._store.get(CONTACTS, list_id)
            if data is None:
                return NotFound(kind=CONTACT_LIST, id=list_id)
            entries = _stored_entries(data)
            # Resolve against the entries enumerate shows; malformed items stay in place.
            visible = [i for i, e in enumerate(entries) if isinstance(e, dict)]
            if position < 0 or position >= len(visible):
                return IndexOutOfRange(index=position, length=len(visible))
            removed = entry_from_dict(entries.pop(visible[position]))
            remaining = len(visible) - 1
            self._store.update(CONTACTS, list_id, {CONTACTS_FIELD: entries})
        except DocumentNotFoundError:
            return NotFound(kind=CONTACT_LIST, id=list_id)
        except DocumentStoreError as e:
            logger.exception("Deleting entry %s of contact list %s failed", position, list_id)
            return UpstreamFailure(message="Failed to delete contact", error=str(e))
        return EntryRemoved(list_id=list_id, removed=removed, remaining=remaining)

    def delete_entry(
        self, list_id: str, entry_id: str
    ) -> EntryRemoved | NotFound | UpstreamFailure:
        """Remove the entry carrying entry_id, independent of its current position."""
        entry_id = (entry_id or "").strip()
        try:
            data = self._store.get(CONTACTS, list_id)
            if data is None:
                return NotFound(kind=CONTACT_LIST, id=list_id)
            entries = _stored_entries(data)
            position = next(
                (
                    i
                    for i, e in enumerate(entries)
                    if isinstance(e, dict) and entry_id and e.get("entryId") == entry_id
                ),
                None,
            )
            if position is None:
                return NotFound(kind=CONTACT_ENTRY, id=entry_id)
            removed = entry_from_dict(entries.pop(position))
            remaining = sum(1 for e in entries if isinstance(e, dict))
            self._store.update(CONTACTS, list_id, {CONTACTS_FIELD: entries})
        except DocumentNotFoundError:
            return NotFound(kind=CONTACT_LIST, id=list_id)
        except DocumentStoreError as e:
            logger.exception("Deleting entry %s of contact list %s failed", entry_id, list_id)
            return UpstreamFailure(message="Failed to delete contact", error=str(e))
        return EntryRemoved(list_id=list_id, removed=removed, remaining=remaining)

    def delete_list(self, list_id: str) -> ListDeleted | NotFound | UpstreamFailure:
        try:
            if self._store.get(CONTACTS, list_id) is None:
                return NotFound(kind=CONTACT_LIST, id=list_id)
            self._store.delete(CONTACTS, list_id)
        except DocumentStoreError as e:
            logger.exception("Deleting contact list %s failed", list_id)
            return UpstreamFailure(message="Failed to delete contact list", error=str(e))
        return ListDeleted(list_id=list_id)
