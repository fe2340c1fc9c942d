"""
Client state reconciliation: on every screen focus, fetch user, card, QR code and
(on the contacts screen) the contact list, and fold them into view state.

Steps run one after another. Each step catches and logs its own failure and
leaves its slice of state at the previous value, so one failing fetch never
stops the others. Background loads never surface an error to the user.
"""

import base64
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import TypeVar

import httpx

from mobile.backend import BackendClient, BackendError
from mobile.session import Session, SessionStore
from xscard.domain import (
    DEFAULT_COLOR_SCHEME,
    CardProfile,
    ContactEntry,
    SocialLink,
    SocialPlatform,
    UserProfile,
)
from xscard.infrastructure.phone import whatsapp_link

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Screen(str, Enum):
    CARD = "card"
    CONTACTS = "contacts"


class Status(str, Enum):
    LOADING = "loading"
    LOGGED_OUT = "logged_out"
    READY = "ready"


_PROFILE_URLS = {
    SocialPlatform.X: "https://x.com/{}",
    SocialPlatform.FACEBOOK: "https://facebook.com/{}",
    SocialPlatform.LINKEDIN: "https://linkedin.com/in/{}",
    SocialPlatform.TIKTOK: "https://tiktok.com/@{}",
    SocialPlatform.INSTAGRAM: "https://instagram.com/{}",
    SocialPlatform.WEBSITE: "https://{}",
}


@dataclass(frozen=True)
class CardDisplay:
    """Fields the card screen renders, after merging card over user."""

    name: str
    title: str
    company: str
    email: str
    phone: str
    avatar_url: str | None
    logo_url: str | None
    social_links: tuple[SocialLink, ...]


@dataclass(frozen=True)
class ViewState:
    """Per-slice view state. None means the slice has not loaded (placeholder shown)."""

    status: Status = Status.LOADING
    session: Session | None = None
    user: UserProfile | None = None
    theme_color: str = DEFAULT_COLOR_SCHEME
    card: CardProfile | None = None
    display: CardDisplay | None = None
    qr_image: str | None = None
    contacts: tuple[ContactEntry, ...] | None = None

    @property
    def has_contacts(self) -> bool:
        return bool(self.contacts)


def theme_color(user: UserProfile | None) -> str:
    if user is None or not user.color_scheme:
        return DEFAULT_COLOR_SCHEME
    return user.color_scheme


def qr_data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def social_url(platform: SocialPlatform, handle: str) -> str | None:
    """Turn a stored handle into a link. Full URLs are kept as they are."""
    if handle.startswith(("http://", "https://")):
        return handle
    if platform is SocialPlatform.WHATSAPP:
        return whatsapp_link(handle)
    return _PROFILE_URLS[platform].format(handle.lstrip("@"))


def social_links(
    user: UserProfile | None, card: CardProfile | None
) -> tuple[SocialLink, ...]:
    """User handles first (enum order), then card links not already present."""
    links: list[SocialLink] = []
    if user is not None:
        for platform, handle in user.socials.items_set():
            url = social_url(platform, handle)
            if url:
                links.append(SocialLink(platform=platform.value, url=url))
    seen = {link.url for link in links}
    for link in card.social_links if card is not None else ():
        if link.url not in seen:
            links.append(link)
            seen.add(link.url)
    return tuple(links)


def compose_display(
    user: UserProfile | None,
    card: CardProfile | None,
    media_url: Callable[[str | None], str | None],
) -> CardDisplay | None:
    """Card title, Company and Email win over user occupation, company and email."""
    if user is None and card is None:
        return None

    def pick(card_value: str | None, user_value: str | None) -> str:
        return card_value or user_value or ""

    return CardDisplay(
        name=user.display_name if user else "",
        title=pick(card and card.title, user and user.occupation),
        company=pick(card and card.company, user and user.company),
        email=pick(card and card.email, user and user.email),
        phone=pick(card and card.phone_number, user and user.phone),
        avatar_url=media_url(user.profile_image) if user else None,
        logo_url=media_url(user.company_logo) if user else None,
        social_links=social_links(user, card),
    )


class _Failed:
    pass


_FAILED = _Failed()


class Reconciler:
    """Owns the view state of the card and contacts screens. Call refresh() on focus."""

    def __init__(
        self,
        client: BackendClient,
        sessions: SessionStore,
        state: ViewState | None = None,
    ) -> None:
        self._client = client
        self._sessions = sessions
        self.state = state or ViewState()

    async def _attempt(self, step: str, call: Callable[[], Awaitable[T]]) -> T | _Failed:
        try:
            return await call()
        except BackendError as e:
            logger.warning("%s fetch failed with status %s: %s", step, e.status_code, e.message)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("%s fetch failed: %s", step, e)
        return _FAILED

    async def refresh(self, screen: Screen = Screen.CARD) -> ViewState:
        session = self._sessions.get()
        if session is None or not session.user_id:
            logger.info("No session; skipping refresh")
            self.state = replace(self.state, status=Status.LOGGED_OUT, session=None)
            return self.state

        owner_id = session.user_id
        state = replace(self.state, session=session)

        user = await self._attempt("user", lambda: self._client.get_user(owner_id))
        if not isinstance(user, _Failed):
            state = replace(state, user=user, theme_color=theme_color(user))

        card = await self._attempt("card", lambda: self._client.get_card(owner_id))
        if not isinstance(card, _Failed):
            state = replace(state, card=card)
        state = replace(
            state, display=compose_display(state.user, state.card, self._client.media_url)
        )

        png = await self._attempt("qr", lambda: self._client.get_qr(owner_id))
        if not isinstance(png, _Failed):
            state = replace(state, qr_image=qr_data_uri(png))

        if screen is Screen.CONTACTS:
            contacts = await self._fetch_contacts(owner_id)
            if not isinstance(contacts, _Failed):
                state = replace(state, contacts=contacts)

        self.state = replace(state, status=Status.READY)
        return self.state

    async def _fetch_contacts(self, owner_id: str) -> tuple[ContactEntry, ...] | _Failed:
        """Missing list and empty list both come back as an empty tuple."""
        try:
            document = await self._client.get_contacts(owner_id)
        except BackendError as e:
            if e.status_code == 404:
                return ()
            logger.warning("contacts fetch failed with status %s: %s", e.status_code, e.message)
            return _FAILED
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("contacts fetch failed: %s", e)
            return _FAILED
        return document.entries
