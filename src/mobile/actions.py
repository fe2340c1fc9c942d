"""User-initiated actions. Unlike background refreshes, these report a message."""

import logging
from dataclasses import dataclass

import httpx

from mobile.backend import BackendClient, BackendError
from mobile.session import Session, SessionStore
from xscard.application.dto import ContactInfo

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error, please try again"


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str


async def sign_in(
    client: BackendClient, sessions: SessionStore, email: str, password: str
) -> ActionResult:
    if not email.strip() or not password:
        return ActionResult(ok=False, message="Please enter your email and password")
    try:
        user = await client.sign_in(email.strip(), password)
    except BackendError as e:
        return ActionResult(ok=False, message=e.message)
    except httpx.HTTPError as e:
        logger.warning("Sign in failed: %s", e)
        return ActionResult(ok=False, message=NETWORK_ERROR)
    if not user.id:
        return ActionResult(ok=False, message="Sign in failed")
    sessions.set(
        Session(user_id=user.id, name=user.name, surname=user.surname, email=user.email)
    )
    return ActionResult(ok=True, message=f"Welcome back, {user.name}".strip())


def log_out(sessions: SessionStore) -> ActionResult:
    sessions.clear()
    return ActionResult(ok=True, message="Signed out")


async def save_contact(client: BackendClient, owner_id: str, info: ContactInfo) -> ActionResult:
    """Save a contact to owner_id's list. A failed email still counts as saved."""
    if not info.name.strip():
        return ActionResult(ok=False, message="Please enter a name")
    try:
        body = await client.save_contact(owner_id, info)
    except BackendError as e:
        return ActionResult(ok=False, message=e.message)
    except httpx.HTTPError as e:
        logger.warning("Save contact failed: %s", e)
        return ActionResult(ok=False, message=NETWORK_ERROR)
    return ActionResult(ok=True, message=str(body.get("message") or "Contact saved"))


async def delete_contact(
    client: BackendClient, sessions: SessionStore, index: int
) -> ActionResult:
    """Delete by position in the signed-in user's last fetched list."""
    session = sessions.get()
    if session is None:
        return ActionResult(ok=False, message="Please sign in again")
    try:
        remaining = await client.delete_contact_at(session.user_id, index)
    except BackendError as e:
        return ActionResult(ok=False, message=e.message)
    except httpx.HTTPError as e:
        logger.warning("Delete contact failed: %s", e)
        return ActionResult(ok=False, message=NETWORK_ERROR)
    return ActionResult(ok=True, message=f"Contact deleted ({remaining} left)")
