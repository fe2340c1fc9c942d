"""Async HTTP client for the XS Card backend."""

import os
from typing import Any

import httpx

from xscard.application.documents import (
    card_from_document,
    contact_list_from_document,
    user_from_document,
)
from xscard.application.dto import ContactInfo
from xscard.domain import CardProfile, ContactListDocument, UserProfile

DEFAULT_BASE_URL = "http://localhost:8000"


def base_url_from_env() -> str:
    return (os.environ.get("XSCARD_API_BASE_URL") or DEFAULT_BASE_URL).strip()


class BackendError(Exception):
    """Non-success HTTP status from the backend."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class BackendClient:
    def __init__(self, base_url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = client or httpx.AsyncClient(base_url=self.base_url, timeout=20.0)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.request(method, path, **kwargs)
        if response.status_code >= 400:
            raise BackendError(response.status_code, _message(response))
        return response

    def media_url(self, path: str | None) -> str | None:
        """Absolute URL for a server-relative media path."""
        if not path:
            return None
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_user(self, user_id: str) -> UserProfile:
        data = (await self._request("GET", f"/Users/{user_id}")).json()
        return user_from_document(str(data.get("id") or user_id), data)

    async def get_card(self, user_id: str) -> CardProfile:
        data = (await self._request("GET", f"/Cards/{user_id}")).json()
        return card_from_document(str(data.get("id") or user_id), data)

    async def get_qr(self, user_id: str) -> bytes:
        return (await self._request("GET", f"/generateQR/{user_id}")).content

    async def get_contacts(self, list_id: str) -> ContactListDocument:
        data = (await self._request("GET", f"/Contacts/{list_id}")).json()
        return contact_list_from_document(str(data.get("id") or list_id), data)

    async def sign_in(self, email: str, password: str) -> UserProfile:
        data = (
            await self._request("POST", "/SignIn", json={"email": email, "password": password})
        ).json()
        user = data.get("user") or {}
        return user_from_document(str(user.get("id") or ""), user)

    async def save_contact(self, owner_id: str, info: ContactInfo) -> dict[str, Any]:
        body = {
            "userId": owner_id,
            "contactInfo": {
                "name": info.name,
                "surname": info.surname,
                "phone": info.phone,
                "howWeMet": info.how_we_met,
            },
        }
        return (await self._request("POST", "/saveContactInfo", json=body)).json()

    async def delete_contact_at(self, list_id: str, index: int) -> int:
        data = (
            await self._request("DELETE", f"/Contacts/{list_id}/contact/{index}")
        ).json()
        return int(data.get("remainingContacts", 0))

    async def aclose(self) -> None:
        await self._http.aclose()
