"""Wallet-pass provider client (Passcreator REST API) over httpx."""

import logging
from typing import Any

import httpx

from xscard.application.ports import WalletPassError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://app.passcreator.com"


class PassCreatorClient:
    """Creates passes from a template. The API key goes in the Authorization header.

    public_url is where this backend serves media; a relative profileImage in
    the payload becomes an absolute thumbnail URL under it.
    """

    def __init__(
        self,
        api_key: str,
        template_id: str,
        *,
        api_url: str = DEFAULT_API_URL,
        public_url: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._template_id = template_id
        self._public_url = public_url
        self._client = client or httpx.Client(
            base_url=api_url, headers={"Authorization": api_key}, timeout=15.0
        )

    def create_pass(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = dict(payload)
        image = body.pop("profileImage", None)
        if image and self._public_url:
            body["urlToThumbnail"] = f"{self._public_url.rstrip('/')}/{image.lstrip('/')}"
        try:
            response = self._client.post(
                "/api/pass", params={"passtemplate": self._template_id}, json=body
            )
        except httpx.HTTPError as e:
            raise WalletPassError(f"Wallet provider unreachable: {e}") from e
        if response.status_code >= 400:
            raise WalletPassError(
                f"Wallet provider returned {response.status_code}: {response.text}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise WalletPassError("Wallet provider returned invalid JSON") from e
        logger.info("Created wallet pass for %s", payload.get("userId"))
        return data if isinstance(data, dict) else {"result": data}

    def close(self) -> None:
        self._client.close()
