"""Sharing a card: QR code of the public card URL and wallet passes."""

import logging

from xscard.application.documents import CARDS, USERS, card_from_document, user_from_document
from xscard.application.dto import (
    NotFound,
    ProviderFailure,
    QrImage,
    UpstreamFailure,
    WalletPass,
)
from xscard.application.ports import (
    DocumentStore,
    DocumentStoreError,
    QrEncoder,
    QrEncodingError,
    WalletPassError,
    WalletPassProvider,
)

logger = logging.getLogger(__name__)


def public_card_url(base_url: str, user_id: str) -> str:
    """URL a scanner opens to view and save the owner's card."""
    return f"{base_url.rstrip('/')}/saveContact?userId={user_id}"


class SharingService:
    def __init__(
        self,
        store: DocumentStore,
        encoder: QrEncoder,
        *,
        card_base_url: str,
        wallet: WalletPassProvider | None = None,
    ) -> None:
        self._store = store
        self._encoder = encoder
        self._card_base_url = card_base_url
        self._wallet = wallet

    @property
    def wallet_enabled(self) -> bool:
        return self._wallet is not None

    def qr_for_user(self, user_id: str) -> QrImage | NotFound | UpstreamFailure:
        try:
            if self._store.get(USERS, user_id) is None:
                return NotFound(kind="User", id=user_id)
        except DocumentStoreError as e:
            logger.exception("QR user lookup failed for %s", user_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))
        url = public_card_url(self._card_base_url, user_id)
        try:
            png = self._encoder.encode_png(url)
        except QrEncodingError as e:
            logger.exception("QR encoding failed for %s", user_id)
            return UpstreamFailure(message="Failed to generate QR code", error=str(e))
        return QrImage(user_id=user_id, url=url, png=png)

    def create_wallet_pass(
        self, user_id: str
    ) -> WalletPass | NotFound | ProviderFailure | UpstreamFailure:
        """Forward the owner's card details to the wallet-pass provider."""
        if self._wallet is None:
            return ProviderFailure(
                message="Wallet passes are not configured", error="no provider"
            )
        try:
            user_data = self._store.get(USERS, user_id)
            if user_data is None:
                return NotFound(kind="User", id=user_id)
            card_data = self._store.get(CARDS, user_id)
        except DocumentStoreError as e:
            logger.exception("Wallet pass lookup failed for %s", user_id)
            return UpstreamFailure(message="Internal Server Error", error=str(e))

        user = user_from_document(user_id, user_data)
        card = card_from_document(user_id, card_data) if card_data else None
        payload = {
            "userId": user_id,
            "firstName": user.name,
            "lastName": user.surname,
            "email": (card.email if card and card.email else user.email),
            "phone": (card.phone_number if card and card.phone_number else user.phone),
            "company": (card.company if card and card.company else user.company),
            "title": (card.title if card and card.title else user.occupation),
            "barcodeValue": public_card_url(self._card_base_url, user_id),
            "profileImage": user.profile_image,
        }
        try:
            response = self._wallet.create_pass(payload)
        except WalletPassError as e:
            logger.warning("Wallet pass creation failed for %s: %s", user_id, e)
            return ProviderFailure(message="Failed to create wallet pass", error=str(e))
        return WalletPass(user_id=user_id, response=response)
