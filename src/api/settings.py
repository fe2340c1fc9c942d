"""Backend configuration read from the environment (.env loaded by api.main)."""

import os
from dataclasses import dataclass
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parent.parent.parent


def _env(name: str, default: str | None = None) -> str | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class Settings:
    store_backend: str = "memory"
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"
    email_host: str | None = None
    email_port: int = 465
    email_user: str | None = None
    email_password: str | None = None
    email_from_name: str = "XS Card"
    email_from_address: str | None = None
    card_public_url: str = "http://localhost:8383"
    media_dir: Path = _REPO_ROOT / "media"
    passcreator_public_url: str | None = None
    passcreator_api_key: str | None = None
    passcreator_template_id: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store_backend=(_env("STORE_BACKEND", "memory") or "memory").lower(),
            neo4j_uri=_env("NEO4J_URI", "bolt://localhost:7687"),
            neo4j_user=_env("NEO4J_USER", "neo4j"),
            neo4j_password=_env("NEO4J_PASSWORD", "password"),
            email_host=_env("EMAIL_HOST"),
            email_port=int(_env("EMAIL_SMTP_PORT", "465")),
            email_user=_env("EMAIL_USER"),
            email_password=_env("EMAIL_PASSWORD"),
            email_from_name=_env("EMAIL_FROM_NAME", "XS Card"),
            email_from_address=_env("EMAIL_FROM_ADDRESS"),
            card_public_url=_env("CARD_PUBLIC_URL", "http://localhost:8383"),
            media_dir=Path(_env("MEDIA_DIR", str(_REPO_ROOT / "media"))),
            passcreator_public_url=_env("PASSCREATOR_PUBLIC_URL"),
            passcreator_api_key=_env("PASSCREATOR_API_KEY"),
            passcreator_template_id=_env("PASSCREATOR_TEMPLATE_ID"),
        )

    @property
    def wallet_configured(self) -> bool:
        return bool(self.passcreator_api_key and self.passcreator_template_id)
