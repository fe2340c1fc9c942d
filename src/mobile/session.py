"""Locally persisted session record (the signed-in user), injected into the reconciler."""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SESSION_KEY = "userData"


@dataclass(frozen=True)
class Session:
    """Owner id plus the display fields captured at sign-in."""

    user_id: str
    name: str = ""
    surname: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Session | None":
        user_id = str(data.get("user_id") or data.get("id") or "").strip()
        if not user_id:
            return None
        return cls(
            user_id=user_id,
            name=str(data.get("name") or ""),
            surname=str(data.get("surname") or ""),
            email=str(data.get("email") or ""),
        )


class SessionStore(Protocol):
    def get(self) -> Session | None: ...

    def set(self, session: Session) -> None: ...

    def clear(self) -> None: ...


class InMemorySessionStore:
    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def get(self) -> Session | None:
        return self._session

    def set(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class JsonFileSessionStore:
    """Key-value JSON file, one record under SESSION_KEY (mirrors the app's async storage)."""

    def __init__(self, path: Path, key: str = SESSION_KEY) -> None:
        self._path = path
        self._key = key

    def _load(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable session file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data), encoding="utf-8")

    def get(self) -> Session | None:
        raw = self._load().get(self._key)
        if not isinstance(raw, dict):
            return None
        return Session.from_dict(raw)

    def set(self, session: Session) -> None:
        data = self._load()
        data[self._key] = asdict(session)
        self._save(data)

    def clear(self) -> None:
        data = self._load()
        if data.pop(self._key, None) is not None:
            self._save(data)
