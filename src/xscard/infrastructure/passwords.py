"""Password hashing via passlib (pbkdf2_sha256, pure Python, no C extension)."""

from passlib.context import CryptContext

DEFAULT_ROUNDS = 29000


class Pbkdf2PasswordHasher:
    """Stored format is passlib's modular crypt string: $pbkdf2-sha256$<rounds>$<salt>$<hash>."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, stored: str) -> bool:
        # Unrecognized or malformed hashes raise ValueError in passlib.
        try:
            return self._context.verify(password, stored)
        except ValueError:
            return False
