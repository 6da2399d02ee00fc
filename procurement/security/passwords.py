from __future__ import annotations

from passlib.context import CryptContext

# pbkdf2 runs on every platform without a compiled backend.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a password, treating malformed stored hashes as a mismatch."""

    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        return False
