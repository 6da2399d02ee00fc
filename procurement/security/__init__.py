"""Credential hashing and bearer token helpers."""

from .passwords import hash_password, verify_password
from .tokens import InvalidTokenError, create_access_token, decode_access_token

__all__ = [
    "InvalidTokenError",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
]
