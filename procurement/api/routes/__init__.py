"""Route modules exposed by the API package."""

from . import auth, metrics, ping, tickets, users

__all__ = ["auth", "metrics", "ping", "tickets", "users"]
