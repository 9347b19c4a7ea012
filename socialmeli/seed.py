"""Default demo users for the in-memory store."""

from __future__ import annotations

from .memory_store import MemoryStore
from .models import User

DEFAULT_USERS = (
    User(id=123, name="usuario123", is_seller=False),
    User(id=234, name="vendedor1", is_seller=True),
    User(id=6932, name="vendedor2", is_seller=True),
    User(id=4698, name="usuario1", is_seller=False),
)


def seed_default(store: MemoryStore) -> None:
    """Insert the default demo users into the store."""
    store.seed_users(DEFAULT_USERS)