"""Local persistence backends."""

from .local_store import (
    FileLocalStore,
    LocalStore,
    MemoryLocalStore,
    RedisLocalStore,
    create_local_store,
)

__all__ = [
    "FileLocalStore",
    "LocalStore",
    "MemoryLocalStore",
    "RedisLocalStore",
    "create_local_store",
]
