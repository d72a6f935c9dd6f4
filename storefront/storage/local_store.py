"""Persistent key/value stores backing the cart and wishlist mirrors.

Every backend honours the same tiny contract: ``load`` returns the stored
string (or ``None``) and ``save`` returns ``False`` instead of raising when the
underlying medium refuses a write. Deciding what a failed write means is left
to :class:`storefront.services.persistence.LocalMirror`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_REDIS_KEY_PREFIX = "storefront"


class LocalStore(Protocol):
    """Synchronous string store scoped to a single storefront origin."""

    def load(self, key: str) -> str | None:
        ...

    def save(self, key: str, value: str) -> bool:
        ...


class MemoryLocalStore:
    """Process-local store used by tests and ``memory://`` configurations."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.data.get(key)

    def save(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True


class FileLocalStore:
    """Keep every key inside one JSON document on disk.

    Writes go to a sibling ``.tmp`` file first and are then moved into place so a
    crash mid-write never leaves a truncated document behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self, key: str) -> str | None:
        value = self._read_document().get(key)
        return value if isinstance(value, str) else None

    def save(self, key: str, value: str) -> bool:
        document = self._read_document()
        document[key] = value
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to write local store %s: %s", self.path, exc)
            return False
        return True

    def _read_document(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable local store %s: %s", self.path, exc)
            return {}
        if not isinstance(document, dict):
            logger.warning("Local store %s does not hold a JSON object; ignoring", self.path)
            return {}
        return document


class RedisLocalStore:
    """Redis-backed store for deployments sharing state across processes."""

    def __init__(self, client: Redis, *, prefix: str = _REDIS_KEY_PREFIX) -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> RedisLocalStore:
        return cls(Redis.from_url(url, decode_responses=True, encoding="utf-8"))

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def load(self, key: str) -> str | None:
        try:
            return self._client.get(self._key(key))
        except RedisError as exc:
            logger.warning("Redis load failed for key %s: %s", key, exc)
            return None

    def save(self, key: str, value: str) -> bool:
        try:
            self._client.set(self._key(key), value)
        except RedisError as exc:
            logger.error("Redis save failed for key %s: %s", key, exc)
            return False
        return True


def create_local_store(url: str) -> LocalStore:
    """Instantiate the backend addressed by ``url``.

    ``memory://`` keeps data in-process, ``file://<path>`` stores a JSON document,
    and ``redis://``/``rediss://`` URLs are handed to :meth:`Redis.from_url`.
    """

    scheme, separator, remainder = url.partition("://")
    if not separator:
        raise RuntimeError(f"LOCAL_STORE_URL must include a scheme, received: {url}")

    scheme = scheme.lower()
    if scheme == "memory":
        return MemoryLocalStore()
    if scheme == "file":
        if not remainder:
            raise RuntimeError("file:// LOCAL_STORE_URL requires a path")
        return FileLocalStore(remainder)
    if scheme in {"redis", "rediss"}:
        return RedisLocalStore.from_url(url)

    raise RuntimeError(f"Unsupported LOCAL_STORE_URL scheme: {scheme}")


__all__ = [
    "FileLocalStore",
    "LocalStore",
    "MemoryLocalStore",
    "RedisLocalStore",
    "create_local_store",
]
