"""Serialization helpers shared by the cart and wishlist local mirrors."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from storefront.errors import LocalPersistenceError
from storefront.storage import LocalStore

logger = logging.getLogger(__name__)

PersistenceFallback = Literal["raise", "memory"]


class LocalMirror:
    """Mirror an ordered list of flat records into one local store key.

    ``fallback`` decides what happens when the store refuses a write: ``"raise"``
    surfaces :class:`LocalPersistenceError`, ``"memory"`` logs once and stops
    writing for the rest of the session.
    """

    def __init__(
        self,
        store: LocalStore,
        key: str,
        *,
        fallback: PersistenceFallback = "raise",
    ) -> None:
        self._store = store
        self._key = key
        self._fallback = fallback
        self._memory_only = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def memory_only(self) -> bool:
        """``True`` after a failed write degraded this mirror to memory-only."""

        return self._memory_only

    def load_records(self) -> list[dict[str, Any]]:
        """Return the stored records, or an empty list when absent or corrupt."""

        raw = self._store.load(self._key)
        if raw is None:
            return []
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Discarding corrupt local data under %r: %s", self._key, exc)
            return []
        if not isinstance(decoded, list):
            logger.warning("Discarding non-list local data under %r", self._key)
            return []
        return [record for record in decoded if isinstance(record, dict)]

    def save_records(self, records: list[dict[str, Any]]) -> bool:
        """Persist ``records``; returns ``False`` when running memory-only."""

        if self._memory_only:
            return False

        if self._store.save(self._key, json.dumps(records)):
            return True

        if self._fallback == "raise":
            raise LocalPersistenceError(f"Local store rejected write for key {self._key!r}")

        logger.warning(
            "Local store rejected write for %r; continuing memory-only for this session",
            self._key,
        )
        self._memory_only = True
        return False


__all__ = ["LocalMirror", "PersistenceFallback"]
