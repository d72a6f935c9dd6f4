"""Keep the last GoTrue session in the local store between CLI runs."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from storefront.schemas.auth import AuthSession
from storefront.storage import LocalStore

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, store: LocalStore, key: str) -> None:
        self._store = store
        self._key = key

    def load(self) -> AuthSession | None:
        """Return the saved session, or ``None`` when absent, corrupt or expired."""

        raw = self._store.load(self._key)
        if not raw:
            return None
        try:
            session = AuthSession.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable session under %r: %s", self._key, exc)
            return None
        if session.is_expired():
            logger.info("Saved session for %s has expired", session.user.email or session.user.id)
            return None
        return session

    def save(self, session: AuthSession) -> None:
        if not self._store.save(self._key, session.model_dump_json()):
            logger.warning("Local store rejected the session; next run must sign in again")

    def clear(self) -> None:
        self._store.save(self._key, "")


__all__ = ["SessionStore"]
