"""Local-first wishlist cache reconciled with the remote ``wishlist`` table.

Workflow summary:

* Every mutation changes the in-memory list and the local store before the
  first ``await``, so the local half of an operation is atomic with respect to
  other coroutines and is never rolled back.
* When a ``(client, user_id)`` binding exists, ``add``/``remove`` then push the
  change to the server. Failures are reported through the returned
  :class:`WishlistMutationResult` and a ``propagation_failed`` event.
* ``resync`` pulls the user's rows and replaces local state with them (the
  server is authoritative). At most one resync runs at a time; overlapping
  requests return ``SyncStatus.SKIPPED`` without touching the network.
* Ids the server has not acknowledged are recorded under a second local key,
  so ``merge_unsynced_on_resync`` still finds them after a restart.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from storefront.errors import (
    DuplicateEntryError,
    EntryValidationError,
    RemotePropagationError,
    RemoteServiceError,
    RemoteUnavailableError,
)
from storefront.remote.wishlist_client import RemoteWishlistService
from storefront.schemas.product import normalize_product_id
from storefront.schemas.wishlist import (
    MutationErrorType,
    PropagationStatus,
    ResyncResult,
    SyncStatus,
    WishlistEntry,
    WishlistEvent,
    WishlistEventKind,
    WishlistMutationResult,
    WishlistRow,
)
from storefront.services.persistence import LocalMirror
from storefront.settings import DEFAULT_PLACEHOLDER_DESCRIPTION, DEFAULT_PLACEHOLDER_IMAGE_URL

logger = logging.getLogger(__name__)

WishlistListener = Callable[[WishlistEvent], None]


class WishlistCache:
    """Ordered wishlist mirrored locally and, once bound, on the server."""

    def __init__(
        self,
        mirror: LocalMirror,
        *,
        pending_mirror: LocalMirror | None = None,
        placeholder_image_url: str = DEFAULT_PLACEHOLDER_IMAGE_URL,
        placeholder_description: str = DEFAULT_PLACEHOLDER_DESCRIPTION,
        merge_unsynced_on_resync: bool = False,
    ) -> None:
        self._mirror = mirror
        self._pending_mirror = pending_mirror
        self._placeholder_image_url = placeholder_image_url
        self._placeholder_description = placeholder_description
        self._merge_unsynced_on_resync = merge_unsynced_on_resync

        self._entries: list[WishlistEntry] = []
        self._client: RemoteWishlistService | None = None
        self._user_id: str | None = None
        self._sync_in_progress = False
        # Product ids added locally that the server has not acknowledged. Kept
        # under ``pending_mirror`` so they outlive the process.
        self._unsynced: set[str] = set()
        self._listeners: list[WishlistListener] = []

        self.hydrate()

    # -- state -------------------------------------------------------------------

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def is_bound(self) -> bool:
        return self._client is not None and self._user_id is not None

    @property
    def sync_in_progress(self) -> bool:
        return self._sync_in_progress

    @property
    def unsynced_product_ids(self) -> set[str]:
        return set(self._unsynced)

    def contains(self, product_id: Any) -> bool:
        try:
            key = normalize_product_id(product_id)
        except ValueError:
            return False
        return any(entry.product_id == key for entry in self._entries)

    def count(self) -> int:
        return len(self._entries)

    def entries(self) -> list[WishlistEntry]:
        return [entry.model_copy() for entry in self._entries]

    def subscribe(self, listener: WishlistListener) -> Callable[[], None]:
        """Register ``listener`` for wishlist events; returns an unsubscribe hook."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def hydrate(self) -> None:
        """Load entries from the local store, dropping malformed or repeated ids."""

        entries: list[WishlistEntry] = []
        seen: set[str] = set()
        for record in self._mirror.load_records():
            try:
                entry = WishlistEntry.from_product(
                    record,
                    placeholder_image_url=self._placeholder_image_url,
                    placeholder_description=self._placeholder_description,
                )
            except EntryValidationError as exc:
                logger.warning("Skipping malformed wishlist record %s: %s", record, exc)
                continue
            if entry.product_id in seen:
                continue
            seen.add(entry.product_id)
            entries.append(entry)
        self._entries = entries

        pending: set[str] = set()
        if self._pending_mirror is not None:
            for record in self._pending_mirror.load_records():
                try:
                    pending.add(normalize_product_id(record.get("id")))
                except ValueError:
                    continue
        self._unsynced = pending & seen
        logger.info(
            "Wishlist hydrated with %d entr(ies), %d awaiting sync",
            len(self._entries),
            len(self._unsynced),
        )

    # -- binding -----------------------------------------------------------------

    async def bind(self, client: RemoteWishlistService, user_id: str) -> ResyncResult:
        """Attach a remote client for ``user_id`` and pull the server state."""

        if not user_id:
            raise ValueError("bind() requires a non-empty user id")

        self._client = client
        self._user_id = user_id
        logger.info("Wishlist bound to user %s", user_id)
        return await self.resync()

    def unbind(self) -> None:
        """Drop the remote binding; local entries stay as they are."""

        if self._user_id is not None:
            logger.info("Wishlist unbound from user %s", self._user_id)
        self._client = None
        self._user_id = None

    async def resync(self) -> ResyncResult:
        """Replace local entries with the bound user's remote rows."""

        if self._sync_in_progress:
            logger.debug("Wishlist resync already running; skipping duplicate request")
            self._emit(WishlistEventKind.RESYNC_SKIPPED)
            return ResyncResult(status=SyncStatus.SKIPPED, entry_count=self.count())

        try:
            client, user_id = self._require_binding()
        except RemoteUnavailableError as exc:
            logger.warning("Wishlist resync skipped: %s", exc)
            return ResyncResult(status=SyncStatus.UNBOUND, entry_count=self.count())

        self._sync_in_progress = True
        try:
            while True:
                rows: list[WishlistRow] = []
                failure: RemoteServiceError | None = None
                try:
                    rows = await client.select_by_user(user_id)
                except RemoteServiceError as exc:
                    failure = exc

                # A fetch for a stale binding is retried whether it succeeded or not.
                if self._client is client and self._user_id == user_id:
                    break
                if not self.is_bound:
                    logger.info("Wishlist unbound during resync; discarding fetch result")
                    return ResyncResult(status=SyncStatus.UNBOUND, entry_count=self.count())
                logger.info(
                    "Wishlist binding changed during resync; refetching for user %s",
                    self._user_id,
                )
                client, user_id = self._require_binding()

            if failure is not None:
                error = RemotePropagationError("select", None, failure)
                logger.error("Wishlist resync failed for user %s: %s", user_id, error)
                self._emit(WishlistEventKind.RESYNC_FAILED, detail=str(error))
                return ResyncResult(
                    status=SyncStatus.FAILED,
                    entry_count=self.count(),
                    error=str(error),
                )

            remote_entries = self._entries_from_rows(rows)
            pending: list[WishlistEntry] = []
            if self._merge_unsynced_on_resync:
                remote_ids = {entry.product_id for entry in remote_entries}
                pending = [
                    entry
                    for entry in self._entries
                    if entry.product_id in self._unsynced
                    and entry.product_id not in remote_ids
                ]
            elif self._unsynced:
                logger.warning(
                    "Resync discards %d wishlist entr(ies) never confirmed by the server: %s",
                    len(self._unsynced),
                    sorted(self._unsynced),
                )

            self._entries = remote_entries + pending
            self._unsynced = {entry.product_id for entry in pending}
            self._persist()
            logger.info(
                "Wishlist resynced for user %s: %d remote, %d kept local",
                user_id,
                len(remote_entries),
                len(pending),
            )
            self._emit(WishlistEventKind.RESYNC_COMPLETED, detail=f"{self.count()} entries")

            for entry in pending:
                await self._push_insert(client, user_id, entry)

            return ResyncResult(
                status=SyncStatus.COMPLETED,
                entry_count=self.count(),
                merged_count=len(pending),
            )
        finally:
            self._sync_in_progress = False

    # -- mutations ---------------------------------------------------------------

    async def add(self, product: Mapping[str, Any] | WishlistEntry) -> WishlistMutationResult:
        """Add ``product`` locally, then try to insert it remotely.

        Malformed or duplicate products are rejected before any mutation. A
        failed remote insert leaves the local entry in place.
        """

        try:
            entry = self._coerce(product)
        except EntryValidationError as exc:
            logger.error("Rejected wishlist entry %s: %s", product, exc)
            return _rejected(None, MutationErrorType.VALIDATION, exc)

        product_id = entry.product_id
        if self.contains(product_id):
            duplicate = DuplicateEntryError(f"Product {product_id} is already in the wishlist")
            logger.info("%s", duplicate)
            return _rejected(product_id, MutationErrorType.DUPLICATE, duplicate)

        self._entries.append(entry)
        self._unsynced.add(product_id)
        self._persist()
        self._emit(WishlistEventKind.LOCAL_COMMITTED, product_id=product_id, detail="add")

        try:
            client, user_id = self._require_binding()
        except RemoteUnavailableError:
            logger.warning("Wishlist not bound; product %s saved locally only", product_id)
            return _committed(product_id, PropagationStatus.SKIPPED)

        return await self._push_insert(client, user_id, entry)

    async def remove(self, product_id: Any) -> WishlistMutationResult:
        """Remove ``product_id`` locally, then try to delete it remotely.

        Removing an absent product is not an error. The remote delete is still
        issued when bound so a stale server copy gets cleared.
        """

        try:
            key = normalize_product_id(product_id)
        except ValueError as exc:
            return _rejected(None, MutationErrorType.VALIDATION, exc)

        self._entries = [entry for entry in self._entries if entry.product_id != key]
        self._unsynced.discard(key)
        self._persist()
        self._emit(WishlistEventKind.LOCAL_COMMITTED, product_id=key, detail="remove")

        try:
            client, user_id = self._require_binding()
        except RemoteUnavailableError:
            logger.warning("Wishlist not bound; removal of %s applied locally only", key)
            return _committed(key, PropagationStatus.SKIPPED)

        try:
            await client.delete(user_id, key)
        except RemoteServiceError as exc:
            return self._propagation_failed("delete", key, exc)

        self._emit(WishlistEventKind.PROPAGATION_SUCCEEDED, product_id=key, detail="delete")
        return _committed(key, PropagationStatus.SYNCED)

    # -- helpers -----------------------------------------------------------------

    async def _push_insert(
        self, client: RemoteWishlistService, user_id: str, entry: WishlistEntry
    ) -> WishlistMutationResult:
        try:
            await client.insert(entry.to_row(user_id))
        except RemoteServiceError as exc:
            return self._propagation_failed("insert", entry.product_id, exc)

        self._unsynced.discard(entry.product_id)
        self._persist_pending()
        self._emit(
            WishlistEventKind.PROPAGATION_SUCCEEDED,
            product_id=entry.product_id,
            detail="insert",
        )
        return _committed(entry.product_id, PropagationStatus.SYNCED)

    def _propagation_failed(
        self, operation: str, product_id: str, cause: RemoteServiceError
    ) -> WishlistMutationResult:
        error = RemotePropagationError(operation, product_id, cause)
        logger.error("%s; local wishlist keeps its state", error)
        self._emit(
            WishlistEventKind.PROPAGATION_FAILED, product_id=product_id, detail=str(error)
        )
        return WishlistMutationResult(
            product_id=product_id,
            accepted=True,
            local_committed=True,
            propagation=PropagationStatus.FAILED,
            error_type=MutationErrorType.PROPAGATION,
            error=str(error),
        )

    def _require_binding(self) -> tuple[RemoteWishlistService, str]:
        if self._client is None or self._user_id is None:
            raise RemoteUnavailableError("no remote client or user identity is bound")
        return self._client, self._user_id

    def _coerce(self, product: Mapping[str, Any] | WishlistEntry) -> WishlistEntry:
        if isinstance(product, WishlistEntry):
            return product.model_copy()
        if not isinstance(product, Mapping):
            raise EntryValidationError(f"Expected a product mapping, got {type(product).__name__}")
        return WishlistEntry.from_product(
            product,
            placeholder_image_url=self._placeholder_image_url,
            placeholder_description=self._placeholder_description,
        )

    def _entries_from_rows(self, rows: list[WishlistRow]) -> list[WishlistEntry]:
        entries: list[WishlistEntry] = []
        seen: set[str] = set()
        for row in rows:
            if row.product_id in seen:
                continue
            seen.add(row.product_id)
            entries.append(
                WishlistEntry.from_row(
                    row,
                    placeholder_image_url=self._placeholder_image_url,
                    placeholder_description=self._placeholder_description,
                )
            )
        return entries

    def _persist(self) -> None:
        self._mirror.save_records([entry.to_storage() for entry in self._entries])
        self._persist_pending()

    def _persist_pending(self) -> None:
        if self._pending_mirror is None:
            return
        records = [
            {"id": entry.product_id}
            for entry in self._entries
            if entry.product_id in self._unsynced
        ]
        self._pending_mirror.save_records(records)

    def _emit(
        self,
        kind: WishlistEventKind,
        *,
        product_id: str | None = None,
        detail: str | None = None,
    ) -> None:
        event = WishlistEvent(kind=kind, product_id=product_id, detail=detail)
        for listener in list(self._listeners):
            listener(event)


def _committed(product_id: str, propagation: PropagationStatus) -> WishlistMutationResult:
    return WishlistMutationResult(
        product_id=product_id,
        accepted=True,
        local_committed=True,
        propagation=propagation,
    )


def _rejected(
    product_id: str | None, error_type: MutationErrorType, error: Exception
) -> WishlistMutationResult:
    return WishlistMutationResult(
        product_id=product_id,
        accepted=False,
        local_committed=False,
        propagation=PropagationStatus.NOT_ATTEMPTED,
        error_type=error_type,
        error=str(error),
    )


__all__ = ["WishlistCache", "WishlistListener"]
