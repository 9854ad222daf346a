"""Notifying store.

:class:`NotifyingStore` wraps a store core and tells its data source about
every change that should bubble through a cascade of stores: records loaded
in bulk or one at a time, content written by an async completion, and records
removed.

Notifications are sent synchronously, once per logical change, after the
change has been applied to the core.  Removal is the exception: the data
source hears about it *before* the core drops the record, while the record's
id and type can still be read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from cascadestore._redact import redact_for_log
from cascadestore.config import StoreConfig
from cascadestore.core import StoreCore
from cascadestore.data_source import DataSource, NullDataSource
from cascadestore.exceptions import BadStateError
from cascadestore.records import Record, RecordType, record_type_at
from cascadestore.status import RecordStatus, can_complete, is_busy, is_destroyed

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class NotifyingStore:
    """Store wrapper that notifies its data source of changes.

    Parameters
    ----------
    core : StoreCore
        The store that actually holds the records.
    data_source : DataSource or None
        Observer of changes.  ``None`` installs a :class:`NullDataSource`.
    config : StoreConfig or None
        Tombstone detection and log tracing options.
    clock : callable
        Returns the current time; used for the last-retrieved-at table.
    """

    def __init__(
        self,
        core: StoreCore,
        data_source: DataSource | None = None,
        *,
        config: StoreConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._core = core
        self._data_source: DataSource = data_source or NullDataSource()
        self._config = config or StoreConfig()
        self._clock = clock
        self._last_retrieved_at: dict[RecordType, datetime] = {}

    @property
    def core(self) -> StoreCore:
        return self._core

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def data_source(self) -> DataSource:
        return self._data_source

    @data_source.setter
    def data_source(self, value: DataSource | None) -> None:
        self._data_source = value or NullDataSource()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_records(
        self,
        record_types: RecordType | Sequence[RecordType | None] | None,
        data_hashes: Sequence[dict[str, Any]],
        ids: Sequence[Any] | None = None,
    ) -> list[int]:
        """Load a batch of data hashes and notify the data source once.

        *record_types* is one record type for the whole batch, ``None`` for
        :class:`Record`, or a sequence parallel to *data_hashes*.  Without
        *ids*, each identifier is read from the data hash using the record
        type's primary key.

        Returns the store keys of the loaded records in batch order.
        Tombstones produce no key, so the result may be shorter than the
        batch.

        The single ``did_load_records`` notification reports one record type.
        For a batch with per-item types that is the type of the last item; the
        resolved type of every item is passed alongside as *record_types*.

        Raises
        ------
        ValueError
            *ids* does not have one entry per data hash.  Nothing is loaded.
        """
        if ids is not None and len(ids) != len(data_hashes):
            raise ValueError(f"Got {len(ids)} ids for {len(data_hashes)} data hashes")

        store_keys: list[int] = []
        resolved_types: list[RecordType] = []
        record_type: RecordType = record_type_at(record_types, 0)

        for idx, data_hash in enumerate(data_hashes):
            record_type = record_type_at(record_types, idx)
            resolved_types.append(record_type)
            id = ids[idx] if ids is not None else record_type.id_from_data_hash(data_hash)
            store_key = self.load_record(record_type, data_hash, id, ignore_notify=True)
            if store_key is not None:
                store_keys.append(store_key)

        ds = self._data_source
        if ds.wants_notification:
            self._trace("did_load_records", record_type, None, data_hashes)
            ds.notify_did_load_records(self, record_type, data_hashes, ids, record_types=resolved_types)

        return store_keys

    def load_record(
        self,
        record_type: RecordType | None,
        data_hash: dict[str, Any],
        id: Any = None,
        ignore_notify: bool = False,
    ) -> int | None:
        """Load one data hash, notifying the data source unless *ignore_notify*.

        A tombstone data hash is not loaded: the record is destroyed instead
        and ``None`` is returned.  When that destroys a live record, the data
        source hears ``did_destroy_record`` first, as with
        :meth:`remove_data_hash`, unless *ignore_notify* is set.
        """
        record_type = record_type or Record

        if self._config.is_tombstone(data_hash):
            _logger.debug("Tombstone for %s id=%r; pushing destroy", record_type.__name__, id)
            with self._core.cycle.scope():
                if not ignore_notify:
                    self._notify_pushed_destroy(record_type, id)
                self._core.push_destroy(record_type, id)
            return None

        store_key = self._core.load_record(record_type, data_hash, id)

        ds = self._data_source
        if not ignore_notify and ds.wants_notification:
            self._trace("did_load_record", record_type, id, data_hash)
            ds.notify_did_load_record(self, record_type, data_hash, id)

        return store_key

    # ------------------------------------------------------------------
    # Async completion
    # ------------------------------------------------------------------

    def data_source_did_complete(
        self,
        store_key: int,
        data_hash: dict[str, Any] | None = None,
        new_id: Any = None,
        notify: bool = False,
    ) -> None:
        """Finish an in-flight fetch, create or commit for *store_key*.

        The record becomes READY_CLEAN.  A *new_id* re-keys the record; a
        *data_hash* replaces its content and, with *notify*, is reported to
        the data source as a write.

        Raises
        ------
        BadStateError
            The record has no operation in flight, or is being destroyed.
            Nothing is modified.
        """
        status = self._core.read_status(store_key)
        if not can_complete(status):
            _logger.debug("Rejected completion for store_key=%s in status %r", store_key, status)
            raise BadStateError(
                f"Cannot complete store_key={store_key} in status {RecordStatus(status)!r}",
                store_key=store_key,
                status=status,
            )

        status = RecordStatus.READY_CLEAN
        self._core.write_status(store_key, status)
        if new_id:
            self._core.replace_id_for(store_key, new_id)
        if data_hash:
            self.write_data_hash(store_key, data_hash, status, notify)

        status_only = not (data_hash or new_id)
        self._core.data_hash_did_change(store_key, None, status_only)

    # ------------------------------------------------------------------
    # Raw writes and removal
    # ------------------------------------------------------------------

    def write_data_hash(
        self,
        store_key: int,
        data_hash: dict[str, Any],
        status: int | None = None,
        notify: bool = False,
    ) -> None:
        """Write *data_hash* for *store_key*.

        Only reported to the data source when *notify* is true; internal
        bookkeeping writes stay silent.
        """
        self._core.write_data_hash(store_key, data_hash, status)

        if notify:
            ds = self._data_source
            if ds.wants_notification:
                id = self._core.id_for(store_key)
                record_type = self._core.record_type_for(store_key)
                self._trace("did_write_record", record_type, id, data_hash)
                ds.notify_did_write_record(self, record_type, data_hash, id)

    def remove_data_hash(self, store_key: int, status: int | None = None) -> None:
        """Remove the record's content, notifying the data source first."""
        ds = self._data_source
        if ds.wants_notification:
            id = self._core.id_for(store_key)
            record_type = self._core.record_type_for(store_key)
            self._trace("did_destroy_record", record_type, id, None)
            ds.notify_did_destroy_record(self, record_type, id)

        self._core.remove_data_hash(store_key, status)

    # ------------------------------------------------------------------
    # Last retrieved at
    # ------------------------------------------------------------------

    def did_retrieve_records(self, record_type: RecordType, at: datetime | None = None) -> datetime:
        """Record a successful bulk fetch of *record_type*; returns the timestamp stored."""
        when = at or self._clock()
        if when.tzinfo is None:
            when = when.replace(tzinfo=UTC)
        self._last_retrieved_at[record_type] = when
        return when

    def last_retrieved_at(self, record_type: RecordType) -> datetime | None:
        return self._last_retrieved_at.get(record_type)

    @property
    def last_retrieved_at_table(self) -> Mapping[RecordType, datetime]:
        return dict(self._last_retrieved_at)

    # ------------------------------------------------------------------
    # Read-through helpers
    # ------------------------------------------------------------------

    def read_status(self, store_key: int) -> RecordStatus:
        return self._core.read_status(store_key)

    def read_data_hash(self, store_key: int) -> dict[str, Any] | None:
        return self._core.read_data_hash(store_key)

    def id_for(self, store_key: int) -> Any:
        return self._core.id_for(store_key)

    def record_type_for(self, store_key: int) -> RecordType:
        return self._core.record_type_for(store_key)

    def store_key_for(self, record_type: RecordType, id: Any) -> int:
        return self._core.store_key_for(record_type, id)

    def _notify_pushed_destroy(self, record_type: RecordType, id: Any) -> None:
        ds = self._data_source
        if not ds.wants_notification:
            return
        store_key = self._core.store_key_exists(record_type, id)
        if store_key is None:
            return
        # push_destroy leaves these alone or refuses them.
        status = self._core.read_status(store_key)
        if status == RecordStatus.EMPTY or is_destroyed(status) or is_busy(status):
            return
        id = self._core.id_for(store_key)
        record_type = self._core.record_type_for(store_key)
        self._trace("did_destroy_record", record_type, id, None)
        ds.notify_did_destroy_record(self, record_type, id)

    def _trace(self, kind: str, record_type: RecordType, id: Any, payload: Any) -> None:
        if not self._config.trace_notifications:
            _logger.debug("Notifying %s for %s id=%r", kind, record_type.__name__, id)
            return
        _logger.debug(
            "Notifying %s for %s id=%r payload=%s",
            kind,
            record_type.__name__,
            id,
            redact_for_log(payload, max_string=self._config.log_max_string),
        )
