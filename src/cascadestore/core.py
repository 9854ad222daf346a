"""Store core contract and an in-memory reference implementation.

The store core owns the record data: store key allocation, per-record status,
data hashes and the (record type, id) index.  The notifying store only ever
talks to it through :class:`StoreCore`.
"""

from __future__ import annotations

import copy
import itertools
import logging
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any, Protocol

from cascadestore.cycle import UpdateCycle
from cascadestore.exceptions import RecordBusyError, UnknownStoreKeyError
from cascadestore.records import RecordType, record_type_at
from cascadestore.status import RecordStatus, is_busy, is_destroyed

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeNotice:
    """A record change reported to store observers."""

    store_key: int
    field: str | None = None
    status_only: bool = False


ChangeObserver = Callable[[ChangeNotice], None]


class StoreCore(Protocol):
    """Operations a notifying store requires of the store it wraps."""

    cycle: UpdateCycle

    def load_record(self, record_type: RecordType, data_hash: dict[str, Any], id: Any = None) -> int: ...

    def load_records(
        self,
        record_types: RecordType | Sequence[RecordType | None] | None,
        data_hashes: Sequence[dict[str, Any]],
        ids: Sequence[Any] | None = None,
    ) -> list[int]: ...

    def write_data_hash(self, store_key: int, data_hash: dict[str, Any], status: int | None = None) -> None: ...

    def remove_data_hash(self, store_key: int, status: int | None = None) -> None: ...

    def read_status(self, store_key: int) -> RecordStatus: ...

    def write_status(self, store_key: int, status: int) -> None: ...

    def read_data_hash(self, store_key: int) -> dict[str, Any] | None: ...

    def id_for(self, store_key: int) -> Any: ...

    def replace_id_for(self, store_key: int, new_id: Any) -> None: ...

    def record_type_for(self, store_key: int) -> RecordType: ...

    def store_key_for(self, record_type: RecordType, id: Any) -> int: ...

    def store_key_exists(self, record_type: RecordType, id: Any) -> int | None: ...

    def data_hash_did_change(self, store_key: int, field: str | None = None, status_only: bool = False) -> None: ...

    def push_destroy(self, record_type: RecordType, id: Any) -> int | None: ...


class MemoryStore:
    """In-memory store core.

    Store keys are positive integers allocated on first lookup of a
    (record type, id) pair.  Observers registered with :meth:`observe` are
    told about every change through the update cycle, so changes made inside
    an open cycle reach them together when it ends.  Only the latest
    *change_log_size* notices are kept in :attr:`changes`.

    Data hashes are copied on the way in and out, so callers never share
    a dict with the store.
    """

    def __init__(self, *, cycle: UpdateCycle | None = None, change_log_size: int | None = 1000) -> None:
        self.cycle = cycle or UpdateCycle()
        self._key_counter = itertools.count(1)
        self._keys: dict[tuple[RecordType, Any], int] = {}
        self._ids: dict[int, Any] = {}
        self._record_types: dict[int, RecordType] = {}
        self._statuses: dict[int, RecordStatus] = {}
        self._data_hashes: dict[int, dict[str, Any]] = {}
        self._changes: deque[ChangeNotice] = deque(maxlen=change_log_size)
        self._observers: list[ChangeObserver] = []

    # ------------------------------------------------------------------
    # Keys and identity
    # ------------------------------------------------------------------

    def _require(self, store_key: int) -> None:
        if store_key not in self._record_types:
            raise UnknownStoreKeyError(store_key)

    def store_key_exists(self, record_type: RecordType, id: Any) -> int | None:
        """Return the key for (record_type, id) without allocating one."""
        if id is None:
            return None
        return self._keys.get((record_type, id))

    def store_key_for(self, record_type: RecordType, id: Any) -> int:
        """Return the key for (record_type, id), allocating it on first use.

        Records without an id always get a fresh key.
        """
        existing = self.store_key_exists(record_type, id)
        if existing is not None:
            return existing
        store_key = next(self._key_counter)
        if id is not None:
            self._keys[(record_type, id)] = store_key
        self._ids[store_key] = id
        self._record_types[store_key] = record_type
        self._statuses[store_key] = RecordStatus.EMPTY
        return store_key

    @property
    def store_keys(self) -> list[int]:
        return list(self._record_types)

    def id_for(self, store_key: int) -> Any:
        self._require(store_key)
        return self._ids[store_key]

    def record_type_for(self, store_key: int) -> RecordType:
        self._require(store_key)
        return self._record_types[store_key]

    def replace_id_for(self, store_key: int, new_id: Any) -> None:
        """Re-key *store_key* under *new_id* (e.g. after a server assigns one)."""
        self._require(store_key)
        record_type = self._record_types[store_key]
        old_id = self._ids[store_key]
        if old_id is not None and self._keys.get((record_type, old_id)) == store_key:
            del self._keys[(record_type, old_id)]
        self._ids[store_key] = new_id
        if new_id is not None:
            self._keys[(record_type, new_id)] = store_key

    # ------------------------------------------------------------------
    # Status and data
    # ------------------------------------------------------------------

    def read_status(self, store_key: int) -> RecordStatus:
        self._require(store_key)
        return self._statuses[store_key]

    def write_status(self, store_key: int, status: int) -> None:
        self._require(store_key)
        self._statuses[store_key] = RecordStatus(status)

    def read_data_hash(self, store_key: int) -> dict[str, Any] | None:
        self._require(store_key)
        data_hash = self._data_hashes.get(store_key)
        return copy.deepcopy(data_hash) if data_hash is not None else None

    def write_data_hash(self, store_key: int, data_hash: dict[str, Any], status: int | None = None) -> None:
        self._require(store_key)
        self._data_hashes[store_key] = copy.deepcopy(data_hash)
        if status is not None:
            self._statuses[store_key] = RecordStatus(status)

    def remove_data_hash(self, store_key: int, status: int | None = None) -> None:
        """Drop the record's content, leaving it in *status* (DESTROYED_CLEAN by default)."""
        self._require(store_key)
        self._data_hashes.pop(store_key, None)
        self._statuses[store_key] = RecordStatus(status if status is not None else RecordStatus.DESTROYED_CLEAN)

    # ------------------------------------------------------------------
    # Loading and server-side destroy
    # ------------------------------------------------------------------

    def load_record(self, record_type: RecordType, data_hash: dict[str, Any], id: Any = None) -> int:
        if id is None:
            id = record_type.id_from_data_hash(data_hash)
        store_key = self.store_key_for(record_type, id)
        self.write_data_hash(store_key, data_hash, RecordStatus.READY_CLEAN)
        self.data_hash_did_change(store_key)
        return store_key

    def load_records(
        self,
        record_types: RecordType | Sequence[RecordType | None] | None,
        data_hashes: Sequence[dict[str, Any]],
        ids: Sequence[Any] | None = None,
    ) -> list[int]:
        store_keys: list[int] = []
        for idx, data_hash in enumerate(data_hashes):
            record_type = record_type_at(record_types, idx)
            id = ids[idx] if ids is not None else record_type.id_from_data_hash(data_hash)
            store_keys.append(self.load_record(record_type, data_hash, id))
        return store_keys

    def push_destroy(self, record_type: RecordType, id: Any) -> int | None:
        """Apply a destroy reported by the server.

        Unknown, empty and already destroyed records are left alone.  A record
        with an operation in flight cannot be destroyed underneath it.
        """
        store_key = self.store_key_exists(record_type, id)
        if store_key is None:
            _logger.debug("push_destroy for unknown record %s id=%r ignored", record_type.__name__, id)
            return None

        status = self._statuses[store_key]
        if status == RecordStatus.EMPTY or is_destroyed(status):
            return store_key
        if is_busy(status):
            raise RecordBusyError(
                f"Cannot destroy {record_type.__name__} id={id!r} while busy",
                store_key=store_key,
                status=status,
            )

        self.remove_data_hash(store_key, RecordStatus.DESTROYED_CLEAN)
        self.data_hash_did_change(store_key)
        return store_key

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def observe(self, observer: ChangeObserver) -> None:
        self._observers.append(observer)

    def unobserve(self, observer: ChangeObserver) -> None:
        self._observers.remove(observer)

    @property
    def changes(self) -> list[ChangeNotice]:
        """The most recent changes signalled, oldest first."""
        return list(self._changes)

    def data_hash_did_change(self, store_key: int, field: str | None = None, status_only: bool = False) -> None:
        self._require(store_key)
        notice = ChangeNotice(store_key=store_key, field=field, status_only=status_only)
        self._changes.append(notice)
        for observer in list(self._observers):
            self.cycle.schedule(partial(observer, notice))
