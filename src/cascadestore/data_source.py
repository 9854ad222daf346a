"""Data source capability.

A data source is the observer a notifying store reports changes to.  Every
data source declares :attr:`DataSource.wants_notification` and implements the
four hooks.  A data source that does not care about changes says so with
``wants_notification = False``; the store then skips the hooks entirely.

The base class funnels all four hooks into :meth:`DataSource.handle_event`, so
most data sources only implement that one method.
"""

from __future__ import annotations

import abc
import logging
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from cascadestore.config import StoreConfig
from cascadestore.core import StoreCore
from cascadestore.events import NotificationEvent, NotificationKind
from cascadestore.records import RecordType

_logger = logging.getLogger(__name__)


class DataSource(abc.ABC):
    """Observer of changes applied by a notifying store."""

    wants_notification: bool = True

    def notify_did_load_records(
        self,
        store: Any,
        record_type: RecordType,
        data_hashes: Sequence[dict[str, Any]],
        ids: Sequence[Any] | None,
        record_types: Sequence[RecordType] | None = None,
    ) -> None:
        """A batch was loaded.

        *record_type* is the type of the last item; *record_types*, when given,
        holds the type of every item.
        """
        self.handle_event(NotificationEvent.did_load_records(store, record_type, data_hashes, ids, record_types))

    def notify_did_load_record(self, store: Any, record_type: RecordType, data_hash: dict[str, Any], id: Any) -> None:
        self.handle_event(NotificationEvent.did_load_record(store, record_type, data_hash, id))

    def notify_did_write_record(self, store: Any, record_type: RecordType, data_hash: dict[str, Any], id: Any) -> None:
        self.handle_event(NotificationEvent.did_write_record(store, record_type, data_hash, id))

    def notify_did_destroy_record(self, store: Any, record_type: RecordType, id: Any) -> None:
        self.handle_event(NotificationEvent.did_destroy_record(store, record_type, id))

    @abc.abstractmethod
    def handle_event(self, event: NotificationEvent) -> None:
        """React to one notification."""


def dispatch_event(data_source: DataSource, event: NotificationEvent) -> None:
    """Deliver *event* to *data_source* through the matching hook."""
    if event.kind is NotificationKind.DID_LOAD_RECORDS:
        data_source.notify_did_load_records(
            event.store, event.record_type, event.data_hashes, event.ids, record_types=event.record_types
        )
    elif event.kind is NotificationKind.DID_LOAD_RECORD:
        data_source.notify_did_load_record(event.store, event.record_type, event.data_hash or {}, event.id)
    elif event.kind is NotificationKind.DID_WRITE_RECORD:
        data_source.notify_did_write_record(event.store, event.record_type, event.data_hash or {}, event.id)
    elif event.kind is NotificationKind.DID_DESTROY_RECORD:
        data_source.notify_did_destroy_record(event.store, event.record_type, event.id)
    else:  # pragma: no cover
        raise ValueError(f"Unsupported notification kind: {event.kind!r}")


class NullDataSource(DataSource):
    """Data source that wants no notifications."""

    wants_notification = False

    def handle_event(self, event: NotificationEvent) -> None:
        return None


class HistoryDataSource(DataSource):
    """Keeps the most recent notifications for inspection."""

    def __init__(self, maxlen: int | None = 1000) -> None:
        self._events: deque[NotificationEvent] = deque(maxlen=maxlen)

    @property
    def events(self) -> list[NotificationEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def handle_event(self, event: NotificationEvent) -> None:
        self._events.append(event)


class CallbackDataSource(DataSource):
    """Adapts a plain callable into a data source."""

    def __init__(self, callback: Callable[[NotificationEvent], None], *, wants_notification: bool = True) -> None:
        self._callback = callback
        self.wants_notification = wants_notification

    def handle_event(self, event: NotificationEvent) -> None:
        self._callback(event)


class CascadeDataSource(DataSource):
    """Fans notifications out to a list of child data sources.

    Children are notified in order; a child with ``wants_notification`` off is
    skipped.  A failing child propagates its exception and later children are
    not notified.
    """

    def __init__(self, children: Iterable[DataSource] = ()) -> None:
        self._children: list[DataSource] = list(children)

    @property
    def children(self) -> list[DataSource]:
        return list(self._children)

    def add(self, child: DataSource) -> None:
        self._children.append(child)

    def remove(self, child: DataSource) -> None:
        self._children.remove(child)

    @property  # type: ignore[override]
    def wants_notification(self) -> bool:
        return any(child.wants_notification for child in self._children)

    def handle_event(self, event: NotificationEvent) -> None:
        for child in self._children:
            if child.wants_notification:
                dispatch_event(child, event)


class MirrorDataSource(DataSource):
    """Applies notifications from one store to a sibling store core.

    Changes go straight into *target*, bypassing any notifying layer on top
    of it, so mirroring never echoes a notification back into the cascade.
    """

    def __init__(self, target: StoreCore, *, config: StoreConfig | None = None) -> None:
        self._target = target
        self._config = config or StoreConfig()

    @property
    def target(self) -> StoreCore:
        return self._target

    def handle_event(self, event: NotificationEvent) -> None:
        target = self._target
        with target.cycle.scope():
            if event.kind is NotificationKind.DID_LOAD_RECORDS:
                for idx, data_hash in enumerate(event.data_hashes):
                    record_type = event.record_types[idx] if event.record_types else event.record_type
                    id = event.ids[idx] if event.ids is not None else record_type.id_from_data_hash(data_hash)
                    if self._config.is_tombstone(data_hash):
                        target.push_destroy(record_type, id)
                    else:
                        target.load_record(record_type, data_hash, id)
            elif event.kind in (NotificationKind.DID_LOAD_RECORD, NotificationKind.DID_WRITE_RECORD):
                target.load_record(event.record_type, event.data_hash or {}, event.id)
            elif event.kind is NotificationKind.DID_DESTROY_RECORD:
                target.push_destroy(event.record_type, event.id)
        _logger.debug(
            "Mirrored %s for %s id=%r",
            event.kind.value,
            event.record_type.__name__,
            event.id,
        )
