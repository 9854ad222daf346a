"""Notification events sent from a notifying store to its data source.

Data source hooks receive positional arguments; :class:`NotificationEvent`
is the same information as one value, used by data sources that queue,
forward or replay notifications.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cascadestore.records import Record


class NotificationKind(StrEnum):
    DID_LOAD_RECORDS = "did_load_records"
    DID_LOAD_RECORD = "did_load_record"
    DID_WRITE_RECORD = "did_write_record"
    DID_DESTROY_RECORD = "did_destroy_record"


class NotificationEvent(BaseModel):
    """A single change notification."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: NotificationKind
    store: Any = Field(..., description="Store that applied the change")
    record_type: type[Record]
    data_hash: dict[str, Any] | None = None
    id: Any = None
    data_hashes: list[dict[str, Any]] = Field(default_factory=list)
    ids: list[Any] | None = None
    record_types: list[type[Record]] | None = Field(
        default=None,
        description="Resolved record type of each item in a batch load",
    )
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def did_load_records(
        cls,
        store: Any,
        record_type: type[Record],
        data_hashes: Any,
        ids: Any = None,
        record_types: Any = None,
    ) -> NotificationEvent:
        return cls(
            kind=NotificationKind.DID_LOAD_RECORDS,
            store=store,
            record_type=record_type,
            data_hashes=list(data_hashes),
            ids=list(ids) if ids is not None else None,
            record_types=list(record_types) if record_types is not None else None,
        )

    @classmethod
    def did_load_record(cls, store: Any, record_type: type[Record], data_hash: dict[str, Any], id: Any) -> NotificationEvent:
        return cls(kind=NotificationKind.DID_LOAD_RECORD, store=store, record_type=record_type, data_hash=data_hash, id=id)

    @classmethod
    def did_write_record(cls, store: Any, record_type: type[Record], data_hash: dict[str, Any], id: Any) -> NotificationEvent:
        return cls(kind=NotificationKind.DID_WRITE_RECORD, store=store, record_type=record_type, data_hash=data_hash, id=id)

    @classmethod
    def did_destroy_record(cls, store: Any, record_type: type[Record], id: Any) -> NotificationEvent:
        return cls(kind=NotificationKind.DID_DESTROY_RECORD, store=store, record_type=record_type, id=id)
