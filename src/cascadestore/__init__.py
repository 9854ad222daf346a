"""cascadestore - Change notifications for cascades of client-side record stores."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cascadestore")
except PackageNotFoundError:
    __version__ = "0+local"
from cascadestore.config import StoreConfig
from cascadestore.core import ChangeNotice, MemoryStore, StoreCore
from cascadestore.cycle import UpdateCycle
from cascadestore.data_source import (
    CallbackDataSource,
    CascadeDataSource,
    DataSource,
    HistoryDataSource,
    MirrorDataSource,
    NullDataSource,
    dispatch_event,
)
from cascadestore.events import NotificationEvent, NotificationKind
from cascadestore.exceptions import (
    BadStateError,
    CascadeConfigError,
    CascadeStoreError,
    RecordBusyError,
    UnknownStoreKeyError,
)
from cascadestore.notifying import NotifyingStore
from cascadestore.records import Record, RecordType
from cascadestore.status import RecordStatus

__all__ = [
    "__version__",
    "BadStateError",
    "CallbackDataSource",
    "CascadeConfigError",
    "CascadeDataSource",
    "CascadeStoreError",
    "ChangeNotice",
    "DataSource",
    "HistoryDataSource",
    "MemoryStore",
    "MirrorDataSource",
    "NotificationEvent",
    "NotificationKind",
    "NotifyingStore",
    "NullDataSource",
    "Record",
    "RecordBusyError",
    "RecordStatus",
    "RecordType",
    "StoreConfig",
    "StoreCore",
    "UnknownStoreKeyError",
    "UpdateCycle",
    "dispatch_event",
]
