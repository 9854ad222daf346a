"""Custom exception hierarchy for cascadestore."""

from __future__ import annotations


class CascadeStoreError(Exception):
    """Base exception for all cascadestore errors."""


class CascadeConfigError(CascadeStoreError):
    """Invalid store configuration."""


class BadStateError(CascadeStoreError):
    """Async completion was reported for a record that is not in flight.

    Raised when ``data_source_did_complete`` is called for a store key whose
    status lacks the BUSY bit, or is ``BUSY_DESTROYING``.  This is an
    out-of-order completion by the caller; the record is left untouched.
    """

    def __init__(
        self,
        message: str,
        *,
        store_key: int | None = None,
        status: int | None = None,
    ) -> None:
        self.store_key = store_key
        self.status = status
        super().__init__(message)


class RecordBusyError(CascadeStoreError):
    """The store core refused to destroy a record with an operation in flight."""

    def __init__(
        self,
        message: str,
        *,
        store_key: int | None = None,
        status: int | None = None,
    ) -> None:
        self.store_key = store_key
        self.status = status
        super().__init__(message)


class UnknownStoreKeyError(CascadeStoreError, KeyError):
    """A store key was not issued by this store core."""

    def __init__(self, store_key: int) -> None:
        self.store_key = store_key
        super().__init__(f"Unknown store key: {store_key!r}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])
