"""Record type descriptors.

A record type is a subclass of :class:`Record`.  The store layer only needs
one piece of schema metadata from it: the name of the field holding the
record identifier inside a data hash.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, ClassVar


class Record:
    """Base record type.

    Subclasses override :attr:`primary_key` when their identifier lives in a
    field other than ``guid``::

        class Person(Record):
            primary_key = "id"
    """

    primary_key: ClassVar[str] = "guid"

    @classmethod
    def id_from_data_hash(cls, data_hash: Mapping[str, Any]) -> Any:
        """Extract the identifier from *data_hash*, or ``None`` if absent."""
        return data_hash.get(cls.primary_key)


RecordType = type[Record]
"""A record type is the :class:`Record` subclass itself."""


def record_type_at(record_types: RecordType | Sequence[RecordType | None] | None, index: int) -> RecordType:
    """Resolve the record type for position *index* of a batch.

    *record_types* is either one record type shared by the whole batch, or a
    sequence parallel to the batch.  Missing entries fall back to
    :class:`Record`.
    """
    if isinstance(record_types, type):
        return record_types
    if record_types is None:
        return Record
    if index < len(record_types):
        return record_types[index] or Record
    return Record
