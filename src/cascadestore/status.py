"""Record lifecycle status flags.

Status values are bit patterns: the high bits name the lifecycle phase (READY,
DESTROYED, BUSY, ...) and the low bits refine it.  Use :func:`is_busy` rather
than comparing against individual BUSY values.
"""

from __future__ import annotations

import enum


class RecordStatus(enum.IntEnum):
    """Lifecycle status of a record held by a store core."""

    EMPTY = 0x0001
    ERROR = 0x1000

    READY = 0x0200
    READY_CLEAN = 0x0201
    READY_DIRTY = 0x0203
    READY_NEW = 0x0204

    DESTROYED = 0x0400
    DESTROYED_CLEAN = 0x0401
    DESTROYED_DIRTY = 0x0403

    BUSY = 0x0800
    BUSY_LOADING = 0x0804
    BUSY_CREATING = 0x0808
    BUSY_COMMITTING = 0x0810
    BUSY_REFRESH = 0x0820
    BUSY_REFRESH_CLEAN = 0x0821
    BUSY_REFRESH_DIRTY = 0x0823
    BUSY_DESTROYING = 0x0840


def is_busy(status: int) -> bool:
    """Return ``True`` when *status* carries the BUSY bit."""
    return bool(status & RecordStatus.BUSY)


def is_destroyed(status: int) -> bool:
    return bool(status & RecordStatus.DESTROYED)


def can_complete(status: int) -> bool:
    """Whether an async completion may transition a record out of *status*.

    Only in-flight operations complete; a pending destroy is finished by
    removal, never by completion.
    """
    return is_busy(status) and status != RecordStatus.BUSY_DESTROYING
