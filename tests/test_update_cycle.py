from __future__ import annotations

import pytest

from cascadestore.cycle import UpdateCycle


def test_callbacks_run_immediately_outside_a_cycle() -> None:
    cycle = UpdateCycle()
    calls: list[str] = []

    cycle.schedule(lambda: calls.append("now"))

    assert calls == ["now"]


def test_nested_cycles_flush_once_at_outermost_end() -> None:
    cycle = UpdateCycle()
    calls: list[int] = []

    cycle.begin()
    cycle.schedule(lambda: calls.append(1))
    cycle.begin()
    cycle.schedule(lambda: calls.append(2))
    cycle.end()
    assert calls == []
    assert cycle.is_active

    cycle.end()
    assert calls == [1, 2]
    assert not cycle.is_active


def test_callbacks_scheduled_during_flush_are_delivered() -> None:
    cycle = UpdateCycle()
    calls: list[str] = []

    def first() -> None:
        calls.append("first")
        # Flushing runs outside any cycle, so this runs immediately.
        cycle.schedule(lambda: calls.append("second"))

    with cycle.scope():
        cycle.schedule(first)

    assert calls == ["first", "second"]


def test_scope_ends_cycle_when_block_raises() -> None:
    cycle = UpdateCycle()
    calls: list[str] = []

    with pytest.raises(ValueError), cycle.scope():
        cycle.schedule(lambda: calls.append("flushed"))
        raise ValueError("boom")

    assert cycle.depth == 0
    assert calls == ["flushed"]


def test_end_without_begin_raises() -> None:
    with pytest.raises(RuntimeError):
        UpdateCycle().end()


def test_failing_callback_keeps_later_callbacks_queued() -> None:
    cycle = UpdateCycle()
    calls: list[str] = []

    def boom() -> None:
        raise RuntimeError("observer failed")

    with pytest.raises(RuntimeError, match="observer failed"), cycle.scope():
        cycle.schedule(boom)
        cycle.schedule(lambda: calls.append("second"))

    assert cycle.depth == 0
    assert calls == []

    cycle.flush()

    assert calls == ["second"]
