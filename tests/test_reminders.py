# tests/test_reminders.py

from __future__ import annotations

import asyncio
import threading
import time as time_mod
from datetime import date, datetime, time

import pytest

from pocket_scheduler.core.observers import ChangeAction, ChangeEvent
from pocket_scheduler.reminders.evaluator import (
    ReminderEvaluator,
    ReminderPolicy,
    SignalKind,
    evaluate_reminders,
    format_clock,
    minutes_until_due,
)
from pocket_scheduler.reminders.runner import build_evaluator, start_reminders_in_background
from pocket_scheduler.reminders.scheduler import poll_once, run_reminder_loop
from pocket_scheduler.storage.record_store import RecordStore

from .fakes import BrokenSink, FixedClock, RecordingSink, make_event

DAY = date(2026, 10, 19)


def _standup(**kwargs):
    return make_event("e1", DAY, time(10, 0), title="Standup", **kwargs)


def _mark_all(evaluator, signals):
    for signal in signals:
        evaluator.mark_delivered(signal)


def _kinds(signals):
    return [s.kind for s in signals]


def test_minutes_until_due_is_floored() -> None:
    event = _standup()
    assert minutes_until_due(event, datetime(2026, 10, 19, 9, 45)) == 15
    assert minutes_until_due(event, datetime(2026, 10, 19, 9, 45, 30)) == 14
    assert minutes_until_due(event, datetime(2026, 10, 19, 10, 0, 30)) == -1


def test_reminder_fires_only_on_the_exact_minute() -> None:
    events = [_standup()]

    hit = evaluate_reminders(events, datetime(2026, 10, 19, 9, 45))
    assert _kinds(hit) == [SignalKind.REMINDER]
    assert hit[0].minutes_until_due == 15
    assert hit[0].message == "Reminder: Standup starts in 15 minutes"

    for now in (
        datetime(2026, 10, 19, 9, 44),
        datetime(2026, 10, 19, 9, 46),
        datetime(2026, 10, 19, 9, 45, 30),
    ):
        assert evaluate_reminders(events, now) == []


def test_overdue_fires_inside_window_only() -> None:
    events = [_standup()]

    at_half_past = evaluate_reminders(events, datetime(2026, 10, 19, 10, 30))
    assert _kinds(at_half_past) == [SignalKind.OVERDUE]
    assert at_half_past[0].message == "Overdue: Standup was scheduled for 10:00 AM"

    assert _kinds(evaluate_reminders(events, datetime(2026, 10, 19, 11, 0))) == [SignalKind.OVERDUE]
    assert evaluate_reminders(events, datetime(2026, 10, 19, 11, 30)) == []
    assert evaluate_reminders(events, datetime(2026, 10, 19, 10, 0)) == []


def test_overdue_repeats_on_every_poll() -> None:
    events = [_standup()]
    first = evaluate_reminders(events, datetime(2026, 10, 19, 10, 5))
    second = evaluate_reminders(events, datetime(2026, 10, 19, 10, 6))
    assert _kinds(first) == _kinds(second) == [SignalKind.OVERDUE]


def test_overdue_window_is_configurable() -> None:
    events = [_standup()]
    assert evaluate_reminders(events, datetime(2026, 10, 19, 10, 30), overdue_window_minutes=10) == []


def test_completed_events_never_signal() -> None:
    events = [_standup(is_completed=True)]
    assert evaluate_reminders(events, datetime(2026, 10, 19, 9, 45)) == []
    assert evaluate_reminders(events, datetime(2026, 10, 19, 10, 30)) == []


def test_format_clock_uses_12_hour_time() -> None:
    assert format_clock(make_event("a", DAY, time(9, 5))) == "9:05 AM"
    assert format_clock(make_event("b", DAY, time(0, 0))) == "12:00 AM"
    assert format_clock(make_event("c", DAY, time(17, 30))) == "5:30 PM"


def test_catch_up_policy_fires_once_inside_lead_window() -> None:
    evaluator = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    event = _standup()

    # a poll that missed 09:45 still reminds
    late = evaluator.evaluate([event], datetime(2026, 10, 19, 9, 47))
    assert _kinds(late) == [SignalKind.REMINDER]
    assert late[0].minutes_until_due == 13
    _mark_all(evaluator, late)

    assert evaluator.evaluate([event], datetime(2026, 10, 19, 9, 50)) == []
    assert evaluator.evaluate([event], datetime(2026, 10, 19, 9, 30)) == []


def test_catch_up_policy_repeats_until_marked_delivered() -> None:
    evaluator = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    event = _standup()

    assert _kinds(evaluator.evaluate([event], datetime(2026, 10, 19, 9, 47))) == [SignalKind.REMINDER]
    assert _kinds(evaluator.evaluate([event], datetime(2026, 10, 19, 9, 48))) == [SignalKind.REMINDER]


def test_catch_up_policy_reminds_again_after_reschedule() -> None:
    evaluator = ReminderEvaluator(policy="catch_up")
    event = _standup()
    _mark_all(evaluator, evaluator.evaluate([event], datetime(2026, 10, 19, 9, 50)))
    assert evaluator.evaluate([event], datetime(2026, 10, 19, 9, 51)) == []

    moved = make_event("e1", DAY, time(11, 0), title="Standup")
    assert _kinds(evaluator.evaluate([moved], datetime(2026, 10, 19, 10, 50))) == [SignalKind.REMINDER]

    evaluator.reset()
    assert _kinds(evaluator.evaluate([event], datetime(2026, 10, 19, 9, 50))) == [SignalKind.REMINDER]


def test_zero_lead_reminder_does_not_fire_at_the_due_instant() -> None:
    event = _standup(reminder_minutes=0)
    due = datetime(2026, 10, 19, 10, 0)

    assert evaluate_reminders([event], due) == []
    assert ReminderEvaluator(policy=ReminderPolicy.CATCH_UP).evaluate([event], due) == []
    # half a minute earlier the event is still upcoming
    assert _kinds(evaluate_reminders([event], datetime(2026, 10, 19, 9, 59, 30))) == [SignalKind.REMINDER]


def test_mark_delivered_ignores_overdue_and_exact_policy() -> None:
    event = _standup()
    catch_up = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    overdue = catch_up.evaluate([event], datetime(2026, 10, 19, 10, 5))
    _mark_all(catch_up, overdue)
    assert _kinds(overdue) == [SignalKind.OVERDUE]
    assert _kinds(catch_up.evaluate([event], datetime(2026, 10, 19, 10, 6))) == [SignalKind.OVERDUE]

    exact = ReminderEvaluator()
    hit = exact.evaluate([event], datetime(2026, 10, 19, 9, 45))
    _mark_all(exact, hit)
    assert _kinds(exact.evaluate([event], datetime(2026, 10, 19, 9, 45))) == [SignalKind.REMINDER]


def test_catch_up_fired_set_survives_concurrent_changes() -> None:
    evaluator = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    events = [make_event(f"e{i}", DAY, time(10, 0)) for i in range(50)]
    at = datetime(2026, 10, 19, 9, 50)
    errors: list[Exception] = []

    def poll() -> None:
        try:
            for _ in range(200):
                _mark_all(evaluator, evaluator.evaluate(events, at))
        except Exception as exc:
            errors.append(exc)

    def churn() -> None:
        try:
            for i in range(200):
                evaluator.on_change(ChangeEvent("events", ChangeAction.DELETE, f"e{i % 50}"))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=poll), threading.Thread(target=churn)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10.0)

    assert errors == []
    evaluator.reset()
    assert len(evaluator.evaluate(events, at)) == 50


@pytest.mark.asyncio
async def test_poll_once_delivers_to_sink(store: RecordStore) -> None:
    store.add_event(_standup())
    sink = RecordingSink()

    delivered = await poll_once(store, sink, ReminderEvaluator(), now=datetime(2026, 10, 19, 9, 45))

    assert [s.event.id for s in delivered] == ["e1"]
    assert sink.delivered == delivered


@pytest.mark.asyncio
async def test_poll_once_respects_notifications_setting(store: RecordStore) -> None:
    store.add_event(_standup())
    store.update_settings(notifications=False)
    sink = RecordingSink()

    delivered = await poll_once(store, sink, ReminderEvaluator(), now=datetime(2026, 10, 19, 9, 45))

    assert delivered == []
    assert sink.delivered == []


@pytest.mark.asyncio
async def test_reminder_loop_delivers_due_reminders(store: RecordStore) -> None:
    store.add_event(_standup())
    sink = RecordingSink()
    clock = FixedClock(datetime(2026, 10, 19, 9, 45))

    runner = asyncio.create_task(run_reminder_loop(store, sink, clock=clock, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert sink.delivered, "Loop should deliver at least one reminder"
    assert sink.delivered[0].kind == SignalKind.REMINDER
    assert sink.delivered[0].event.id == "e1"


@pytest.mark.asyncio
async def test_reminder_loop_survives_failing_sink(store: RecordStore) -> None:
    store.add_event(_standup())
    sink = BrokenSink()
    clock = FixedClock(datetime(2026, 10, 19, 10, 30))

    runner = asyncio.create_task(run_reminder_loop(store, sink, clock=clock, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    assert not runner.done()
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert sink.calls >= 2


def test_background_runner_delivers_and_stops(state) -> None:
    state.store.add_event(_standup())
    state.clock.now = datetime(2026, 10, 19, 9, 45)
    sink = RecordingSink()

    runner = start_reminders_in_background(state, sink)
    assert runner is not None

    for _ in range(200):
        if sink.delivered:
            break
        time_mod.sleep(0.01)

    runner.stop()
    runner.join(timeout=5.0)

    assert not runner.thread.is_alive()
    assert [s.event.id for s in sink.delivered][:1] == ["e1"]


def test_background_runner_respects_disabled_setting(state) -> None:
    state.settings.reminders_enabled = False
    assert start_reminders_in_background(state, RecordingSink()) is None


def test_build_evaluator_falls_back_to_exact_policy(settings) -> None:
    settings.reminder_policy = "whenever"
    settings.overdue_window_minutes = 5
    evaluator = build_evaluator(settings)
    assert evaluator.policy == ReminderPolicy.EXACT_MINUTE
    assert evaluator.overdue_window_minutes == 5


def test_catch_up_evaluator_forgets_deleted_events(store: RecordStore) -> None:
    evaluator = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    store.bus.subscribe(evaluator.on_change)
    store.add_event(_standup())
    at = datetime(2026, 10, 19, 9, 50)

    _mark_all(evaluator, evaluator.evaluate(store.get_events(), at))
    assert evaluator.evaluate(store.get_events(), at) == []

    # re-adding under the same id after a delete reminds again
    store.delete_event("e1")
    store.add_event(_standup())
    assert _kinds(evaluator.evaluate(store.get_events(), at)) == [SignalKind.REMINDER]


@pytest.mark.asyncio
async def test_catch_up_reminder_survives_a_failed_delivery(store: RecordStore) -> None:
    store.add_event(_standup())
    evaluator = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    broken = BrokenSink()

    assert await poll_once(store, broken, evaluator, now=datetime(2026, 10, 19, 9, 47)) == []
    assert broken.calls == 1

    sink = RecordingSink()
    delivered = await poll_once(store, sink, evaluator, now=datetime(2026, 10, 19, 9, 48))
    assert _kinds(delivered) == [SignalKind.REMINDER]
    assert await poll_once(store, sink, evaluator, now=datetime(2026, 10, 19, 9, 49)) == []
    assert len(sink.delivered) == 1


@pytest.mark.asyncio
async def test_catch_up_reminder_waits_while_notifications_are_off(store: RecordStore) -> None:
    store.add_event(_standup())
    store.update_settings(notifications=False)
    evaluator = ReminderEvaluator(policy=ReminderPolicy.CATCH_UP)
    sink = RecordingSink()

    assert await poll_once(store, sink, evaluator, now=datetime(2026, 10, 19, 9, 47)) == []

    store.update_settings(notifications=True)
    delivered = await poll_once(store, sink, evaluator, now=datetime(2026, 10, 19, 9, 48))
    assert _kinds(delivered) == [SignalKind.REMINDER]
