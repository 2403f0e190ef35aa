# tests/test_streaks.py

from datetime import date, timedelta

import pytest

from senior_strength import db
from senior_strength.models.user import User
from senior_strength.models.workout import WorkoutLog
from senior_strength.services.store import StoreError
from senior_strength.services.streaks import StreakState, StreakTracker, compute_streaks, next_streak

D = date(2024, 3, 10)


def _days(*offsets):
    return [D + timedelta(days=o) for o in offsets]


# ---------- Funciones puras ----------

def test_next_streak_transitions():
    assert next_streak(StreakState(4, 6), True) == StreakState(5, 6)
    assert next_streak(StreakState(6, 6), True) == StreakState(7, 7)
    assert next_streak(StreakState(4, 6), False) == StreakState(1, 6)
    assert next_streak(StreakState(0, 0), False) == StreakState(1, 1)


def test_compute_streaks_empty():
    assert compute_streaks([], D) == StreakState(0, 0)


def test_compute_streaks_current_ends_today_or_yesterday():
    assert compute_streaks(_days(-2, -1, 0), D) == StreakState(3, 3)
    # hoy sin log: la racha de ayer sigue viva
    assert compute_streaks(_days(-3, -2, -1), D) == StreakState(3, 3)
    # último log hace 2 días: racha rota
    assert compute_streaks(_days(-4, -3, -2), D) == StreakState(0, 3)


def test_compute_streaks_longest_in_history():
    days = _days(-20, -19, -18, -17, -10, -1, 0)
    assert compute_streaks(days + days, D) == StreakState(2, 4)


# ---------- StreakTracker contra la BD ----------

@pytest.fixture
def tracker(stores):
    logs, users = stores
    return StreakTracker(logs, users)


def test_first_workout_starts_streak(tracker, make_user, workout):
    u = make_user()
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D, duration_seconds=300)
    assert (r.current_streak, r.longest_streak, r.streak_changed) == (1, 1, True)
    db.session.refresh(u)
    assert (u.current_streak, u.longest_streak) == (1, 1)


def test_consecutive_day_increments(tracker, make_user, workout, add_log):
    u = make_user(current_streak=4, longest_streak=6)
    add_log(u, D - timedelta(days=1))
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D)
    assert (r.current_streak, r.longest_streak) == (5, 6)


def test_longest_follows_current(tracker, make_user, workout, add_log):
    u = make_user(current_streak=6, longest_streak=6)
    add_log(u, D - timedelta(days=1))
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D)
    assert (r.current_streak, r.longest_streak) == (7, 7)


def test_gap_resets_to_one(tracker, make_user, workout, add_log):
    u = make_user(current_streak=5, longest_streak=9)
    add_log(u, D - timedelta(days=3))
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D)
    assert (r.current_streak, r.longest_streak) == (1, 9)


def test_second_log_same_day_keeps_streak(tracker, make_user, workout, add_log):
    u = make_user(current_streak=2, longest_streak=2)
    add_log(u, D - timedelta(days=1))
    first = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D)
    second = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D)
    assert first.current_streak == 3
    assert (second.current_streak, second.longest_streak, second.streak_changed) == (3, 3, False)
    assert WorkoutLog.query.filter_by(user_id=u.id, date=D.isoformat()).count() == 2


def test_duplicate_event_is_ignored(tracker, make_user, workout):
    u = make_user()
    a = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D, event_id="evt-1")
    b = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D, event_id="evt-1")
    assert b.duplicate is True
    assert b.entry.id == a.entry.id
    assert WorkoutLog.query.filter_by(user_id=u.id).count() == 1


def test_unknown_user_raises(tracker, workout):
    with pytest.raises(StoreError):
        tracker.record_workout(user_id=999, workout_id=workout.id, day=D)


def test_failed_streak_update_rolls_back_log(tracker, make_user, workout, monkeypatch):
    u = make_user()

    def broken(*a, **kw):
        raise StoreError("update_streak: db down")

    monkeypatch.setattr(tracker.users, "update_streak", broken)
    with pytest.raises(StoreError):
        tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D)

    assert WorkoutLog.query.count() == 0
    assert db.session.get(User, u.id).current_streak == 0


def test_reconcile_recomputes_from_history(tracker, make_user, add_log):
    u = make_user(current_streak=42, longest_streak=1)
    for o in (-6, -5, -4, -1, 0):
        add_log(u, D + timedelta(days=o))
    state = tracker.reconcile(u.id, D)
    assert state == StreakState(2, 3)
    db.session.refresh(u)
    assert (u.current_streak, u.longest_streak) == (2, 3)


def test_consecutive_days_then_gap(tracker, make_user, workout):
    u = make_user()
    states = []
    for day in (date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5)):
        r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=day, today=day)
        states.append((r.current_streak, r.longest_streak))
    assert states[2] == (3, 3)
    assert states[3] == (1, 3)


# ---------- Relleno de días pasados ----------

def test_backfill_old_day_keeps_live_streak(tracker, make_user, workout, add_log):
    u = make_user(current_streak=3, longest_streak=3)
    for o in (-2, -1, 0):
        add_log(u, D + timedelta(days=o))
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D - timedelta(days=20), today=D)
    assert (r.current_streak, r.longest_streak) == (3, 3)
    db.session.refresh(u)
    assert (u.current_streak, u.longest_streak) == (3, 3)


def test_backfill_missing_day_joins_runs(tracker, make_user, workout, add_log):
    u = make_user(current_streak=2, longest_streak=2)
    for o in (-4, -3, -1, 0):
        add_log(u, D + timedelta(days=o))
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D - timedelta(days=2), today=D)
    assert (r.current_streak, r.longest_streak, r.streak_changed) == (5, 5, True)
    db.session.refresh(u)
    assert (u.current_streak, u.longest_streak) == (5, 5)


def test_backfill_never_lowers_longest(tracker, make_user, workout):
    u = make_user(current_streak=0, longest_streak=12)
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D - timedelta(days=1), today=D)
    assert (r.current_streak, r.longest_streak) == (1, 12)


# ---------- Idempotencia con inserciones concurrentes ----------

def test_event_inserted_concurrently_returns_stored_entry(tracker, make_user, workout, monkeypatch):
    u = make_user(current_streak=1, longest_streak=1)
    stored = WorkoutLog(user_id=u.id, workout_id=workout.id, date=D.isoformat(), duration_seconds=300, event_id="evt-race")
    db.session.add(stored)
    db.session.commit()

    # la comprobación previa no ve el evento (la otra petición aún no había confirmado)
    real_find = tracker.logs.find_by_event
    calls = {"n": 0}

    def racy_find(event_id):
        calls["n"] += 1
        return None if calls["n"] == 1 else real_find(event_id)

    monkeypatch.setattr(tracker.logs, "find_by_event", racy_find)
    r = tracker.record_workout(user_id=u.id, workout_id=workout.id, day=D, event_id="evt-race", today=D)

    assert r.duplicate is True
    assert r.entry.id == stored.id
    assert (r.current_streak, r.longest_streak, r.streak_changed) == (1, 1, False)
    assert WorkoutLog.query.filter_by(user_id=u.id).count() == 1
