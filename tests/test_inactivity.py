# tests/test_inactivity.py

from datetime import date, timedelta

import pytest

from conftest import FakePush

from senior_strength.services.dispatcher import NotificationDispatcher
from senior_strength.services.inactivity import (
    GENTLE, NEVER_LOGGED_DAYS, STREAK_RISK, WEEK_PLUS, InactivityDetector,
    build_notification, classify, days_inactive,
)
from senior_strength.services.store import StoreError, UserRecord

TODAY = date(2024, 6, 15)


@pytest.mark.parametrize("days, tier", [
    (0, None), (1, None), (2, GENTLE), (3, STREAK_RISK), (6, STREAK_RISK),
    (7, WEEK_PLUS), (30, WEEK_PLUS), (NEVER_LOGGED_DAYS, WEEK_PLUS),
])
def test_classify(days, tier):
    assert classify(days) == tier


def test_days_inactive():
    assert days_inactive(None, TODAY) == NEVER_LOGGED_DAYS
    assert days_inactive(TODAY - timedelta(days=4), TODAY) == 4
    assert days_inactive(TODAY + timedelta(days=1), TODAY) == 0


def test_notification_texts():
    user = UserRecord(id=1, email="mary@example.com", full_name=None, current_streak=5)
    risk = build_notification(user, 4, STREAK_RISK)
    assert risk.title == "Keep your streak alive! 🔥"
    assert "mary, you had a 5-day streak going" in risk.body
    assert risk.data == {"type": "streak_reminder", "days_inactive": 4, "previous_streak": 5, "action": "open_workouts"}

    gentle = build_notification(user, 2, GENTLE)
    assert gentle.data["type"] == "gentle_reminder"
    assert "it's been 2 days" in gentle.body

    week = build_notification(user, 9, WEEK_PLUS)
    assert week.title == "We miss you! 💪"
    assert week.data["type"] == "inactivity_reminder"


def test_run_isolates_each_user(stores, make_user, add_log):
    logs, users = stores
    ok = make_user(push_token="tok-ok")
    broken = make_user(push_token="tok-boom")
    later = make_user(push_token="tok-later")
    for u in (ok, broken, later):
        add_log(u, TODAY - timedelta(days=8))

    push = FakePush(boom={"tok-boom"})
    summary = InactivityDetector(users, logs, NotificationDispatcher(push=push), today=TODAY).run()

    assert summary.success is True
    assert summary.processed == 3
    assert summary.success_count == 2
    assert summary.failure_count == 1
    by_user = {r["user_id"]: r for r in summary.results}
    assert by_user[broken.id]["success"] is False
    assert by_user[later.id]["notification_sent"] is True
    assert [s["to"] for s in push.sent] == ["tok-ok", "tok-later"]


def test_run_skips_active_users_and_handles_never_logged(stores, make_user, add_log):
    logs, users = stores
    active = make_user(push_token="tok-active")
    add_log(active, TODAY - timedelta(days=1))
    never = make_user(push_token="tok-never")
    make_user()  # sin token: no es candidato

    push = FakePush()
    summary = InactivityDetector(users, logs, NotificationDispatcher(push=push), today=TODAY).run()

    assert summary.processed == 1
    item = summary.results[0]
    assert item["user_id"] == never.id
    assert item["days_inactive"] == NEVER_LOGGED_DAYS
    assert item["last_workout_date"] == "never"
    assert item["tier"] == WEEK_PLUS


def test_query_error_for_one_user_becomes_failure_entry(stores, make_user, monkeypatch):
    logs, users = stores
    a = make_user(push_token="tok-a")
    b = make_user(push_token="tok-b")
    real = logs.last_log_date

    def flaky(user_id):
        if user_id == a.id:
            raise StoreError("last_log_date: timeout")
        return real(user_id)

    monkeypatch.setattr(logs, "last_log_date", flaky)
    summary = InactivityDetector(users, logs, NotificationDispatcher(push=FakePush()), today=TODAY).run()
    by_user = {r["user_id"]: r for r in summary.results}
    assert by_user[a.id]["success"] is False
    assert "timeout" in by_user[a.id]["error"]
    assert by_user[b.id]["success"] is True


def test_listing_failure_is_fatal(stores, monkeypatch):
    logs, users = stores

    def broken():
        raise StoreError("inactivity_candidates: db down")

    monkeypatch.setattr(users, "inactivity_candidates", broken)
    summary = InactivityDetector(users, logs, NotificationDispatcher(push=FakePush()), today=TODAY).run()
    assert summary.success is False
    assert summary.processed == 0
    assert "db down" in summary.to_dict()["error"]


def test_stop_between_users_keeps_partial_results(stores, make_user):
    logs, users = stores
    for i in range(3):
        make_user(push_token=f"tok-{i}")
    calls = {"n": 0}

    def stop():
        calls["n"] += 1
        return calls["n"] > 1

    summary = InactivityDetector(users, logs, NotificationDispatcher(push=FakePush()), today=TODAY).run(stop=stop)
    assert summary.interrupted is True
    assert summary.processed == 1


def test_delay_between_sends(stores, make_user):
    logs, users = stores
    for i in range(3):
        make_user(push_token=f"tok-{i}")
    pauses = []
    InactivityDetector(
        users, logs, NotificationDispatcher(push=FakePush()),
        today=TODAY, delay=0.1, sleep=pauses.append,
    ).run()
    assert pauses == [0.1, 0.1]
