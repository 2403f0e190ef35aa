# tests/test_progress.py

import random
from datetime import date, timedelta

import pytest

from senior_strength.services.progress import (
    MOTIVATIONAL_MESSAGES, level_info, motivational_message, positive_mood_count,
    progress_category, sentiment_tally, time_based_stats, total_stats,
)
from senior_strength.services.store import LogEntry

TODAY = date(2024, 6, 15)


def _log(day, seconds=600, sentiment=None):
    return LogEntry(id=None, user_id=1, workout_id=1, date=day, duration_seconds=seconds, sentiment_tag=sentiment)


def test_total_stats_empty():
    t = total_stats([])
    assert (t.total_workouts, t.total_minutes) == (0, 0)


def test_total_stats_rounds_sum_not_each_log():
    # 3 x 20s = 60s -> 1 min (redondeando cada log saldrían 0)
    logs = [_log(TODAY, 20), _log(TODAY, 20), _log(TODAY, 20)]
    assert total_stats(logs).total_minutes == 1
    assert total_stats([_log(TODAY, 90)]).total_minutes == 2


def test_time_based_windows_are_independent():
    logs = [
        _log(TODAY - timedelta(days=3)),    # semana, mes, año
        _log(TODAY - timedelta(days=7)),    # límite de la semana (incluido)
        _log(TODAY - timedelta(days=20)),   # mes, año
        _log(date(2024, 5, 15)),            # límite del mes (incluido)
        _log(date(2024, 5, 14)),            # solo año
        _log(date(2023, 6, 15)),            # límite del año (incluido)
        _log(date(2023, 6, 14)),            # fuera
    ]
    s = time_based_stats(logs, TODAY)
    assert s.this_week == 2
    assert s.this_month == 4
    assert s.this_year == 6


def test_sentiment_tally_counts_missing_as_neutral():
    logs = [_log(TODAY, sentiment="positive"), _log(TODAY), _log(TODAY, sentiment="negative"), _log(TODAY, sentiment="positive")]
    assert sentiment_tally(logs) == {"positive": 2, "neutral": 1, "negative": 1}
    assert positive_mood_count(logs) == 2


@pytest.mark.parametrize("workouts, minutes, expected", [
    (0, 0, (1, 0, 100)),
    (5, 100, (1, 70, 100)),
    (10, 0, (2, 0, 100)),
    (12, 24, (2, 24, 100)),
    (25, 500, (4, 50, 100)),
])
def test_level_info(workouts, minutes, expected):
    info = level_info(workouts, minutes)
    assert (info.level, info.xp, info.next_level_xp) == expected


def test_level_info_rejects_negative():
    with pytest.raises(ValueError):
        level_info(-1, 0)
    with pytest.raises(ValueError):
        level_info(0, -5)


def test_motivational_categories():
    assert progress_category(0) == "beginner"
    assert progress_category(14) == "beginner"
    assert progress_category(15) == "intermediate"
    assert progress_category(49) == "intermediate"
    assert progress_category(50) == "advanced"
    msg = motivational_message(60, rng=random.Random(1))
    assert msg in MOTIVATIONAL_MESSAGES["advanced"]


# ---------- Propiedades ----------

@pytest.mark.parametrize("seed", range(5))
def test_level_never_decreases_with_more_activity(seed):
    rng = random.Random(seed)
    workouts, minutes = 0, 0
    level = level_info(workouts, minutes).level
    for _ in range(200):
        workouts += rng.randint(0, 3)
        minutes += rng.randint(0, 60)
        nxt = level_info(workouts, minutes).level
        assert nxt >= level
        level = nxt


@pytest.mark.parametrize("workouts, minutes", [(0, 0), (9, 499), (10, 500), (137, 4321)])
def test_level_monotonic_in_each_input(workouts, minutes):
    base = level_info(workouts, minutes).level
    assert level_info(workouts + 1, minutes).level >= base
    assert level_info(workouts, minutes + 5).level >= base


def test_total_stats_is_idempotent():
    logs = [_log(TODAY - timedelta(days=i), seconds=37 * i) for i in range(12)]
    assert total_stats(logs) == total_stats(logs)
    assert total_stats(logs) == total_stats(list(reversed(logs)))
