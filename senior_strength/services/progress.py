# senior_strength/services/progress.py
from __future__ import annotations

import random
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Dict, Iterable, List

from senior_strength.services.dates import minutes_from_seconds, shift_months, shift_years
from senior_strength.services.store import LogEntry, SENTIMENT_LABELS

XP_PER_WORKOUT = 10
MINUTES_PER_XP = 5
XP_PER_LEVEL = 100


@dataclass(frozen=True)
class TotalStats:
    total_workouts: int
    total_minutes: int


@dataclass(frozen=True)
class TimeStats:
    this_week: int
    this_month: int
    this_year: int


@dataclass(frozen=True)
class LevelInfo:
    level: int
    xp: int
    next_level_xp: int

    def to_dict(self) -> dict:
        return asdict(self)


# -------------------------------------------------------------------
# Agregados (funciones puras sobre LogEntry)
# -------------------------------------------------------------------
def total_stats(logs: Iterable[LogEntry]) -> TotalStats:
    logs = list(logs or [])
    seconds = sum(max(0, e.duration_seconds or 0) for e in logs)
    return TotalStats(total_workouts=len(logs), total_minutes=minutes_from_seconds(seconds))


def time_based_stats(logs: Iterable[LogEntry], today: date) -> TimeStats:
    """
    Tres filtros independientes sobre el conjunto completo (no son cubos
    acumulativos): un log de hace 3 días cuenta en semana, mes y año.
    """
    week_start = today - timedelta(days=7)
    month_start = shift_months(today, -1)
    year_start = shift_years(today, -1)

    week = month = year = 0
    for e in logs or []:
        if e.date >= week_start:
            week += 1
        if e.date >= month_start:
            month += 1
        if e.date >= year_start:
            year += 1
    return TimeStats(this_week=week, this_month=month, this_year=year)


def sentiment_tally(logs: Iterable[LogEntry]) -> Dict[str, int]:
    """Recuento por etiqueta; sin etiqueta cuenta como neutral."""
    tally = {label: 0 for label in SENTIMENT_LABELS}
    for e in logs or []:
        tally[e.sentiment_tag or "neutral"] += 1
    return tally


def positive_mood_count(logs: Iterable[LogEntry]) -> int:
    return sum(1 for e in logs or [] if e.sentiment_tag == "positive")


# -------------------------------------------------------------------
# Nivel / XP
# -------------------------------------------------------------------
def level_info(total_workouts: int, total_minutes: int) -> LevelInfo:
    """
    XP total = workouts*10 + floor(minutos/5); nivel = floor(XP/100) + 1.
    El XP mostrado es el acumulado dentro del nivel actual.
    """
    if total_workouts < 0 or total_minutes < 0:
        raise ValueError("total_workouts y total_minutes deben ser >= 0")
    total_xp = int(total_workouts) * XP_PER_WORKOUT + int(total_minutes) // MINUTES_PER_XP
    return LevelInfo(
        level=total_xp // XP_PER_LEVEL + 1,
        xp=total_xp % XP_PER_LEVEL,
        next_level_xp=XP_PER_LEVEL,
    )


# -------------------------------------------------------------------
# Mensajes motivacionales
# -------------------------------------------------------------------
MOTIVATIONAL_MESSAGES: Dict[str, List[str]] = {
    "beginner": [
        "Every journey begins with a single step! 🌟",
        "You're building healthy habits one day at a time! 💪",
        "Great job starting your fitness journey! 🎯",
    ],
    "intermediate": [
        "You're making excellent progress! Keep it up! 🚀",
        "Your consistency is paying off! 📈",
        "You're becoming stronger every day! 💪",
    ],
    "advanced": [
        "You're a fitness champion! Incredible dedication! 🏆",
        "Your commitment is truly inspiring! ⭐",
        "You've mastered the art of consistency! 🔥",
    ],
}


def progress_category(total_workouts: int) -> str:
    if total_workouts >= 50:
        return "advanced"
    if total_workouts >= 15:
        return "intermediate"
    return "beginner"


def motivational_message(total_workouts: int, rng=random) -> str:
    return rng.choice(MOTIVATIONAL_MESSAGES[progress_category(total_workouts)])
