# senior_strength/services/achievements.py
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import List, Optional


@dataclass(frozen=True)
class AchievementStats:
    total_workouts: int = 0
    current_streak: int = 0
    this_month_workouts: int = 0


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    progress: int
    target: int
    unlocked: bool

    def to_dict(self) -> dict:
        d = asdict(self)
        d["percent"] = completion_percent(self)
        return d


# (id, título, descripción, icono, métrica, objetivo) en orden fijo de catálogo
_CATALOG = (
    ("first_workout", "First Steps", "Complete your first workout", "🎯", "workouts", 1),
    ("week_warrior", "Week Warrior", "Complete 7 workouts", "💪", "workouts", 7),
    ("consistency_king", "Consistency Champion", "Maintain a 7-day streak", "🔥", "streak", 7),
    ("time_master", "Time Master", "Exercise for 300 minutes total", "⏰", "minutes", 300),
    ("monthly_hero", "Monthly Hero", "Complete 20 workouts in a month", "🏆", "month", 20),
    ("streak_master", "Streak Master", "Maintain a 30-day streak", "⚡", "streak", 30),
    ("century_club", "Century Club", "Complete 100 workouts", "🌟", "workouts", 100),
    ("endurance_expert", "Endurance Expert", "Exercise for 1000 minutes total", "🏃‍♂️", "minutes", 1000),
)


def achievements(stats: AchievementStats, total_minutes: int) -> List[Achievement]:
    """
    Genera los logros con progreso acotado al objetivo.
    progress = min(métrica, objetivo); unlocked = métrica >= objetivo.
    """
    metrics = {
        "workouts": stats.total_workouts,
        "streak": stats.current_streak,
        "minutes": total_minutes,
        "month": stats.this_month_workouts,
    }
    out = []
    for aid, title, desc, icon, metric, target in _CATALOG:
        raw = max(0, int(metrics[metric]))
        out.append(Achievement(
            id=aid, title=title, description=desc, icon=icon,
            progress=min(raw, target), target=target, unlocked=raw >= target,
        ))
    return out


def completion_percent(a: Achievement) -> int:
    if a.target <= 0:
        return 100
    # redondeo half-up en aritmética entera
    return (200 * a.progress + a.target) // (2 * a.target)


def sorted_achievements(items: List[Achievement]) -> List[Achievement]:
    """Desbloqueados primero, luego por % descendente; empates en orden de catálogo."""
    return sorted(items, key=lambda a: (not a.unlocked, -completion_percent(a)))


def next_achievement(items: List[Achievement]) -> Optional[Achievement]:
    """Logro bloqueado más cercano a completarse (None si están todos)."""
    best = None
    for a in items:
        if a.unlocked:
            continue
        if best is None or completion_percent(a) > completion_percent(best):
            best = a
    return best
