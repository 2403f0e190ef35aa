# senior_strength/services/badges.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Tuple

from senior_strength.services.progress import positive_mood_count, total_stats
from senior_strength.services.store import LogEntry


@dataclass(frozen=True)
class BadgeStats:
    total_workouts: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    positive_mood_count: int = 0
    weekly_consistency_weeks: int = 0


# Catálogo estático (el "ganado" se deriva por usuario, no es atributo del catálogo)
BADGES: List[Dict[str, str]] = [
    {"id": "first_workout", "name": "First Steps", "description": "Complete your first workout", "emoji": "🎯"},
    {"id": "streak_3", "name": "3-Day Streak", "description": "Work out for 3 consecutive days", "emoji": "🔥"},
    {"id": "streak_7", "name": "Weekly Warrior", "description": "Work out for 7 consecutive days", "emoji": "⚡"},
    {"id": "streak_30", "name": "Monthly Master", "description": "Work out for 30 consecutive days", "emoji": "👑"},
    {"id": "workout_10", "name": "Perfect 10", "description": "Complete 10 total workouts", "emoji": "💪"},
    {"id": "workout_50", "name": "Half Century", "description": "Complete 50 total workouts", "emoji": "🏆"},
    {"id": "workout_100", "name": "Century Club", "description": "Complete 100 total workouts", "emoji": "🎖️"},
    {"id": "minutes_60", "name": "Hour Power", "description": "Exercise for 60+ minutes total", "emoji": "⏰"},
    {"id": "minutes_300", "name": "5-Hour Hero", "description": "Exercise for 300+ minutes total", "emoji": "🌟"},
    {"id": "minutes_1000", "name": "Time Champion", "description": "Exercise for 1000+ minutes total", "emoji": "🚀"},
    {"id": "positive_mood", "name": "Mood Booster", "description": "Log 5 positive workout experiences", "emoji": "😊"},
    {"id": "consistency", "name": "Steady Eddie", "description": "Work out at least once per week for 4 weeks", "emoji": "📈"},
]

# id -> predicado; se evalúan de forma independiente (sin orden ni crédito parcial)
BADGE_RULES: Tuple[Tuple[str, Callable[[BadgeStats], bool]], ...] = (
    ("first_workout", lambda s: s.total_workouts >= 1),
    ("streak_3", lambda s: s.longest_streak >= 3),
    ("streak_7", lambda s: s.longest_streak >= 7),
    ("streak_30", lambda s: s.longest_streak >= 30),
    ("workout_10", lambda s: s.total_workouts >= 10),
    ("workout_50", lambda s: s.total_workouts >= 50),
    ("workout_100", lambda s: s.total_workouts >= 100),
    ("minutes_60", lambda s: s.total_minutes >= 60),
    ("minutes_300", lambda s: s.total_minutes >= 300),
    ("minutes_1000", lambda s: s.total_minutes >= 1000),
    ("positive_mood", lambda s: s.positive_mood_count >= 5),
    ("consistency", lambda s: s.weekly_consistency_weeks >= 4),
)


def weekly_consistency_weeks(total_workouts: int) -> int:
    # Aproximación heredada: no es una cobertura real de 4 semanas móviles
    return max(0, int(total_workouts)) // 4


def earned_badges(stats: BadgeStats) -> FrozenSet[str]:
    """Conjunto de insignias ganadas; se recalcula siempre desde las stats actuales."""
    return frozenset(badge_id for badge_id, rule in BADGE_RULES if rule(stats))


def badge_board(earned: Iterable[str]) -> List[Dict[str, object]]:
    """Catálogo completo con el flag `earned` derivado."""
    earned = set(earned)
    return [dict(b, earned=b["id"] in earned) for b in BADGES]


def badge_stats(logs: Iterable[LogEntry], current_streak: int, longest_streak: int) -> BadgeStats:
    """Snapshot para evaluar insignias a partir del historial de logs."""
    logs = list(logs or [])
    totals = total_stats(logs)
    return BadgeStats(
        total_workouts=totals.total_workouts,
        total_minutes=totals.total_minutes,
        current_streak=current_streak,
        longest_streak=longest_streak,
        positive_mood_count=positive_mood_count(logs),
        weekly_consistency_weeks=weekly_consistency_weeks(totals.total_workouts),
    )
