# senior_strength/services/month_grid.py
from __future__ import annotations

import calendar as _cal
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from senior_strength.services.dates import minutes_from_seconds
from senior_strength.services.store import LogEntry

GRID_CELLS = 42  # 6 semanas x 7 días, siempre
DAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(frozen=True)
class CalendarDay:
    date: str
    has_workout: bool
    workout_count: int
    day_of_week: int          # 0 = domingo
    is_today: bool
    is_current_month: bool
    total_minutes: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _sunday_index(d: date) -> int:
    # date.weekday(): lunes=0 ... domingo=6 -> domingo=0
    return (d.weekday() + 1) % 7


def grid_bounds(year: int, month: int) -> Tuple[date, date]:
    """Primer y último día (inclusive) de la rejilla del mes."""
    first = date(year, month, 1)
    start = first - timedelta(days=_sunday_index(first))
    return start, start + timedelta(days=GRID_CELLS - 1)


def generate_month_grid(logs: Iterable[LogEntry], year: int, month: int, today: date) -> List[CalendarDay]:
    """
    Rejilla de 42 días contiguos empezando en domingo:
    relleno del mes anterior + días del mes + relleno del siguiente.
    Se regenera entera en cada navegación.
    """
    start, _end = grid_bounds(year, month)

    by_day: Dict[str, List[LogEntry]] = defaultdict(list)
    for e in logs or []:
        by_day[e.date.isoformat()].append(e)

    today_iso = today.isoformat()
    cells: List[CalendarDay] = []
    for i in range(GRID_CELLS):
        d = start + timedelta(days=i)
        key = d.isoformat()
        day_logs = by_day.get(key, [])
        cells.append(CalendarDay(
            date=key,
            has_workout=bool(day_logs),
            workout_count=len(day_logs),
            day_of_week=_sunday_index(d),
            is_today=key == today_iso,
            is_current_month=(d.year == year and d.month == month),
            total_minutes=minutes_from_seconds(sum(e.duration_seconds for e in day_logs)),
        ))
    return cells


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Navegación anterior/siguiente (delta = -1 / +1)."""
    idx = year * 12 + (month - 1) + delta
    y, m = divmod(idx, 12)
    return y, m + 1


def month_label(year: int, month: int) -> str:
    return f"{_cal.month_name[month]} {year}"


def month_summary(grid: List[CalendarDay]) -> dict:
    """Resumen del mes objetivo (solo celdas is_current_month)."""
    days = [c for c in grid if c.is_current_month]
    active = [c for c in days if c.has_workout]
    workouts = sum(c.workout_count for c in active)
    minutes = sum(c.total_minutes for c in active)
    return {
        "workout_days": len(active),
        "total_workouts": workouts,
        "total_minutes": minutes,
        "average_minutes": (minutes * 2 + len(active)) // (2 * len(active)) if active else 0,
        "days_in_month": len(days),
        "workout_percentage": (len(active) * 200 + len(days)) // (2 * len(days)) if days else 0,
    }
