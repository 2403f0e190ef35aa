# senior_strength/services/dates.py
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Convención única: un log pertenece al día de calendario LOCAL del usuario,
# calculado una sola vez al crearlo y guardado como 'YYYY-MM-DD'.


def parse_day(value) -> Optional[date]:
    """
    Normaliza date/datetime/str a date.
    Acepta 'YYYY-MM-DD' o ISO con tiempo (se toma el prefijo de fecha).
    Devuelve None si no se puede interpretar.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


def day_iso(value) -> str:
    d = parse_day(value)
    if d is None:
        raise ValueError(f"Fecha inválida: {value!r}")
    return d.isoformat()


def local_today(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """Día de calendario actual en la zona del usuario (UTC si la zona no es válida)."""
    try:
        tz = ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(tz).date()


def shift_months(d: date, months: int) -> date:
    """Desplaza N meses de calendario; el día se acota al último del mes destino."""
    idx = d.year * 12 + (d.month - 1) + months
    year, month = divmod(idx, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last))


def shift_years(d: date, years: int) -> date:
    return shift_months(d, years * 12)


def previous_day(d: date) -> date:
    return d - timedelta(days=1)


def minutes_from_seconds(total_seconds: int) -> int:
    # redondeo "half-up" (no bancario): 90s -> 2 min, 210s -> 4 min
    return (max(0, int(total_seconds)) + 30) // 60
