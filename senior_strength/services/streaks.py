# senior_strength/services/streaks.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError

from senior_strength.services.dates import previous_day
from senior_strength.services.store import LogEntry, StoreError, UserStore, WorkoutLogStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0

    def to_dict(self) -> dict:
        return {"current_streak": self.current_streak, "longest_streak": self.longest_streak}


@dataclass(frozen=True)
class RecordResult:
    entry: LogEntry
    current_streak: int
    longest_streak: int
    streak_changed: bool
    duplicate: bool = False


def next_streak(state: StreakState, had_log_previous_day: bool) -> StreakState:
    """Transición: día anterior con log -> +1; si no, la racha vuelve a 1."""
    current = state.current_streak + 1 if had_log_previous_day else 1
    return StreakState(current_streak=current, longest_streak=max(state.longest_streak, current))


def compute_streaks(dates: Iterable[date], today: date) -> StreakState:
    """
    Recalcula ambas rachas desde el historial.
    - longest: la serie más larga de días consecutivos con log.
    - current: serie que termina hoy (o ayer, si hoy aún no hay log).
    Los días posteriores a `today` se ignoran.
    """
    days = sorted({d for d in dates if d is not None and d <= today})
    if not days:
        return StreakState(0, 0)

    longest = run = 1
    for prev, cur in zip(days, days[1:]):
        run = run + 1 if cur - prev == timedelta(days=1) else 1
        longest = max(longest, run)

    day_set = set(days)
    anchor = today if today in day_set else previous_day(today)
    current = 0
    while anchor in day_set:
        current += 1
        anchor = previous_day(anchor)

    return StreakState(current_streak=current, longest_streak=longest)


class StreakTracker:
    """
    Único escritor de current_streak / longest_streak.
    El insert del log y la actualización de rachas van en la misma transacción.
    """

    def __init__(self, logs: WorkoutLogStore, users: UserStore):
        self.logs = logs
        self.users = users

    def record_workout(
        self,
        *,
        user_id: int,
        workout_id: int,
        day: date,
        duration_seconds: int = 0,
        journal_text: Optional[str] = None,
        sentiment_tag: Optional[str] = None,
        event_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> RecordResult:
        """
        `today` es el día local del usuario; si `day` es anterior (relleno de un
        día pasado) las rachas se recalculan desde el historial en vez de aplicar
        la transición de "hoy". Sin `today` se asume que `day` es hoy.
        """
        user = self.users.get(user_id)
        if user is None:
            raise StoreError(f"usuario {user_id} no existe")
        state = StreakState(user.current_streak, user.longest_streak)

        # Evento repetido (misma clave de idempotencia): no se vuelve a contar
        if event_id:
            existing = self.logs.find_by_event(event_id)
            if existing is not None:
                logger.info("Evento %s ya registrado (log %s), se ignora", event_id, existing.id)
                return RecordResult(existing, state.current_streak, state.longest_streak, False, duplicate=True)

        # Solo el primer log del día mueve la racha
        first_of_day = not self.logs.has_log_on(user_id, day)
        new_state = state
        if first_of_day and today is not None and day < today:
            recomputed = compute_streaks(self.logs.log_dates(user_id) + [day], today)
            new_state = StreakState(
                current_streak=recomputed.current_streak,
                longest_streak=max(state.longest_streak, recomputed.longest_streak),
            )
        elif first_of_day:
            new_state = next_streak(state, self.logs.has_log_on(user_id, previous_day(day)))

        try:
            entry = self.logs.insert(
                user_id=user_id,
                workout_id=workout_id,
                day=day,
                duration_seconds=duration_seconds,
                journal_text=journal_text,
                sentiment_tag=sentiment_tag,
                event_id=event_id,
                commit=False,
            )
            if new_state != state:
                self.users.update_streak(user_id, new_state.current_streak, new_state.longest_streak, commit=False)
            self.logs.commit()
        except StoreError as e:
            self.logs.rollback()
            # Carrera con el mismo evento: otra petición insertó primero
            if event_id and isinstance(e.__cause__, IntegrityError):
                existing = self.logs.find_by_event(event_id)
                if existing is not None:
                    logger.info("Evento %s insertado en paralelo (log %s), se ignora", event_id, existing.id)
                    current = self.users.get(user_id) or user
                    return RecordResult(
                        existing, current.current_streak, current.longest_streak, False, duplicate=True,
                    )
            logger.exception("No se pudo registrar el entreno de user=%s day=%s", user_id, day)
            raise

        logger.info(
            "Entreno registrado user=%s day=%s streak=%s/%s",
            user_id, day, new_state.current_streak, new_state.longest_streak,
        )
        return RecordResult(
            entry=entry,
            current_streak=new_state.current_streak,
            longest_streak=new_state.longest_streak,
            streak_changed=new_state != state,
        )

    def reconcile(self, user_id: int, today: date) -> StreakState:
        """
        Recalcula las rachas desde el historial completo y las persiste.
        Se usa cuando el estado guardado puede estar desfasado (p. ej. al volver
        la app a primer plano), no tras cada escritura.
        """
        state = compute_streaks(self.logs.log_dates(user_id), today)
        self.users.update_streak(user_id, state.current_streak, state.longest_streak)
        logger.info("Rachas reconciliadas user=%s -> %s/%s", user_id, state.current_streak, state.longest_streak)
        return state
