# senior_strength/services/store.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from senior_strength.models.user import User
from senior_strength.models.workout import Workout, WorkoutLog
from senior_strength.services.dates import parse_day

logger = logging.getLogger(__name__)

SENTIMENT_LABELS = ("positive", "neutral", "negative")


class StoreError(RuntimeError):
    """Fallo de acceso al almacén (consulta o escritura)."""


# -------------------------------------------------------------------
# Registros tipados (lo único que ve el resto del motor)
# -------------------------------------------------------------------
@dataclass(frozen=True)
class LogEntry:
    id: Optional[int]
    user_id: int
    workout_id: Optional[int]
    date: date
    duration_seconds: int = 0
    journal_text: Optional[str] = None
    sentiment_tag: Optional[str] = None
    workout_title: Optional[str] = None
    event_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "workout_id": self.workout_id,
            "date": self.date.isoformat(),
            "duration_seconds": self.duration_seconds,
            "journal_text": self.journal_text,
            "sentiment_tag": self.sentiment_tag,
            "workout_title": self.workout_title,
        }


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    full_name: Optional[str] = None
    timezone: str = "UTC"
    push_token: Optional[str] = None
    trusted_contact_email: Optional[str] = None
    is_subscribed: bool = True
    current_streak: int = 0
    longest_streak: int = 0

    @property
    def display_name(self) -> str:
        return self.full_name or (self.email or "").split("@")[0]


# -------------------------------------------------------------------
# Mapeo fila -> registro (tolerante con datos incompletos)
# -------------------------------------------------------------------
def _get(row: Any, key: str, default=None):
    if isinstance(row, dict):
        return row.get(key, default)
    return getattr(row, key, default)


def _coerce_int(x: Any, default: int = 0) -> int:
    try:
        if x is None or x == "":
            return default
        return int(float(x))
    except (TypeError, ValueError):
        return default


def normalize_sentiment(label: Any) -> Optional[str]:
    if not label:
        return None
    s = str(label).strip().lower()
    return s if s in SENTIMENT_LABELS else None


def entry_from_row(row: Any) -> LogEntry:
    """
    Única función de mapeo fila cruda -> LogEntry.
    Acepta un WorkoutLog o un dict. Duración ausente/negativa -> 0,
    sentimiento desconocido -> None. Sin fecha válida lanza ValueError.
    """
    day = parse_day(_get(row, "date"))
    if day is None:
        raise ValueError(f"log sin fecha válida: {_get(row, 'date')!r}")

    title = _get(row, "workout_title")
    if title is None:
        workout = _get(row, "workout") or _get(row, "workouts")
        if workout is not None:
            title = _get(workout, "title")

    journal = _get(row, "journal_text")
    if isinstance(journal, str) and not journal.strip():
        journal = None

    return LogEntry(
        id=_get(row, "id"),
        user_id=_coerce_int(_get(row, "user_id")),
        workout_id=_get(row, "workout_id"),
        date=day,
        duration_seconds=max(0, _coerce_int(_get(row, "duration_seconds"))),
        journal_text=journal,
        sentiment_tag=normalize_sentiment(_get(row, "sentiment_tag")),
        workout_title=title,
        event_id=_get(row, "event_id"),
    )


def entries_from_rows(rows: Iterable[Any]) -> List[LogEntry]:
    """Mapea filas descartando (con aviso) las que no tienen fecha."""
    out: List[LogEntry] = []
    for r in rows or []:
        try:
            out.append(entry_from_row(r))
        except ValueError as e:
            logger.warning("Fila de log descartada: %s", e)
    return out


def user_from_row(u: Any) -> UserRecord:
    return UserRecord(
        id=_coerce_int(_get(u, "id")),
        email=_get(u, "email") or "",
        full_name=_get(u, "full_name"),
        timezone=_get(u, "timezone") or "UTC",
        push_token=_get(u, "push_token") or None,
        trusted_contact_email=_get(u, "trusted_contact_email") or None,
        is_subscribed=bool(_get(u, "is_subscribed", True)),
        current_streak=_coerce_int(_get(u, "current_streak")),
        longest_streak=_coerce_int(_get(u, "longest_streak")),
    )


# -------------------------------------------------------------------
# Stores (handle explícito: se construyen con una sesión SQLAlchemy)
# -------------------------------------------------------------------
class _SessionStore:
    def __init__(self, session):
        self.session = session

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"{action}: {e}") from e

    def commit(self):
        with self._guard("commit"):
            self.session.commit()

    def rollback(self):
        self.session.rollback()


class WorkoutLogStore(_SessionStore):
    """Registro append-only de sesiones completadas."""

    def _base_query(self):
        return self.session.query(WorkoutLog).options(joinedload(WorkoutLog.workout))

    def insert(
        self,
        *,
        user_id: int,
        workout_id: int,
        day: date,
        duration_seconds: int = 0,
        journal_text: Optional[str] = None,
        sentiment_tag: Optional[str] = None,
        event_id: Optional[str] = None,
        commit: bool = True,
    ) -> LogEntry:
        with self._guard("insert workout_log"):
            row = WorkoutLog(
                user_id=user_id,
                workout_id=workout_id,
                date=day.isoformat(),
                duration_seconds=max(0, int(duration_seconds or 0)),
                journal_text=journal_text or None,
                sentiment_tag=normalize_sentiment(sentiment_tag),
                event_id=event_id or None,
            )
            self.session.add(row)
            self.session.flush()
            if commit:
                self.session.commit()
            return entry_from_row(row)

    def query_by_user(self, user_id: int, start: Optional[date] = None, end: Optional[date] = None) -> List[LogEntry]:
        """Logs del usuario (rango inclusivo opcional), orden ascendente por fecha."""
        with self._guard("query_by_user"):
            q = self._base_query().filter(WorkoutLog.user_id == user_id)
            if start is not None:
                q = q.filter(WorkoutLog.date >= start.isoformat())
            if end is not None:
                q = q.filter(WorkoutLog.date <= end.isoformat())
            rows = q.order_by(WorkoutLog.date.asc(), WorkoutLog.id.asc()).all()
        return entries_from_rows(rows)

    def query_by_date(self, user_id: int, day: date) -> List[LogEntry]:
        with self._guard("query_by_date"):
            rows = (
                self._base_query()
                .filter(WorkoutLog.user_id == user_id, WorkoutLog.date == day.isoformat())
                .order_by(WorkoutLog.id.asc())
                .all()
            )
        return entries_from_rows(rows)

    def has_log_on(self, user_id: int, day: date) -> bool:
        with self._guard("has_log_on"):
            found = (
                self.session.query(WorkoutLog.id)
                .filter(WorkoutLog.user_id == user_id, WorkoutLog.date == day.isoformat())
                .first()
            )
        return found is not None

    def last_log_date(self, user_id: int) -> Optional[date]:
        with self._guard("last_log_date"):
            value = (
                self.session.query(func.max(WorkoutLog.date))
                .filter(WorkoutLog.user_id == user_id)
                .scalar()
            )
        return parse_day(value)

    def log_dates(self, user_id: int) -> List[date]:
        """Días distintos con al menos un log (ascendente)."""
        with self._guard("log_dates"):
            rows = (
                self.session.query(WorkoutLog.date)
                .filter(WorkoutLog.user_id == user_id)
                .distinct()
                .order_by(WorkoutLog.date.asc())
                .all()
            )
        return [d for d in (parse_day(r[0]) for r in rows) if d is not None]

    def find_by_event(self, event_id: str) -> Optional[LogEntry]:
        if not event_id:
            return None
        with self._guard("find_by_event"):
            row = self._base_query().filter(WorkoutLog.event_id == event_id).first()
        return entry_from_row(row) if row else None

    def journal_entries(
        self,
        user_id: int,
        sentiment: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
    ) -> List[LogEntry]:
        """
        Entradas con texto de diario, más recientes primero.
        Filtro opcional por sentimiento y búsqueda (texto o título del entreno).
        """
        with self._guard("journal_entries"):
            q = (
                self._base_query()
                .outerjoin(Workout, Workout.id == WorkoutLog.workout_id)
                .filter(WorkoutLog.user_id == user_id)
                .filter(WorkoutLog.journal_text.isnot(None))
                .filter(WorkoutLog.journal_text != "")
            )
            label = normalize_sentiment(sentiment)
            if label:
                q = q.filter(WorkoutLog.sentiment_tag == label)
            term = (search or "").strip().lower()
            if term:
                like = f"%{term}%"
                q = q.filter(or_(
                    func.lower(WorkoutLog.journal_text).like(like),
                    func.lower(Workout.title).like(like),
                ))
            rows = (
                q.order_by(WorkoutLog.date.desc(), WorkoutLog.id.desc())
                .limit(max(1, int(limit)))
                .all()
            )
        return entries_from_rows(rows)


class UserStore(_SessionStore):
    """Lectura de usuarios y escritura de los campos que gestiona el motor."""

    def _row(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get(self, user_id: int) -> Optional[UserRecord]:
        with self._guard("get user"):
            u = self._row(user_id)
        return user_from_row(u) if u else None

    def inactivity_candidates(self) -> List[UserRecord]:
        """Usuarios con token push y suscritos."""
        with self._guard("inactivity_candidates"):
            rows = (
                self.session.query(User)
                .filter(User.push_token.isnot(None), User.push_token != "")
                .filter(User.is_subscribed.is_(True))
                .order_by(User.id.asc())
                .all()
            )
        return [user_from_row(u) for u in rows]

    def digest_recipients(self) -> List[UserRecord]:
        """Usuarios con contacto de confianza configurado."""
        with self._guard("digest_recipients"):
            rows = (
                self.session.query(User)
                .filter(User.trusted_contact_email.isnot(None), User.trusted_contact_email != "")
                .order_by(User.id.asc())
                .all()
            )
        return [user_from_row(u) for u in rows]

    def update_streak(self, user_id: int, current: int, longest: int, commit: bool = True) -> None:
        with self._guard("update_streak"):
            u = self._row(user_id)
            if u is None:
                raise StoreError(f"usuario {user_id} no existe")
            u.current_streak = max(0, int(current))
            u.longest_streak = max(0, int(longest))
            if commit:
                self.session.commit()

    def cache_badges(self, user_id: int, badge_ids: Iterable[str]) -> None:
        """Reescribe la caché de insignias (solo presentación)."""
        with self._guard("cache_badges"):
            u = self._row(user_id)
            if u is None:
                return
            u.badges = sorted(set(badge_ids))
            self.session.commit()

    def update_settings(self, user_id: int, **fields) -> Optional[UserRecord]:
        allowed = ("push_token", "trusted_contact_email", "is_subscribed", "timezone", "full_name")
        with self._guard("update_settings"):
            u = self._row(user_id)
            if u is None:
                return None
            for k in allowed:
                if k in fields:
                    setattr(u, k, fields[k])
            self.session.commit()
        return user_from_row(u)
