# senior_strength/services/weekly_report.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from flask import render_template

from senior_strength.services.batch import JobSummary, run_per_user
from senior_strength.services.dates import local_today, minutes_from_seconds
from senior_strength.services.dispatcher import EmailMessage, NotificationDispatcher
from senior_strength.services.progress import sentiment_tally
from senior_strength.services.store import LogEntry, StoreError, UserRecord, UserStore, WorkoutLogStore

logger = logging.getLogger(__name__)

JOB_NAME = "weekly_report"
WINDOW_DAYS = 7
MAX_JOURNAL_EXCERPTS = 3
UNKNOWN_WORKOUT = "Unknown Workout"


@dataclass(frozen=True)
class WeeklyStats:
    total_workouts: int
    total_minutes: int
    active_days: int
    current_streak: int
    sentiment: Dict[str, int]
    workout_days: List[str]


@dataclass(frozen=True)
class JournalExcerpt:
    date: date
    text: str
    workout_title: str
    sentiment: Optional[str] = None


@dataclass(frozen=True)
class StripDay:
    date: date
    weekday: str
    day: int
    active: bool


@dataclass
class WeeklyDigest:
    user_id: int
    user_name: str
    recipient: Optional[str]
    week_start: date
    week_end: date
    stats: WeeklyStats
    calendar: List[StripDay] = field(default_factory=list)
    journal: List[JournalExcerpt] = field(default_factory=list)

    @property
    def week_range(self) -> str:
        return f"{format_day(self.week_start)} - {format_day(self.week_end)}"

    @property
    def subject(self) -> str:
        return f"Weekly Fitness Report for {self.user_name}"

    @property
    def sentiment_percent(self) -> Optional[Dict[str, int]]:
        return sentiment_percentages(self.stats.sentiment)


def format_day(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}"


def week_window(today: date) -> Tuple[date, date]:
    """Los 7 días de calendario que terminan hoy (incluido)."""
    return today - timedelta(days=WINDOW_DAYS - 1), today


def weekly_stats(logs: Iterable[LogEntry], current_streak: int) -> WeeklyStats:
    logs = list(logs or [])
    days = sorted({e.date.isoformat() for e in logs})
    return WeeklyStats(
        total_workouts=len(logs),
        total_minutes=minutes_from_seconds(sum(e.duration_seconds for e in logs)),
        active_days=len(days),
        current_streak=current_streak,
        sentiment=sentiment_tally(logs),
        workout_days=days,
    )


def sentiment_percentages(tally: Dict[str, int]) -> Optional[Dict[str, int]]:
    total = sum(tally.values())
    if total == 0:
        return None
    return {k: (v * 200 + total) // (2 * total) for k, v in tally.items()}


def journal_excerpts(logs: Iterable[LogEntry], limit: int = MAX_JOURNAL_EXCERPTS) -> List[JournalExcerpt]:
    """Hasta `limit` entradas de diario, las más recientes primero."""
    with_text = [e for e in logs or [] if e.journal_text]
    with_text.sort(key=lambda e: (e.date, e.id or 0), reverse=True)
    return [
        JournalExcerpt(
            date=e.date,
            text=e.journal_text,
            workout_title=e.workout_title or UNKNOWN_WORKOUT,
            sentiment=e.sentiment_tag,
        )
        for e in with_text[:limit]
    ]


def compose(user: UserRecord, logs: Iterable[LogEntry], today: date) -> WeeklyDigest:
    start, end = week_window(today)
    window = [e for e in logs or [] if start <= e.date <= end]
    stats = weekly_stats(window, user.current_streak)
    active = set(stats.workout_days)

    strip = []
    for i in range(WINDOW_DAYS):
        d = start + timedelta(days=i)
        strip.append(StripDay(date=d, weekday=d.strftime("%a"), day=d.day, active=d.isoformat() in active))

    return WeeklyDigest(
        user_id=user.id,
        user_name=user.display_name,
        recipient=user.trusted_contact_email,
        week_start=start,
        week_end=end,
        stats=stats,
        calendar=strip,
        journal=journal_excerpts(window),
    )


def render_html(digest: WeeklyDigest) -> str:
    return render_template("email/weekly_report.html", d=digest, format_day=format_day)


def render_text(digest: WeeklyDigest) -> str:
    return render_template("email/weekly_report.txt", d=digest, format_day=format_day)


def to_message(digest: WeeklyDigest) -> EmailMessage:
    return EmailMessage(subject=digest.subject, html=render_html(digest), text=render_text(digest))


class WeeklyDigestComposer:
    """Informe semanal por usuario, enviado a su contacto de confianza."""

    def __init__(
        self,
        users: UserStore,
        logs: WorkoutLogStore,
        dispatcher: NotificationDispatcher,
        today: Optional[date] = None,
    ):
        self.users = users
        self.logs = logs
        self.dispatcher = dispatcher
        self.today = today

    def run(
        self,
        user_id: Optional[int] = None,
        dry_run: bool = False,
        stop: Optional[Callable[[], bool]] = None,
    ) -> JobSummary:
        """
        Sin user_id: todos los usuarios con contacto de confianza.
        Con user_id (modo prueba): solo ese usuario.
        dry_run: calcula y renderiza pero no envía.
        """
        try:
            if user_id is not None:
                user = self.users.get(user_id)
                if user is None:
                    return JobSummary.failed(JOB_NAME, f"usuario {user_id} no encontrado")
                users = [user]
            else:
                users = self.users.digest_recipients()
        except StoreError as e:
            logger.error("No se pudo consultar usuarios para el informe semanal: %s", e)
            return JobSummary.failed(JOB_NAME, str(e))

        logger.info("Generando informes semanales para %d usuarios", len(users))
        return run_per_user(
            JOB_NAME, users,
            lambda u: self._process(u, dry_run),
            self._failure,
            stop=stop,
        )

    def build(self, user: UserRecord) -> WeeklyDigest:
        today = self.today or local_today(user.timezone)
        start, end = week_window(today)
        logs = self.logs.query_by_user(user.id, start, end)
        return compose(user, logs, today)

    def _process(self, user: UserRecord, dry_run: bool) -> Dict[str, Any]:
        if not user.trusted_contact_email:
            raise ValueError("usuario sin contacto de confianza")

        digest = self.build(user)
        message = to_message(digest)
        item: Dict[str, Any] = {
            "user_id": user.id,
            "email": digest.recipient,
            "stats": asdict(digest.stats),
        }

        if dry_run:
            item.update(success=True, sent=False, preview={"subject": message.subject, "text": message.text, "html": message.html})
            return item

        outcome = self.dispatcher.send_email([(digest.recipient, message)]).details[0]
        item.update(success=outcome.success, sent=outcome.success)
        if outcome.error:
            item["error"] = outcome.error
        return item

    def _failure(self, user: UserRecord, exc: Exception) -> Dict[str, Any]:
        return {
            "user_id": getattr(user, "id", None),
            "email": getattr(user, "trusted_contact_email", None),
            "success": False,
            "error": str(exc) or exc.__class__.__name__,
        }
