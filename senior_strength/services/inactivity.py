# senior_strength/services/inactivity.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Optional

from senior_strength.services.batch import JobSummary, run_per_user
from senior_strength.services.dates import local_today
from senior_strength.services.dispatcher import NotificationDispatcher, PushMessage
from senior_strength.services.store import StoreError, UserRecord, UserStore, WorkoutLogStore

logger = logging.getLogger(__name__)

JOB_NAME = "check_inactivity"

NEVER_LOGGED_DAYS = 999   # centinela: nunca ha registrado un entreno
CANDIDATE_MIN_DAYS = 2    # a partir de 2 días sin entrenar se notifica
STREAK_RISK_DAYS = 3
WEEK_PLUS_DAYS = 7

GENTLE = "gentle"
STREAK_RISK = "streak_risk"
WEEK_PLUS = "week_plus"

ACTION_OPEN_WORKOUTS = "open_workouts"


def days_inactive(last_log: Optional[date], today: date) -> int:
    if last_log is None:
        return NEVER_LOGGED_DAYS
    return max(0, (today - last_log).days)


def classify(days: int) -> Optional[str]:
    """<2 -> no inactivo; 2 -> gentle; 3..6 -> streak_risk; >=7 -> week_plus."""
    if days < CANDIDATE_MIN_DAYS:
        return None
    if days >= WEEK_PLUS_DAYS:
        return WEEK_PLUS
    if days >= STREAK_RISK_DAYS:
        return STREAK_RISK
    return GENTLE


@dataclass(frozen=True)
class InactivityNotification:
    user_id: int
    tier: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> PushMessage:
        return PushMessage(title=self.title, body=self.body, data=dict(self.data))


def build_notification(user: UserRecord, days: int, tier: str) -> InactivityNotification:
    name = user.display_name
    if tier == WEEK_PLUS:
        return InactivityNotification(
            user_id=user.id,
            tier=tier,
            title="We miss you! 💪",
            body=f"Hi {name}, it's been a week since your last workout. Ready to get back into your routine?",
            data={"type": "inactivity_reminder", "days_inactive": days, "action": ACTION_OPEN_WORKOUTS},
        )
    if tier == STREAK_RISK:
        return InactivityNotification(
            user_id=user.id,
            tier=tier,
            title="Keep your streak alive! 🔥",
            body=f"{name}, you had a {user.current_streak}-day streak going. Let's not break it now!",
            data={
                "type": "streak_reminder",
                "days_inactive": days,
                "previous_streak": user.current_streak,
                "action": ACTION_OPEN_WORKOUTS,
            },
        )
    return InactivityNotification(
        user_id=user.id,
        tier=GENTLE,
        title="Time for your workout! 🏋️‍♀️",
        body=f"{name}, it's been {days} days since your last workout. How about a quick session?",
        data={"type": "gentle_reminder", "days_inactive": days, "action": ACTION_OPEN_WORKOUTS},
    )


class InactivityDetector:
    """Recorre los usuarios elegibles y envía un recordatorio por usuario inactivo."""

    def __init__(
        self,
        users: UserStore,
        logs: WorkoutLogStore,
        dispatcher: NotificationDispatcher,
        today: Optional[date] = None,
        delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.users = users
        self.logs = logs
        self.dispatcher = dispatcher
        self.today = today
        self.delay = delay
        self.sleep = sleep
        self._sent = 0

    def run(self, stop: Optional[Callable[[], bool]] = None) -> JobSummary:
        try:
            candidates = self.users.inactivity_candidates()
        except StoreError as e:
            logger.error("No se pudo consultar usuarios para inactividad: %s", e)
            return JobSummary.failed(JOB_NAME, str(e))

        logger.info("Comprobando inactividad de %d usuarios", len(candidates))
        self._sent = 0
        return run_per_user(JOB_NAME, candidates, self._process, self._failure, stop=stop)

    def _process(self, user: UserRecord) -> Optional[Dict[str, Any]]:
        if not user.push_token:
            raise ValueError("usuario sin push token")

        today = self.today or local_today(user.timezone)
        last = self.logs.last_log_date(user.id)
        days = days_inactive(last, today)
        tier = classify(days)
        if tier is None:
            return None

        note = build_notification(user, days, tier)
        # pequeña pausa entre envíos para no saturar el servicio push
        if self._sent and self.delay:
            self.sleep(self.delay)
        outcome = self.dispatcher.send_push([(user.push_token, note.to_message())]).details[0]
        self._sent += 1

        item = {
            "user_id": user.id,
            "email": user.email,
            "days_inactive": days,
            "last_workout_date": last.isoformat() if last else "never",
            "tier": tier,
            "notification_sent": outcome.success,
            "success": outcome.success,
            "message": note.body,
        }
        if outcome.error:
            item["error"] = outcome.error
        return item

    def _failure(self, user: UserRecord, exc: Exception) -> Dict[str, Any]:
        return {
            "user_id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "notification_sent": False,
            "success": False,
            "error": str(exc) or exc.__class__.__name__,
        }
