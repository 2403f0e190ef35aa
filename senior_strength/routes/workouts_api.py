# senior_strength/routes/workouts_api.py
import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from senior_strength import db
from senior_strength.forms.workout_log_form import WorkoutLogForm
from senior_strength.models.workout import Workout
from senior_strength.routes.responses import progress_unavailable, validation_error
from senior_strength.services.badges import badge_stats, earned_badges
from senior_strength.services.dates import local_today, parse_day
from senior_strength.services.factory import build_classifier, build_stores
from senior_strength.services.sentiment import sentiment_description, sentiment_emoji
from senior_strength.services.store import StoreError
from senior_strength.services.streaks import StreakTracker

logger = logging.getLogger(__name__)

workouts_bp = Blueprint("workouts_api", __name__, url_prefix="/api/workouts")


def _uid():
    return int(current_user.id)


@workouts_bp.route("/<int:workout_id>/complete", methods=["POST"])
@login_required
def complete_workout(workout_id):
    """
    Registra un entreno completado:
    sentimiento del diario -> log + rachas (misma transacción) -> insignias.
    """
    if not request.is_json:
        return jsonify({"error": "Content-Type must be application/json"}), 415
    if not isinstance(request.get_json(silent=True), dict):
        return jsonify({"error": "El cuerpo debe ser un objeto JSON"}), 400

    form = WorkoutLogForm()
    if not form.validate():
        return validation_error(form)

    workout = db.session.get(Workout, workout_id)
    if workout is None:
        return jsonify(error_code="not_found", message="Entreno no encontrado"), 404

    today = local_today(current_user.timezone)
    day = parse_day(form.date.data) if form.date.data else today
    if day is None:
        return jsonify({"error": "validation_error", "fields": {"date": ["Fecha inválida."]}}), 400
    if day > today:
        return jsonify({"error": "validation_error", "fields": {"date": ["La fecha no puede ser futura."]}}), 400

    journal = (form.journal_text.data or "").strip() or None
    sentiment = build_classifier(current_app).classify(journal) if journal else None

    logs, users = build_stores()
    tracker = StreakTracker(logs, users)
    try:
        before = users.get(_uid())
        history = logs.query_by_user(_uid())
        result = tracker.record_workout(
            user_id=_uid(),
            workout_id=workout.id,
            day=day,
            duration_seconds=form.duration_seconds.data or 0,
            journal_text=journal,
            sentiment_tag=sentiment,
            event_id=(form.event_id.data or "").strip() or None,
            today=today,
        )
        earned_before = earned_badges(badge_stats(history, before.current_streak, before.longest_streak))
        if result.duplicate:
            earned_now = earned_before
        else:
            earned_now = earned_badges(
                badge_stats(history + [result.entry], result.current_streak, result.longest_streak)
            )
            users.cache_badges(_uid(), earned_now)
    except StoreError:
        logger.exception("Fallo registrando entreno user=%s workout=%s", _uid(), workout_id)
        return progress_unavailable()

    data = {
        "entry": result.entry.to_dict(),
        "duplicate": result.duplicate,
        "current_streak": result.current_streak,
        "longest_streak": result.longest_streak,
        "streak_changed": result.streak_changed,
        "new_badges": sorted(earned_now - earned_before),
        "sentiment": None,
    }
    label = result.entry.sentiment_tag
    if label:
        data["sentiment"] = {
            "label": label,
            "emoji": sentiment_emoji(label),
            "description": sentiment_description(label),
        }
    return jsonify({"data": data}), 200 if result.duplicate else 201
