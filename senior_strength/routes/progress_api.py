# senior_strength/routes/progress_api.py
import logging
import re

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from senior_strength.routes.responses import progress_unavailable
from senior_strength.services.achievements import (
    AchievementStats, achievements, next_achievement, sorted_achievements,
)
from senior_strength.services.badges import badge_board, badge_stats, earned_badges
from senior_strength.services.dates import local_today
from senior_strength.services.factory import build_stores
from senior_strength.services.month_grid import (
    DAY_HEADERS, generate_month_grid, grid_bounds, month_label, month_summary, shift_month,
)
from senior_strength.services.progress import (
    level_info, motivational_message, sentiment_tally, time_based_stats, total_stats,
)
from senior_strength.services.sentiment import sentiment_emoji
from senior_strength.services.store import SENTIMENT_LABELS, StoreError
from senior_strength.services.streaks import StreakTracker

logger = logging.getLogger(__name__)

progress_bp = Blueprint("progress_api", __name__, url_prefix="/api/progress")

MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
JOURNAL_MAX_LIMIT = 200


def _uid():
    return int(current_user.id)


# ---------- RESUMEN (stats, nivel, insignias, logros) ----------

@progress_bp.route("/summary", methods=["GET"])
@login_required
def summary():
    logs, users = build_stores()
    try:
        user = users.get(_uid())
        history = logs.query_by_user(_uid())
    except StoreError:
        logger.exception("No se pudo cargar el progreso de user=%s", _uid())
        return progress_unavailable()

    today = local_today(user.timezone)
    totals = total_stats(history)
    periods = time_based_stats(history, today)
    earned = earned_badges(badge_stats(history, user.current_streak, user.longest_streak))
    items = achievements(
        AchievementStats(
            total_workouts=totals.total_workouts,
            current_streak=user.current_streak,
            this_month_workouts=periods.this_month,
        ),
        totals.total_minutes,
    )
    upcoming = next_achievement(items)

    return jsonify({"data": {
        "stats": {
            "total_workouts": totals.total_workouts,
            "total_minutes": totals.total_minutes,
            "current_streak": user.current_streak,
            "longest_streak": user.longest_streak,
            "this_week": periods.this_week,
            "this_month": periods.this_month,
            "this_year": periods.this_year,
            "sentiment": sentiment_tally(history),
        },
        "level": level_info(totals.total_workouts, totals.total_minutes).to_dict(),
        "badges": badge_board(earned),
        "achievements": [a.to_dict() for a in items],
        "achievements_sorted": [a.to_dict() for a in sorted_achievements(items)],
        "next_achievement": upcoming.to_dict() if upcoming else None,
        "message": motivational_message(totals.total_workouts),
    }}), 200


# ---------- CALENDARIO MENSUAL ----------

@progress_bp.route("/calendar", methods=["GET"])
@login_required
def calendar():
    today = local_today(current_user.timezone)
    raw = (request.args.get("month") or "").strip()
    if raw:
        m = MONTH_RE.match(raw)
        if not m or not 1 <= int(m.group(2)) <= 12:
            return jsonify({"error": "month debe tener formato YYYY-MM"}), 400
        year, month = int(m.group(1)), int(m.group(2))
    else:
        year, month = today.year, today.month

    start, end = grid_bounds(year, month)
    logs, _users = build_stores()
    try:
        month_logs = logs.query_by_user(_uid(), start, end)
    except StoreError:
        logger.exception("No se pudo cargar el calendario de user=%s", _uid())
        return progress_unavailable()

    grid = generate_month_grid(month_logs, year, month, today)
    prev_y, prev_m = shift_month(year, month, -1)
    next_y, next_m = shift_month(year, month, 1)
    return jsonify({"data": {
        "month": f"{year:04d}-{month:02d}",
        "label": month_label(year, month),
        "day_headers": list(DAY_HEADERS),
        "days": [c.to_dict() for c in grid],
        "summary": month_summary(grid),
        "previous": f"{prev_y:04d}-{prev_m:02d}",
        "next": f"{next_y:04d}-{next_m:02d}",
    }}), 200


# ---------- DIARIO ----------

@progress_bp.route("/journal", methods=["GET"])
@login_required
def journal():
    sentiment = (request.args.get("sentiment") or "").strip().lower() or None
    if sentiment and sentiment != "all" and sentiment not in SENTIMENT_LABELS:
        return jsonify({"error": "sentiment inválido"}), 400
    if sentiment == "all":
        sentiment = None
    search = (request.args.get("q") or "").strip() or None
    try:
        limit = int(request.args.get("limit", 50))
    except ValueError:
        return jsonify({"error": "limit debe ser un entero"}), 400
    limit = max(1, min(limit, JOURNAL_MAX_LIMIT))

    logs, _users = build_stores()
    try:
        entries = logs.journal_entries(_uid(), sentiment=sentiment, search=search, limit=limit)
        breakdown = sentiment_tally(logs.journal_entries(_uid(), limit=JOURNAL_MAX_LIMIT))
    except StoreError:
        logger.exception("No se pudo cargar el diario de user=%s", _uid())
        return progress_unavailable()

    out = []
    for e in entries:
        d = e.to_dict()
        d["emoji"] = sentiment_emoji(e.sentiment_tag or "neutral")
        out.append(d)
    return jsonify({"data": {"entries": out, "breakdown": breakdown}}), 200


# ---------- RECONCILIACIÓN DE RACHAS ----------

@progress_bp.route("/reconcile", methods=["POST"])
@login_required
def reconcile():
    logs, users = build_stores()
    try:
        state = StreakTracker(logs, users).reconcile(_uid(), local_today(current_user.timezone))
    except StoreError:
        logger.exception("No se pudo reconciliar rachas de user=%s", _uid())
        return progress_unavailable()
    return jsonify({"data": state.to_dict()}), 200
