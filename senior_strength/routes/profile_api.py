# senior_strength/routes/profile_api.py
import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from senior_strength.forms.notification_settings_form import SETTINGS_FIELDS, NotificationSettingsForm
from senior_strength.routes.responses import progress_unavailable, validation_error
from senior_strength.services.factory import build_stores
from senior_strength.services.store import StoreError

logger = logging.getLogger(__name__)

profile_bp = Blueprint("profile_api", __name__, url_prefix="/api/profile")


@profile_bp.route("/notifications", methods=["PATCH"])
@login_required
def update_notifications():
    """Actualización parcial: solo se tocan los campos presentes en el JSON."""
    if not request.is_json:
        return jsonify({"error": "Content-Type must be application/json"}), 415
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "El cuerpo debe ser un objeto JSON"}), 400

    form = NotificationSettingsForm()
    if not form.validate():
        return validation_error(form)

    changes = {}
    for name in SETTINGS_FIELDS:
        if name not in body:
            continue
        value = form[name].data
        if isinstance(value, str):
            value = value.strip() or None
        changes[name] = value
    if changes.get("timezone", "") is None:
        changes["timezone"] = "UTC"

    _logs, users = build_stores()
    try:
        user = users.update_settings(int(current_user.id), **changes)
    except StoreError:
        logger.exception("No se pudieron guardar ajustes de user=%s", current_user.id)
        return progress_unavailable()

    return jsonify({"data": {
        "push_token": user.push_token,
        "trusted_contact_email": user.trusted_contact_email,
        "is_subscribed": user.is_subscribed,
        "timezone": user.timezone,
        "full_name": user.full_name,
    }}), 200
