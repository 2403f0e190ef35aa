# senior_strength/routes/functions_api.py
"""
Endpoints de los jobs programados (los invoca el planificador externo).
Protegidos con la clave de servicio en la cabecera X-Service-Key.
"""
import hmac
import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from senior_strength.services.jobs import run_inactivity_check, run_weekly_reports, send_notification

logger = logging.getLogger(__name__)

functions_bp = Blueprint("functions_api", __name__, url_prefix="/api/functions")


def service_key_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("SERVICE_KEY") or ""
        given = request.headers.get("X-Service-Key", "")
        if not expected or not hmac.compare_digest(given, expected):
            logger.warning("Llamada a %s sin clave de servicio válida", request.path)
            return jsonify(error_code="forbidden", message="Clave de servicio inválida"), 403
        return view(*args, **kwargs)
    return wrapper


def _status(result):
    return 200 if result.get("success") else 500


@functions_bp.route("/weekly-report", methods=["POST"])
@service_key_required
def weekly_report():
    body = request.get_json(silent=True) or {}
    user_id = body.get("user_id")
    if user_id is not None:
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return jsonify({"success": False, "error": "user_id debe ser un entero"}), 400
    result = run_weekly_reports(user_id=user_id, dry_run=bool(body.get("dry_run")))
    return jsonify(result), _status(result)


@functions_bp.route("/check-inactivity", methods=["POST"])
@service_key_required
def check_inactivity():
    result = run_inactivity_check()
    return jsonify(result), _status(result)


@functions_bp.route("/send-push-notification", methods=["POST"])
@service_key_required
def send_push_notification():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"success": False, "error": "El cuerpo debe ser un objeto JSON"}), 400
    result = send_notification(body)
    if result.get("success"):
        return jsonify(result), 200
    # Petición incompleta o sin destinatarios: error del cliente
    return jsonify(result), 400
