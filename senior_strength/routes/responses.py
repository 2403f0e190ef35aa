# senior_strength/routes/responses.py
from flask import jsonify


def validation_error(form):
    return jsonify({"error": "validation_error", "fields": form.errors}), 400


def progress_unavailable():
    # Error genérico y reintentable: el cliente muestra "inténtalo de nuevo"
    return jsonify(error_code="progress_unavailable", message="No se pudo cargar tu progreso. Inténtalo de nuevo."), 503
