# senior_strength/forms/workout_log_form.py

from flask_wtf import FlaskForm
from wtforms import IntegerField, StringField
from wtforms.validators import Length, NumberRange, Optional, Regexp


class WorkoutLogForm(FlaskForm):
    """Cuerpo JSON de 'workout completado' (la API no usa CSRF)."""

    class Meta:
        csrf = False

    duration_seconds = IntegerField(
        "Duración (s)",
        validators=[
            Optional(),
            NumberRange(min=0, max=24 * 3600, message="La duración debe estar entre 0 y 86400 segundos."),
        ],
    )
    journal_text = StringField(
        "Diario",
        validators=[Optional(), Length(max=2000, message="El diario admite como máximo 2000 caracteres.")],
    )
    date = StringField(
        "Fecha",
        validators=[Optional(), Regexp(r"^\d{4}-\d{2}-\d{2}$", message="Formato de fecha YYYY-MM-DD.")],
    )
    event_id = StringField(
        "Id de evento",
        validators=[Optional(), Length(max=64)],
    )
