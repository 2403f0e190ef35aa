# senior_strength/forms/notification_settings_form.py

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask_wtf import FlaskForm
from wtforms import BooleanField, StringField
from wtforms.validators import Email, Length, Optional, ValidationError

# Campos que el cliente puede actualizar (PATCH parcial)
SETTINGS_FIELDS = ("push_token", "trusted_contact_email", "is_subscribed", "timezone", "full_name")


class NotificationSettingsForm(FlaskForm):
    class Meta:
        csrf = False

    push_token = StringField("Push token", validators=[Optional(), Length(max=255)])
    trusted_contact_email = StringField(
        "Contacto de confianza",
        validators=[Optional(), Email(message="Email no válido."), Length(max=150)],
    )
    is_subscribed = BooleanField("Recordatorios activados")
    timezone = StringField("Zona horaria", validators=[Optional(), Length(max=64)])
    full_name = StringField("Nombre", validators=[Optional(), Length(max=150)])

    def validate_timezone(self, field):
        if not field.data:
            return
        try:
            ZoneInfo(field.data)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError("Zona horaria desconocida.")
