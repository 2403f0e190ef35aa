# senior_strength/models/user.py

from datetime import datetime

from flask import jsonify
from flask_login import UserMixin
from sqlalchemy import CheckConstraint

from senior_strength import db, login_manager


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id        = db.Column(db.Integer, primary_key=True)
    email     = db.Column(db.String(150), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=True)
    # Zona horaria IANA: define el "día local" con el que se fechan los logs
    timezone  = db.Column(db.String(64), nullable=False, default="UTC")

    # Notificaciones
    push_token            = db.Column(db.String(255), nullable=True)
    trusted_contact_email = db.Column(db.String(150), nullable=True)
    is_subscribed         = db.Column(db.Boolean, nullable=False, default=True)

    # Rachas: escritor único = StreakTracker
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    longest_streak = db.Column(db.Integer, nullable=False, default=0)

    # Caché desnormalizada de insignias (solo para mostrar, nunca autoritativa)
    badges = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    logs = db.relationship("WorkoutLog", back_populates="user", cascade="all, delete-orphan", lazy="dynamic")

    __table_args__ = (
        CheckConstraint("current_streak >= 0", name="ck_users_current_streak"),
        CheckConstraint("longest_streak >= 0", name="ck_users_longest_streak"),
    )

    @property
    def display_name(self) -> str:
        return self.full_name or (self.email or "").split("@")[0]

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email} streak={self.current_streak}/{self.longest_streak}>"


# Loader para Flask-Login (la sesión la emite un servicio externo)
@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def _unauthorized():
    return jsonify(error_code="unauthorized", message="Sesión requerida"), 401
