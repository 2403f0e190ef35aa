# senior_strength/models/workout.py

from datetime import datetime

from sqlalchemy import CheckConstraint

from senior_strength import db


# ---------- CATÁLOGO DE ENTRENOS ----------
class Workout(db.Model):
    __tablename__ = "workouts"

    id         = db.Column(db.Integer, primary_key=True)
    title      = db.Column(db.String(200), unique=True, nullable=False)
    type       = db.Column(db.String(16), nullable=False)     # sitting | standing
    duration   = db.Column(db.Integer, nullable=False)        # segundos estimados
    difficulty = db.Column(db.String(16), nullable=False)     # easy | medium | hard

    __table_args__ = (
        CheckConstraint("type IN ('sitting','standing')", name="ck_workouts_type"),
        CheckConstraint("difficulty IN ('easy','medium','hard')", name="ck_workouts_difficulty"),
    )

    def __repr__(self):
        return f"<Workout {self.id} {self.title}>"


# ---------- ENTRENO COMPLETADO (append-only) ----------
class WorkoutLog(db.Model):
    __tablename__ = "workout_logs"

    id               = db.Column(db.Integer, primary_key=True)
    user_id          = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workout_id       = db.Column(db.Integer, db.ForeignKey("workouts.id", ondelete="RESTRICT"), nullable=False)
    date             = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD (día local del usuario)
    duration_seconds = db.Column(db.Integer, nullable=False, default=0)
    journal_text     = db.Column(db.Text, nullable=True)
    sentiment_tag    = db.Column(db.String(10), nullable=True)               # positive | neutral | negative
    # Clave de idempotencia del evento "workout completado"
    event_id         = db.Column(db.String(64), nullable=True, unique=True)
    created_at       = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user    = db.relationship("User", back_populates="logs")
    workout = db.relationship("Workout")

    __table_args__ = (
        CheckConstraint("duration_seconds >= 0", name="ck_workout_logs_duration"),
        CheckConstraint(
            "sentiment_tag IS NULL OR sentiment_tag IN ('positive','neutral','negative')",
            name="ck_workout_logs_sentiment",
        ),
        db.Index("ix_workout_logs_user_date", "user_id", "date"),
    )

    def __repr__(self):
        return f"<WorkoutLog {self.user_id} {self.date} {self.duration_seconds}s>"
