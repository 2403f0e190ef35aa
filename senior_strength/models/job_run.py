# senior_strength/models/job_run.py

from datetime import datetime

from senior_strength import db


class JobRun(db.Model):
    """Resumen auditable de cada ejecución de un job programado."""
    __tablename__ = "job_runs"

    id            = db.Column(db.Integer, primary_key=True)
    job           = db.Column(db.String(32), nullable=False, index=True)  # weekly_report | check_inactivity | send_notification
    started_at    = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    finished_at   = db.Column(db.DateTime, nullable=True)
    success       = db.Column(db.Boolean, nullable=False, default=False)
    processed     = db.Column(db.Integer, nullable=False, default=0)
    success_count = db.Column(db.Integer, nullable=False, default=0)
    failure_count = db.Column(db.Integer, nullable=False, default=0)
    interrupted   = db.Column(db.Boolean, nullable=False, default=False)
    error         = db.Column(db.Text, nullable=True)
    results       = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job": self.job,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "success": self.success,
            "processed": self.processed,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "interrupted": self.interrupted,
            "error": self.error,
        }

    def __repr__(self):
        return f"<JobRun {self.job} ok={self.success} n={self.processed}>"
