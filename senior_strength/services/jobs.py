# senior_strength/services/jobs.py
"""
Puntos de entrada de los jobs programados.
Se llaman desde la CLI (flask jobs ...), desde /api/functions/* o directamente.
Requieren contexto de aplicación. Cada ejecución deja una fila JobRun.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from flask import current_app

from senior_strength import db
from senior_strength.models.job_run import JobRun
from senior_strength.services.batch import JobSummary
from senior_strength.services.dispatcher import EmailMessage, PushMessage
from senior_strength.services.factory import build_dispatcher, build_stores
from senior_strength.services.inactivity import InactivityDetector
from senior_strength.services.store import StoreError
from senior_strength.services.weekly_report import WeeklyDigestComposer

logger = logging.getLogger(__name__)

SEND_NOTIFICATION = "send_notification"


def _audit(summary: JobSummary, started_at: datetime) -> None:
    """Persiste el resumen; un fallo de auditoría no invalida el job."""
    results = [{k: v for k, v in r.items() if k != "preview"} for r in summary.results]
    try:
        db.session.add(JobRun(
            job=summary.job,
            started_at=started_at,
            finished_at=datetime.utcnow(),
            success=summary.success,
            processed=summary.processed,
            success_count=summary.success_count,
            failure_count=summary.failure_count,
            interrupted=summary.interrupted,
            error=summary.error,
            results=results,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("No se pudo guardar la auditoría del job %s", summary.job)


def run_weekly_reports(
    user_id: Optional[int] = None,
    dry_run: bool = False,
    today: Optional[date] = None,
    stop: Optional[Callable[[], bool]] = None,
) -> Dict[str, Any]:
    started = datetime.utcnow()
    logs, users = build_stores()
    composer = WeeklyDigestComposer(users, logs, build_dispatcher(current_app), today=today)
    summary = composer.run(user_id=user_id, dry_run=dry_run, stop=stop)
    _audit(summary, started)
    return summary.to_dict()


def run_inactivity_check(
    today: Optional[date] = None,
    stop: Optional[Callable[[], bool]] = None,
) -> Dict[str, Any]:
    started = datetime.utcnow()
    logs, users = build_stores()
    detector = InactivityDetector(
        users, logs, build_dispatcher(current_app),
        today=today,
        delay=current_app.config.get("PUSH_SEND_DELAY", 0.0),
    )
    summary = detector.run(stop=stop)
    _audit(summary, started)
    return summary.to_dict()


def send_notification(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Envío manual de una notificación.
    - push: {"title", "body", "data"?, y "tokens": [...] o "user_id"}
    - email: {"channel": "email", "to", "subject", "html"?, "text"?}
    """
    started = datetime.utcnow()
    summary = _send(payload or {})
    _audit(summary, started)
    out = summary.to_dict()
    out["sent"] = summary.success_count
    out["failed"] = summary.failure_count
    return out


def _send(payload: Dict[str, Any]) -> JobSummary:
    dispatcher = build_dispatcher(current_app)

    if payload.get("channel") == "email":
        to = (payload.get("to") or "").strip()
        subject = (payload.get("subject") or "").strip()
        if not to or not subject:
            return JobSummary.failed(SEND_NOTIFICATION, "'to' y 'subject' son obligatorios")
        text = payload.get("text") or ""
        msg = EmailMessage(subject=subject, html=payload.get("html") or text, text=text)
        result = dispatcher.send_email([(to, msg)])
        return JobSummary(SEND_NOTIFICATION, results=[d.to_dict() for d in result.details])

    title = (payload.get("title") or "").strip()
    body = (payload.get("body") or "").strip()
    if not title or not body:
        return JobSummary.failed(SEND_NOTIFICATION, "'title' y 'body' son obligatorios")

    tokens = payload.get("tokens")
    if tokens is not None:
        if not isinstance(tokens, list):
            return JobSummary.failed(SEND_NOTIFICATION, "'tokens' debe ser una lista")
        tokens = [str(t) for t in tokens if t]
    elif payload.get("user_id") is not None:
        _logs, users = build_stores()
        try:
            user = users.get(int(payload["user_id"]))
        except (TypeError, ValueError):
            return JobSummary.failed(SEND_NOTIFICATION, "'user_id' inválido")
        except StoreError as e:
            return JobSummary.failed(SEND_NOTIFICATION, str(e))
        if user is None:
            return JobSummary.failed(SEND_NOTIFICATION, f"usuario {payload['user_id']} no encontrado")
        tokens = [user.push_token] if user.push_token else []
    else:
        return JobSummary.failed(SEND_NOTIFICATION, "se requiere 'user_id' o 'tokens'")

    if not tokens:
        return JobSummary.failed(SEND_NOTIFICATION, "No push tokens found")

    msg = PushMessage(title=title, body=body, data=dict(payload.get("data") or {}))
    result = dispatcher.broadcast_push(tokens, msg)
    return JobSummary(SEND_NOTIFICATION, results=[d.to_dict() for d in result.details])
