# senior_strength/services/factory.py
"""
Construcción de colaboradores a partir de app.config.
En tests se pueden sustituir registrando objetos en app.extensions.
"""
from __future__ import annotations

from flask import Flask

from senior_strength import db
from senior_strength.services.dispatcher import NotificationDispatcher
from senior_strength.services.sentiment import SentimentClassifier
from senior_strength.services.store import UserStore, WorkoutLogStore
from senior_strength.services.transport import ExpoPushTransport, PostmarkEmailTransport

DISPATCHER_KEY = "senior_strength.dispatcher"
CLASSIFIER_KEY = "senior_strength.classifier"


def build_dispatcher(app: Flask) -> NotificationDispatcher:
    override = app.extensions.get(DISPATCHER_KEY)
    if override is not None:
        return override

    cfg = app.config
    timeout = cfg.get("HTTP_TIMEOUT", 10)
    push = ExpoPushTransport(url=cfg["EXPO_PUSH_URL"], timeout=timeout)
    email = PostmarkEmailTransport(
        server_token=cfg.get("POSTMARK_SERVER_TOKEN", ""),
        from_address=cfg.get("REPORT_FROM_ADDRESS", ""),
        url=cfg["POSTMARK_API_URL"],
        timeout=timeout,
    )
    return NotificationDispatcher(push=push, email=email)


def build_classifier(app: Flask) -> SentimentClassifier:
    override = app.extensions.get(CLASSIFIER_KEY)
    if override is not None:
        return override

    cfg = app.config
    return SentimentClassifier(
        api_key=cfg.get("OPENAI_API_KEY"),
        model=cfg.get("SENTIMENT_MODEL", "gpt-3.5-turbo"),
        url=cfg["OPENAI_API_URL"],
        timeout=cfg.get("SENTIMENT_TIMEOUT", 10),
    )


def build_stores(session=None):
    """(WorkoutLogStore, UserStore) sobre la misma sesión."""
    session = session or db.session
    return WorkoutLogStore(session), UserStore(session)
