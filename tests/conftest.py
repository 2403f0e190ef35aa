# tests/conftest.py

from datetime import date

import pytest
from flask_login import FlaskLoginClient

from senior_strength import create_app, db
from senior_strength.models.user import User
from senior_strength.models.workout import Workout, WorkoutLog
from senior_strength.services.dispatcher import NotificationDispatcher
from senior_strength.services.factory import DISPATCHER_KEY
from senior_strength.services.store import UserStore, WorkoutLogStore
from senior_strength.services.transport import SendOutcome

SERVICE_KEY = "test-service-key"


# ---------- Transportes falsos ----------

class FakePush:
    """Registra envíos; los tokens en `fail` devuelven error y en `boom` lanzan."""

    def __init__(self, fail=(), boom=()):
        self.sent = []
        self.fail = set(fail)
        self.boom = set(boom)

    def send_push(self, token, title, body, data=None):
        if token in self.boom:
            raise RuntimeError("transport exploded")
        self.sent.append({"to": token, "title": title, "body": body, "data": data or {}})
        if token in self.fail:
            return SendOutcome(False, "DeviceNotRegistered")
        return SendOutcome(True)

    def send_push_batch(self, tokens, title, body, data=None):
        return [self.send_push(t, title, body, data) for t in tokens]


class FakeEmail:
    def __init__(self, fail=()):
        self.sent = []
        self.fail = set(fail)

    def send_email(self, to, subject, html, text):
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        if to in self.fail:
            return SendOutcome(False, "Inactive recipient")
        return SendOutcome(True)


# ---------- App / DB ----------

@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "x" * 32,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "WTF_CSRF_ENABLED": False,
        "SESSION_COOKIE_SECURE": False,
        "SERVICE_KEY": SERVICE_KEY,
        "OPENAI_API_KEY": "",
        "PUSH_SEND_DELAY": 0,
    })
    app.test_client_class = FlaskLoginClient
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def push():
    return FakePush()


@pytest.fixture
def email():
    return FakeEmail()


@pytest.fixture
def dispatcher(app, push, email):
    d = NotificationDispatcher(push=push, email=email)
    app.extensions[DISPATCHER_KEY] = d
    return d


@pytest.fixture
def stores(app):
    return WorkoutLogStore(db.session), UserStore(db.session)


# ---------- Datos ----------

@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(**kw):
        counter["n"] += 1
        kw.setdefault("email", f"user{counter['n']}@example.com")
        kw.setdefault("full_name", f"User {counter['n']}")
        u = User(**kw)
        db.session.add(u)
        db.session.commit()
        return u
    return _make


@pytest.fixture
def workout(app):
    w = Workout(title="Chair Warm-Up", type="sitting", duration=300, difficulty="easy")
    db.session.add(w)
    db.session.commit()
    return w


@pytest.fixture
def add_log(app, workout):
    def _add(user, day, seconds=600, journal=None, sentiment=None):
        if isinstance(day, date):
            day = day.isoformat()
        log = WorkoutLog(
            user_id=user.id, workout_id=workout.id, date=day,
            duration_seconds=seconds, journal_text=journal, sentiment_tag=sentiment,
        )
        db.session.add(log)
        db.session.commit()
        return log
    return _add


@pytest.fixture
def login(app):
    """Cliente con sesión de Flask-Login para `user`."""
    def _login(user):
        return app.test_client(user=user)
    return _login
