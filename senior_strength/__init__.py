# senior_strength/__init__.py

import os
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate

# Carga variables de entorno (.env)
load_dotenv()

# Extensiones compartidas
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def _require_secret_key() -> str:
    """Lee SECRET_KEY de entorno y exige mínimo 32 bytes."""
    secret = os.getenv("SECRET_KEY", "")
    if not secret or len(secret) < 32:
        raise RuntimeError(
            "SECRET_KEY no configurado o demasiado corto. "
            "Añade una clave segura al .env (mínimo 32 caracteres)."
        )
    return secret


def _configure_logging(app: Flask) -> None:
    """Logging simple y consistente."""
    level = logging.DEBUG if app.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return float(default)


def create_app(test_config=None) -> Flask:
    """Factory principal de la aplicación."""
    app = Flask(__name__, instance_relative_config=True)

    os.makedirs(app.instance_path, exist_ok=True)

    # DB por defecto (SQLite en instance/senior_strength.db)
    db_path = os.path.join(app.instance_path, "senior_strength.db")
    default_db_uri = f"sqlite:///{db_path}"

    test_config = dict(test_config or {})

    # -----------------------------
    # Config base (segura por defecto)
    # -----------------------------
    app.config.from_mapping(
        SECRET_KEY=test_config.get("SECRET_KEY") or _require_secret_key(),
        SQLALCHEMY_DATABASE_URI=os.getenv("SQLALCHEMY_DATABASE_URI", default_db_uri),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        JSON_SORT_KEYS=False,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_SECURE=os.getenv("FLASK_ENV", "").lower() != "development",
        MAX_CONTENT_LENGTH=1 * 1024 * 1024,
        # Clave de servicio para las funciones programadas (/api/functions/*)
        SERVICE_KEY=os.getenv("SERVICE_KEY", ""),
        # Clasificador de sentimiento (opcional; sin clave se usa el fallback por palabras)
        OPENAI_API_KEY=os.getenv("OPENAI_API_KEY", ""),
        OPENAI_API_URL=os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"),
        SENTIMENT_MODEL=os.getenv("SENTIMENT_MODEL", "gpt-3.5-turbo"),
        SENTIMENT_TIMEOUT=_float_env("SENTIMENT_TIMEOUT", 10),
        # Transportes de notificaciones
        EXPO_PUSH_URL=os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send"),
        POSTMARK_SERVER_TOKEN=os.getenv("POSTMARK_SERVER_TOKEN", ""),
        POSTMARK_API_URL=os.getenv("POSTMARK_API_URL", "https://api.postmarkapp.com/email"),
        REPORT_FROM_ADDRESS=os.getenv("REPORT_FROM_ADDRESS", "reports@seniorstrength.app"),
        HTTP_TIMEOUT=_float_env("HTTP_TIMEOUT", 10),
        # Pausa entre envíos push para no saturar el servicio externo
        PUSH_SEND_DELAY=_float_env("PUSH_SEND_DELAY", 0.1),
    )
    app.config.update(test_config)

    # Inicializa extensiones
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    _configure_logging(app)

    # ---------------------------------------------------------
    # MODELOS (importar para que Flask-Migrate los detecte)
    # ---------------------------------------------------------
    from senior_strength.models.user import User  # noqa: F401
    from senior_strength.models.workout import Workout, WorkoutLog  # noqa: F401
    from senior_strength.models.job_run import JobRun  # noqa: F401

    # ---------------------------------------------------------
    # BLUEPRINTS
    # ---------------------------------------------------------
    from senior_strength.routes.workouts_api import workouts_bp
    from senior_strength.routes.progress_api import progress_bp
    from senior_strength.routes.profile_api import profile_bp
    from senior_strength.routes.functions_api import functions_bp

    app.register_blueprint(workouts_bp)
    app.register_blueprint(progress_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(functions_bp)

    # ---------------------------------------------------------
    # CLI (jobs programados, seed)
    # ---------------------------------------------------------
    from senior_strength.cli import register_cli
    register_cli(app)

    # ---------------------------------------------------------
    # Healthcheck y manejo de errores JSON (básico)
    # ---------------------------------------------------------
    @app.get("/healthz")
    def _healthz():
        return {"status": "ok"}, 200

    @app.errorhandler(400)
    @app.errorhandler(401)
    @app.errorhandler(403)
    @app.errorhandler(404)
    @app.errorhandler(405)
    @app.errorhandler(409)
    @app.errorhandler(500)
    def _http_errors(err):
        # Si la petición es JSON, devolvemos JSON consistente
        if request.is_json or request.path.startswith("/api/"):
            code = getattr(err, "code", 500) or 500
            return jsonify(error_code="http_error", message=str(err)), code
        return err

    return app
