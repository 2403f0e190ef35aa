# senior_strength/cli/jobs.py
import json
import signal

import click
from flask.cli import AppGroup

from senior_strength.services.jobs import run_inactivity_check, run_weekly_reports, send_notification

jobs_group = AppGroup("jobs", help="Jobs programados (informe semanal, inactividad, push)")


class _StopFlag:
    """Corte seguro entre usuarios al recibir SIGINT/SIGTERM mientras dura el job."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self):
        self.requested = False
        self._previous = {}

    def __call__(self):
        return self.requested

    def _handler(self, signum, frame):
        self.requested = True
        click.secho("Parada solicitada: se termina tras el usuario en curso...", fg="yellow", err=True)

    def __enter__(self):
        for sig in self.SIGNALS:
            try:
                self._previous[sig] = signal.signal(sig, self._handler)
            except ValueError:
                # solo se puede instalar desde el hilo principal
                pass
        return self

    def __exit__(self, *exc):
        for sig, handler in self._previous.items():
            if handler is not None:
                signal.signal(sig, handler)
        return False


def _report(result):
    color = "green" if result.get("success") else "red"
    click.secho(
        f"success={result.get('success')} processed={result.get('processed')} "
        f"ok={result.get('success_count')} fallos={result.get('failure_count')}"
        + (" (interrumpido)" if result.get("interrupted") else ""),
        fg=color,
    )
    if result.get("error"):
        click.secho(f"error: {result['error']}", fg="red")
    click.echo(json.dumps(result, ensure_ascii=False, indent=2, default=str))


@jobs_group.command("weekly-report")
@click.option("--user-id", type=int, default=None, help="Modo prueba: solo este usuario.")
@click.option("--dry-run", is_flag=True, help="Genera los informes sin enviarlos.")
def weekly_report(user_id, dry_run):
    """Envía el informe semanal a los contactos de confianza."""
    with _StopFlag() as stop:
        result = run_weekly_reports(user_id=user_id, dry_run=dry_run, stop=stop)
    previews = [r.pop("preview") for r in result.get("results", []) if "preview" in r]
    _report(result)
    for p in previews:
        click.secho(f"\n--- {p['subject']} ---", fg="cyan")
        click.echo(p["text"])


@jobs_group.command("check-inactivity")
def check_inactivity():
    """Envía recordatorios push a usuarios inactivos."""
    with _StopFlag() as stop:
        result = run_inactivity_check(stop=stop)
    _report(result)


@jobs_group.command("send-push")
@click.option("--user-id", type=int, default=None)
@click.option("--token", "tokens", multiple=True, help="Token Expo (repetible).")
@click.option("--title", required=True)
@click.option("--body", required=True)
def send_push(user_id, tokens, title, body):
    """Envía una notificación push manual."""
    payload = {"title": title, "body": body}
    if tokens:
        payload["tokens"] = list(tokens)
    elif user_id is not None:
        payload["user_id"] = user_id
    _report(send_notification(payload))
