# senior_strength/cli/__init__.py
from .seed import seed_group
from .jobs import jobs_group


def register_cli(app):
    """Registra los grupos y comandos CLI de la app."""
    app.cli.add_command(seed_group)
    app.cli.add_command(jobs_group)
