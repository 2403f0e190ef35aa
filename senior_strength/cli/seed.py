# senior_strength/cli/seed.py
import csv

import click
from flask.cli import AppGroup

from senior_strength import db
from senior_strength.models.workout import Workout

seed_group = AppGroup("seed", help="Comandos de seed (datos iniciales)")

# ---- Catálogo por defecto (duración en segundos) ----
DEFAULT_WORKOUTS = [
    {"title": "Chair Warm-Up", "type": "sitting", "duration": 300, "difficulty": "easy"},
    {"title": "Seated Arm Circles", "type": "sitting", "duration": 420, "difficulty": "easy"},
    {"title": "Seated Leg Lifts", "type": "sitting", "duration": 600, "difficulty": "easy"},
    {"title": "Chair Yoga Flow", "type": "sitting", "duration": 900, "difficulty": "medium"},
    {"title": "Seated Resistance Band", "type": "sitting", "duration": 1200, "difficulty": "medium"},
    {"title": "Wall Push-Ups", "type": "standing", "duration": 480, "difficulty": "easy"},
    {"title": "Balance Basics", "type": "standing", "duration": 600, "difficulty": "easy"},
    {"title": "Sit-to-Stand Strength", "type": "standing", "duration": 720, "difficulty": "medium"},
    {"title": "Standing Core & Posture", "type": "standing", "duration": 900, "difficulty": "medium"},
    {"title": "Full Body Strength", "type": "standing", "duration": 1500, "difficulty": "hard"},
]

WORKOUT_TYPES = ("sitting", "standing")
DIFFICULTIES = ("easy", "medium", "hard")


def _to_int_or_none(v):
    if v in (None, "", "None"):
        return None
    try:
        return int(float(v))
    except (ValueError, TypeError):
        return None


def _upsert_workouts(items):
    created, updated, skipped = 0, 0, 0
    for w in items:
        # Normaliza claves (por si vienen de CSV)
        data = {
            "title": (w.get("title") or "").strip(),
            "type": (w.get("type") or "").strip().lower(),
            "duration": _to_int_or_none(w.get("duration")),
            "difficulty": (w.get("difficulty") or "").strip().lower(),
        }
        if (not data["title"] or data["type"] not in WORKOUT_TYPES
                or data["difficulty"] not in DIFFICULTIES or data["duration"] is None or data["duration"] < 0):
            skipped += 1
            continue
        obj = Workout.query.filter_by(title=data["title"]).first()
        if obj:
            for k, v in data.items():
                setattr(obj, k, v)
            updated += 1
        else:
            db.session.add(Workout(**data))
            created += 1
    db.session.commit()
    return created, updated, skipped


@seed_group.command("workouts")
@click.option("--from-csv", "csv_path", default=None,
              help="Ruta a un CSV (ej.: instance/workouts.csv) para cargar/actualizar entrenos.")
def seed_workouts(csv_path):
    """
    Carga/actualiza el catálogo de entrenos.
    - Sin opciones: usa el set por defecto (10 entrenos).
    - Con --from-csv: carga desde CSV (idempotente por title).
    CSV esperado con cabeceras: title,type,duration,difficulty
    """
    if csv_path:
        try:
            with open(csv_path, "r", encoding="utf-8-sig") as fh:
                items = list(csv.DictReader(fh))
            click.secho(f"Leídos {len(items)} entrenos desde {csv_path}", fg="cyan")
        except FileNotFoundError:
            click.secho(f"No se encontró el CSV: {csv_path}", fg="red")
            return
    else:
        items = DEFAULT_WORKOUTS

    created, updated, skipped = _upsert_workouts(items)
    click.secho(f"Hecho. Nuevos: {created}, Actualizados: {updated}, Omitidos: {skipped}", fg="green")
