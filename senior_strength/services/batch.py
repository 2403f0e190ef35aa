# senior_strength/services/batch.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class JobSummary:
    """Resultado de un job programado: {success, processed, results}."""
    job: str
    success: bool = True
    results: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    interrupted: bool = False

    @classmethod
    def failed(cls, job: str, error: str) -> "JobSummary":
        return cls(job=job, success=False, error=error)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.get("success"))

    @property
    def failure_count(self) -> int:
        return self.processed - self.success_count

    def to_dict(self) -> dict:
        d = {
            "success": self.success,
            "processed": self.processed,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "interrupted": self.interrupted,
            "results": self.results,
        }
        if self.error:
            d["error"] = self.error
        return d


def run_per_user(
    job: str,
    users: Iterable[Any],
    handle: Callable[[Any], Optional[Dict[str, Any]]],
    on_error: Callable[[Any, Exception], Dict[str, Any]],
    stop: Optional[Callable[[], bool]] = None,
) -> JobSummary:
    """
    Procesa usuarios de forma independiente.
    - `handle` devuelve el resultado del usuario o None (omitido).
    - Una excepción en un usuario se registra y se convierte en entrada de fallo.
    - `stop()` se consulta entre usuarios: punto de corte seguro.
    """
    summary = JobSummary(job)
    for user in users:
        if stop is not None and stop():
            summary.interrupted = True
            logger.warning("[%s] interrumpido tras %d usuarios", job, summary.processed)
            break
        try:
            item = handle(user)
        except Exception as e:  # aislamiento por usuario
            logger.exception("[%s] error procesando user %s", job, getattr(user, "id", "?"))
            item = on_error(user, e)
        if item is not None:
            summary.results.append(item)
    logger.info("[%s] procesados=%d ok=%d fallos=%d", job, summary.processed, summary.success_count, summary.failure_count)
    return summary
