# senior_strength/services/dispatcher.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from senior_strength.services.transport import SendOutcome

logger = logging.getLogger(__name__)

PUSH = "push"
EMAIL = "email"


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class RecipientOutcome:
    recipient: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        d = {"recipient": self.recipient, "success": self.success}
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class DispatchResult:
    channel: str
    details: List[RecipientOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for d in self.details if d.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for d in self.details if not d.success)

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "details": [d.to_dict() for d in self.details],
        }


class NotificationDispatcher:
    """
    Entrega lotes (destinatario, mensaje) a los transportes externos.
    Cada destinatario es un dominio de fallo aislado: un error de transporte
    se anota y se sigue con el resto.
    """

    def __init__(self, push=None, email=None, delay: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        self.push = push
        self.email = email
        self.delay = delay
        self.sleep = sleep

    def _attempt(self, channel: str, transport, recipient: str, send: Callable[[], SendOutcome]) -> RecipientOutcome:
        if transport is None:
            return RecipientOutcome(recipient or "", False, f"canal {channel} no configurado")
        if not recipient:
            return RecipientOutcome("", False, "destinatario vacío")
        try:
            outcome = send()
        except Exception as e:  # aislamiento por destinatario
            logger.exception("Fallo de transporte %s para %s", channel, recipient)
            return RecipientOutcome(recipient, False, str(e) or e.__class__.__name__)
        return RecipientOutcome(recipient, bool(outcome.ok), None if outcome.ok else (outcome.error or "send failed"))

    def send_push(self, items: Iterable[Tuple[str, PushMessage]]) -> DispatchResult:
        result = DispatchResult(PUSH)
        for i, (token, msg) in enumerate(items):
            if i and self.delay:
                self.sleep(self.delay)
            result.details.append(self._attempt(
                PUSH, self.push, token,
                lambda: self.push.send_push(token, msg.title, msg.body, msg.data),
            ))
        return result

    def send_email(self, items: Iterable[Tuple[str, EmailMessage]]) -> DispatchResult:
        result = DispatchResult(EMAIL)
        for to, msg in items:
            result.details.append(self._attempt(
                EMAIL, self.email, to,
                lambda: self.email.send_email(to, msg.subject, msg.html, msg.text),
            ))
        return result

    def broadcast_push(self, tokens: List[str], msg: PushMessage) -> DispatchResult:
        """Mismo mensaje a varios tokens usando el envío por lotes del transporte."""
        result = DispatchResult(PUSH)
        tokens = [t for t in tokens if t]
        if not tokens:
            return result
        if self.push is None:
            result.details = [RecipientOutcome(t, False, "canal push no configurado") for t in tokens]
            return result
        try:
            outcomes = self.push.send_push_batch(tokens, msg.title, msg.body, msg.data)
        except Exception as e:
            logger.exception("Fallo del envío push por lotes")
            outcomes = [SendOutcome(False, str(e))] * len(tokens)
        for token, o in zip(tokens, outcomes):
            result.details.append(RecipientOutcome(token, bool(o.ok), None if o.ok else (o.error or "send failed")))
        # tokens sin resultado devuelto por el transporte
        for token in tokens[len(outcomes):]:
            result.details.append(RecipientOutcome(token, False, "sin resultado del transporte"))
        return result
