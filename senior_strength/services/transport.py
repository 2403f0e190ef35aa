# senior_strength/services/transport.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
POSTMARK_API_URL = "https://api.postmarkapp.com/email"


@dataclass(frozen=True)
class SendOutcome:
    ok: bool
    error: Optional[str] = None


class ExpoPushTransport:
    """Envío push vía Expo Push API (acepta lotes; un resultado por token)."""

    CHUNK_SIZE = 100  # límite de mensajes por petición de Expo

    def __init__(self, url: str = EXPO_PUSH_URL, timeout: float = 10, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_push(self, token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> SendOutcome:
        return self.send_push_batch([token], title, body, data)[0]

    def send_push_batch(
        self, tokens: List[str], title: str, body: str, data: Optional[Dict[str, Any]] = None
    ) -> List[SendOutcome]:
        outcomes: List[SendOutcome] = []
        for i in range(0, len(tokens), self.CHUNK_SIZE):
            chunk = tokens[i:i + self.CHUNK_SIZE]
            outcomes.extend(self._send_chunk(chunk, title, body, data or {}))
        return outcomes

    def _send_chunk(self, tokens: List[str], title: str, body: str, data: Dict[str, Any]) -> List[SendOutcome]:
        messages = [
            {"to": t, "title": title, "body": body, "data": data, "sound": "default", "badge": 1}
            for t in tokens
        ]
        try:
            r = self.session.post(
                self.url,
                json=messages,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
            r.raise_for_status()
            results = r.json().get("data") or []
        except (requests.RequestException, ValueError) as e:
            # Si falla la petición entera, todos los tokens del lote fallan
            logger.error("Expo Push API error: %s", e)
            return [SendOutcome(False, str(e)) for _ in tokens]

        if isinstance(results, dict):
            results = [results]

        out = []
        for idx, _token in enumerate(tokens):
            res = results[idx] if idx < len(results) else None
            if res and res.get("status") == "ok":
                out.append(SendOutcome(True))
            else:
                res = res or {}
                err = res.get("message") or (res.get("details") or {}).get("error") or "Unknown error"
                out.append(SendOutcome(False, err))
        logger.info("Push enviados: %d ok, %d fallidos", sum(o.ok for o in out), sum(not o.ok for o in out))
        return out


class PostmarkEmailTransport:
    """Envío de email transaccional vía Postmark."""

    def __init__(
        self,
        server_token: str,
        from_address: str,
        url: str = POSTMARK_API_URL,
        timeout: float = 10,
        session=None,
    ):
        self.server_token = server_token
        self.from_address = from_address
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_email(self, to: str, subject: str, html: str, text: str) -> SendOutcome:
        if not self.server_token:
            return SendOutcome(False, "POSTMARK_SERVER_TOKEN no configurado")
        try:
            r = self.session.post(
                self.url,
                json={
                    "From": self.from_address,
                    "To": to,
                    "Subject": subject,
                    "HtmlBody": html,
                    "TextBody": text,
                    "MessageStream": "outbound",
                },
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "X-Postmark-Server-Token": self.server_token,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Postmark no disponible: %s", e)
            return SendOutcome(False, str(e))

        if not r.ok:
            try:
                msg = r.json().get("Message") or f"HTTP {r.status_code}"
            except ValueError:
                msg = f"HTTP {r.status_code}"
            logger.error("Postmark API error (%s): %s", to, msg)
            return SendOutcome(False, msg)

        logger.info("Email enviado a %s", to)
        return SendOutcome(True)
