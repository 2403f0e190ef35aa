# senior_strength/services/sentiment.py
from __future__ import annotations

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

POSITIVE, NEUTRAL, NEGATIVE = "positive", "neutral", "negative"

# Indicadores en contexto de entreno (cada palabra cuenta una sola vez)
POSITIVE_WORDS = (
    "great", "good", "amazing", "excellent", "love", "enjoyed", "happy",
    "energized", "strong", "accomplished", "proud", "confident", "motivated",
    "refreshed", "invigorated", "powerful", "successful", "fantastic",
    "wonderful", "awesome", "perfect", "smooth", "easy", "comfortable",
    "relaxed", "calm", "peaceful", "satisfied", "pleased",
)
NEGATIVE_WORDS = (
    "tired", "exhausted", "difficult", "hard", "struggled", "pain", "hurt",
    "bad", "awful", "hate", "terrible", "horrible", "painful", "sore",
    "uncomfortable", "challenging", "tough", "weak", "frustrated", "annoyed",
    "disappointed", "discouraged", "overwhelmed", "stressed", "anxious",
)
NEUTRAL_WORDS = (
    "okay", "fine", "normal", "average", "usual", "typical", "standard",
    "regular", "moderate", "decent", "alright",
)

SYSTEM_PROMPT = (
    "You are a sentiment analysis assistant. Analyze the sentiment of workout "
    "journal entries and respond with only one word: \"positive\", \"negative\", "
    "or \"neutral\". Focus on the overall emotional tone and physical feeling expressed."
)


def keyword_sentiment(text: str) -> str:
    """
    Clasificación determinista por palabras clave.
    Gana la categoría con recuento estrictamente mayor; empate o cero -> neutral.
    """
    lower = (text or "").lower()
    pos = sum(1 for w in POSITIVE_WORDS if w in lower)
    neg = sum(1 for w in NEGATIVE_WORDS if w in lower)
    neu = sum(1 for w in NEUTRAL_WORDS if w in lower)

    if pos > neg and pos > neu:
        return POSITIVE
    if neg > pos and neg > neu:
        return NEGATIVE
    return NEUTRAL


class SentimentClassifier:
    """
    Clasifica el texto del diario en positive/neutral/negative.
    Intenta primero el modelo remoto (API tipo chat-completions) y, ante
    cualquier fallo, cae al clasificador por palabras. Nunca lanza.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-3.5-turbo",
        url: str = "https://api.openai.com/v1/chat/completions",
        timeout: float = 10,
        http=None,
    ):
        self.api_key = api_key or None
        self.model = model
        self.url = url
        self.timeout = timeout
        self.http = http or requests

    def classify(self, text: Optional[str]) -> str:
        if not text or not text.strip():
            return NEUTRAL

        if self.api_key:
            try:
                label = self._remote(text)
                if label in (POSITIVE, NEUTRAL, NEGATIVE):
                    return label
                logger.warning("Respuesta de sentimiento no reconocida: %r", label)
            except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
                logger.warning("Clasificación remota falló, usando palabras clave: %s", e)

        return keyword_sentiment(text)

    def _remote(self, text: str) -> str:
        r = self.http.post(
            self.url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f'Analyze the sentiment of this workout journal entry: "{text}"'},
                ],
                "max_tokens": 10,
                "temperature": 0,
            },
            timeout=self.timeout,
        )
        r.raise_for_status()
        content = r.json()["choices"][0]["message"]["content"]
        return (content or "").strip().strip(".").lower()


def sentiment_description(label: str) -> str:
    return {
        POSITIVE: "You seem to be feeling great about your workout! 😊",
        NEGATIVE: "It sounds like the workout was challenging. Keep pushing forward! 💪",
        NEUTRAL: "Thanks for sharing your workout experience. 👍",
    }.get(label, "Thanks for your feedback!")


def sentiment_emoji(label: str) -> str:
    return {POSITIVE: "😊", NEGATIVE: "😔", NEUTRAL: "😐"}.get(label, "🤔")
