"""Remote AI gateway: the two Gemini calls behind typed request/response contracts.

- fetch_news: search-grounded query constrained to the news report schema
- synthesize_speech: narration of the report text with a prebuilt voice

Neither call raises for remote, parsing or extraction failures. Each returns
``Ok(value)`` or ``Err(error)`` and the caller decides what to do with it.
The SDK client is injected, so tests pass a fake exposing
``aio.models.generate_content``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar, Union

from google import genai
from google.genai import types

from .config import Settings
from .models import AudioResult, NewsReport
from .schema import response_schema, validate_report_payload

logger = logging.getLogger(__name__)

NEWS_PROMPT = """Busca noticias de hoy relacionadas con:
  - Diseño Gráfico
  - Merchandising
  - Bellas Artes
  - Aplicaciones del diseño gráfico a la arquitectura y decoración
  - Productos de diseño industrial

  Limita la búsqueda a las últimas 24 horas.
  Devuelve una lista estructurada con títulos, fuentes y un resumen ejecutivo de cada noticia en español.
  Finaliza con un texto narrativo largo que unifique todas las noticias para ser leído como un podcast."""

SPEECH_PROMPT = (
    "Lee el siguiente resumen de noticias de diseño con tono profesional y pausado: {text}"
)

NO_AUDIO_MESSAGE = "No se pudo generar el audio"


# --- Error taxonomy -------------------------------------------------------

class GatewayError(Exception):
    """Base class for failures reported by the gateway."""


class RemoteServiceError(GatewayError):
    """The remote call itself failed (network, auth, quota, bad request)."""


class DeserializationError(GatewayError):
    """The search response did not conform to the declared schema."""


class AudioExtractionError(GatewayError):
    """The synthesis response carried no inline audio payload."""

    def __init__(self, message: str = NO_AUDIO_MESSAGE):
        super().__init__(message)


# --- Result types ---------------------------------------------------------

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: GatewayError


GatewayResult = Union[Ok[T], Err]


# --- Response parts -------------------------------------------------------

@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    data: bytes
    mime_type: str


ResponsePart = Union[TextPart, InlineDataPart]


def response_parts(response: Any) -> List[ResponsePart]:
    """
    Flatten the first candidate's content into TextPart/InlineDataPart values.

    Declared order is preserved. Thought summaries and parts carrying neither
    text nor inline data (function calls, grounding metadata) are dropped.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    raw_parts = getattr(content, "parts", None) or []

    parts: List[ResponsePart] = []
    for part in raw_parts:
        if getattr(part, "thought", None):
            continue
        blob = getattr(part, "inline_data", None)
        if blob is not None:
            parts.append(InlineDataPart(data=blob.data or b"", mime_type=blob.mime_type or ""))
            continue
        text = getattr(part, "text", None)
        if text is not None:
            parts.append(TextPart(text=text))
    return parts


def first_inline_data(parts: List[ResponsePart]) -> Optional[InlineDataPart]:
    """Return the first InlineDataPart in declared order, if any."""
    return next((part for part in parts if isinstance(part, InlineDataPart)), None)


def response_text(parts: List[ResponsePart]) -> str:
    return "".join(part.text for part in parts if isinstance(part, TextPart))


def parse_news_report(text: Optional[str]) -> NewsReport:
    """
    Decode a schema-constrained search response into a NewsReport.

    Raises DeserializationError on empty output, invalid JSON or any schema
    violation; a partially populated report is never returned.
    """
    if not text or not text.strip():
        raise DeserializationError("News search response missing output text.")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DeserializationError(f"News search response is not valid JSON: {exc}") from exc
    try:
        validate_report_payload(payload)
    except ValueError as exc:
        raise DeserializationError(str(exc)) from exc
    return NewsReport.model_validate(payload)


def remote_error(step: str, exc: Exception) -> RemoteServiceError:
    error = RemoteServiceError(f"{step} failed: {exc}")
    error.__cause__ = exc
    return error


# --- Client construction --------------------------------------------------

def build_client(api_key: Optional[str] = None) -> genai.Client:
    """Create a Gemini client; separated for easier testing."""
    return genai.Client(api_key=api_key)


def require_api_key(settings: Settings) -> str:
    if not settings.gemini_api_key:
        raise RuntimeError(
            "GEMINI_API_KEY is required. Set it in the environment or .env file."
        )
    return settings.gemini_api_key


class Gateway:
    """Typed access to the news search and speech synthesis calls."""

    def __init__(self, client: Any, settings: Settings):
        self.client = client
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "Gateway":
        return cls(build_client(require_api_key(settings)), settings)

    async def fetch_news(self) -> GatewayResult[NewsReport]:
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=response_schema(),
        )
        logger.info("Searching daily design news with %s", self.settings.news_model)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.news_model,
                contents=NEWS_PROMPT,
                config=config,
            )
        except Exception as exc:
            logger.warning("News search call failed: %s", exc)
            return Err(remote_error("News search", exc))

        try:
            report = parse_news_report(response_text(response_parts(response)))
        except DeserializationError as exc:
            logger.warning("News search response rejected: %s", exc)
            return Err(exc)

        logger.info("Received %d news items dated %s", len(report.items), report.date)
        return Ok(report)

    async def synthesize_speech(self, text: str) -> GatewayResult[AudioResult]:
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=self.settings.voice_name,
                    )
                )
            ),
        )
        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=SPEECH_PROMPT.format(text=text))],
            )
        ]
        logger.info(
            "Synthesizing %d characters of narration with voice %s",
            len(text),
            self.settings.voice_name,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.settings.tts_model,
                contents=contents,
                config=config,
            )
        except Exception as exc:
            logger.warning("Speech synthesis call failed: %s", exc)
            return Err(remote_error("Speech synthesis", exc))

        inline = first_inline_data(response_parts(response))
        if inline is None or not inline.data:
            logger.warning("Speech synthesis response carried no inline audio")
            return Err(AudioExtractionError())

        logger.debug("Extracted %d audio bytes (%s)", len(inline.data), inline.mime_type)
        return Ok(AudioResult(data=inline.data, mime_type=inline.mime_type or "audio/wav"))
