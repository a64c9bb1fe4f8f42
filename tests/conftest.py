import json
from types import SimpleNamespace

import pytest
from google.genai import types

from design_news.config import Settings
from design_news.gateway import Ok
from design_news.models import AudioResult, NewsReport

SAMPLE_PAYLOAD = {
    "date": "2024-05-01",
    "items": [
        {
            "title": "A",
            "source": "S",
            "url": "http://x",
            "summary": "sum",
            "category": "Diseño",
        }
    ],
    "fullText": "texto",
}

PCM_MIME = "audio/L16;codec=pcm;rate=24000"


def text_response(text: str) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part(text=text)])
            )
        ]
    )


def audio_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def inline_part(data: bytes, mime_type: str = PCM_MIME) -> types.Part:
    return types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))


class FakeModels:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    async def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


class FakeClient:
    """Mimics the `client.aio.models` surface of google.genai.Client."""

    def __init__(self, responses=None, error=None):
        self.models = FakeModels(responses=responses, error=error)
        self.aio = SimpleNamespace(models=self.models)


class FakeGateway:
    """Returns canned results and records which calls happened."""

    def __init__(self, news=None, speech=None):
        self.news = news
        self.speech = speech
        self.calls = []

    async def fetch_news(self):
        self.calls.append(("fetch_news",))
        return self.news

    async def synthesize_speech(self, text):
        self.calls.append(("synthesize_speech", text))
        return self.speech


@pytest.fixture
def settings():
    return Settings(GEMINI_API_KEY="test-key", _env_file=None)


@pytest.fixture
def sample_payload():
    return json.loads(json.dumps(SAMPLE_PAYLOAD))


@pytest.fixture
def sample_report():
    return NewsReport.model_validate(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_audio():
    return AudioResult(data=b"\x00\x01" * 240, mime_type=PCM_MIME)


@pytest.fixture
def happy_gateway(sample_report, sample_audio):
    return FakeGateway(news=Ok(sample_report), speech=Ok(sample_audio))
