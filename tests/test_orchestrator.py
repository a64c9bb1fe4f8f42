import asyncio

import pytest

from conftest import FakeGateway
from design_news.gateway import (
    AudioExtractionError,
    DeserializationError,
    Err,
    Gateway,
    Ok,
    RemoteServiceError,
)
from design_news.models import AudioResult, GenerationStatus
from design_news.orchestrator import InvalidTransitionError, Orchestrator

LABEL = "Error al procesar las noticias: "


class RecordingGateway(FakeGateway):
    """Captures the orchestrator status at the moment each call is made."""

    def __init__(self, orchestrator_ref, **kwargs):
        super().__init__(**kwargs)
        self.orchestrator_ref = orchestrator_ref
        self.seen = []

    async def fetch_news(self):
        self.seen.append(self.orchestrator_ref[0].status)
        return await super().fetch_news()

    async def synthesize_speech(self, text):
        self.seen.append(self.orchestrator_ref[0].status)
        return await super().synthesize_speech(text)


def test_successful_cycle_follows_linear_path(happy_gateway, sample_report, sample_audio):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)

    final = asyncio.run(orchestrator.start_cycle())

    assert final is GenerationStatus.COMPLETED
    assert orchestrator.history == [
        GenerationStatus.IDLE,
        GenerationStatus.SEARCHING,
        GenerationStatus.GENERATING_AUDIO,
        GenerationStatus.COMPLETED,
    ]
    assert GenerationStatus.SUMMARIZING not in orchestrator.history
    assert orchestrator.report == sample_report
    assert orchestrator.audio == sample_audio
    assert orchestrator.error is None
    assert happy_gateway.calls == [("fetch_news",), ("synthesize_speech", "texto")]


def test_gateway_calls_happen_in_matching_states(sample_report, sample_audio):
    ref = []
    gateway = RecordingGateway(ref, news=Ok(sample_report), speech=Ok(sample_audio))
    orchestrator = Orchestrator(gateway, error_label=LABEL)
    ref.append(orchestrator)

    asyncio.run(orchestrator.start_cycle())

    assert gateway.seen == [GenerationStatus.SEARCHING, GenerationStatus.GENERATING_AUDIO]


@pytest.mark.parametrize(
    "error",
    [RemoteServiceError("News search failed: timeout"), DeserializationError("bad json")],
)
def test_fetch_failure_sets_error_and_skips_speech(error):
    gateway = FakeGateway(news=Err(error))
    orchestrator = Orchestrator(gateway, error_label=LABEL)

    final = asyncio.run(orchestrator.start_cycle())

    assert final is GenerationStatus.ERROR
    assert orchestrator.report is None
    assert orchestrator.audio is None
    assert orchestrator.error == f"{LABEL}{error}"
    assert gateway.calls == [("fetch_news",)]
    assert orchestrator.history == [
        GenerationStatus.IDLE,
        GenerationStatus.SEARCHING,
        GenerationStatus.ERROR,
    ]


def test_speech_failure_discards_fetched_report(sample_report):
    gateway = FakeGateway(news=Ok(sample_report), speech=Err(AudioExtractionError()))
    orchestrator = Orchestrator(gateway, error_label=LABEL)

    asyncio.run(orchestrator.start_cycle())

    assert orchestrator.status is GenerationStatus.ERROR
    assert orchestrator.error == "Error al procesar las noticias: No se pudo generar el audio"
    assert orchestrator.report is None
    snapshot = orchestrator.snapshot()
    assert snapshot.report is None
    assert snapshot.audio_available is False


def test_retry_restarts_full_cycle(sample_report, sample_audio):
    gateway = FakeGateway(news=Ok(sample_report), speech=Err(AudioExtractionError()))
    orchestrator = Orchestrator(gateway, error_label=LABEL)
    asyncio.run(orchestrator.start_cycle())

    gateway.speech = Ok(sample_audio)
    final = asyncio.run(orchestrator.retry())

    assert final is GenerationStatus.COMPLETED
    assert orchestrator.history == [
        GenerationStatus.ERROR,
        GenerationStatus.SEARCHING,
        GenerationStatus.GENERATING_AUDIO,
        GenerationStatus.COMPLETED,
    ]
    assert [call[0] for call in gateway.calls] == [
        "fetch_news",
        "synthesize_speech",
        "fetch_news",
        "synthesize_speech",
    ]
    assert orchestrator.error is None


def test_retry_requires_error_state(happy_gateway):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)
    with pytest.raises(InvalidTransitionError):
        asyncio.run(orchestrator.retry())


def test_reset_clears_data_and_next_cycle_starts_fresh(sample_report, sample_audio):
    gateway = FakeGateway(news=Ok(sample_report), speech=Ok(sample_audio))
    orchestrator = Orchestrator(gateway, error_label=LABEL)
    asyncio.run(orchestrator.start_cycle())

    assert orchestrator.reset() is GenerationStatus.IDLE
    assert orchestrator.report is None
    assert orchestrator.audio is None
    assert orchestrator.snapshot().status is GenerationStatus.IDLE

    gateway.news = Err(RemoteServiceError("offline"))
    asyncio.run(orchestrator.start_cycle())

    assert orchestrator.status is GenerationStatus.ERROR
    assert orchestrator.report is None
    assert orchestrator.audio is None


def test_reset_refused_while_busy(happy_gateway):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)
    orchestrator.status = GenerationStatus.SEARCHING
    with pytest.raises(InvalidTransitionError):
        orchestrator.reset()


def test_reset_from_idle_is_noop(happy_gateway):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)
    assert orchestrator.reset() is GenerationStatus.IDLE
    assert orchestrator.history == [GenerationStatus.IDLE]


def test_snapshot_exposes_report_only_when_completed(happy_gateway, sample_report):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)
    assert orchestrator.snapshot().report is None

    asyncio.run(orchestrator.start_cycle())
    snapshot = orchestrator.snapshot()

    assert snapshot.status is GenerationStatus.COMPLETED
    assert snapshot.report == sample_report
    assert snapshot.audio_available is True
    assert snapshot.audio_mime_type == "audio/L16;codec=pcm;rate=24000"
    dumped = snapshot.model_dump(mode="json", by_alias=True)
    assert dumped["report"]["fullText"] == "texto"


def test_constructors_need_explicit_configuration(happy_gateway):
    with pytest.raises(TypeError):
        Orchestrator(happy_gateway)
    with pytest.raises(TypeError):
        Gateway(object())


class RaisingGateway(FakeGateway):
    """Raises from one of the calls instead of returning Err."""

    def __init__(self, raise_on, **kwargs):
        super().__init__(**kwargs)
        self.raise_on = raise_on

    async def fetch_news(self):
        if self.raise_on == "fetch_news":
            raise ValueError("boom")
        return await super().fetch_news()

    async def synthesize_speech(self, text):
        if self.raise_on == "synthesize_speech":
            raise ValueError("boom")
        return await super().synthesize_speech(text)


@pytest.mark.parametrize(
    "raise_on, last_busy",
    [
        ("fetch_news", GenerationStatus.SEARCHING),
        ("synthesize_speech", GenerationStatus.GENERATING_AUDIO),
    ],
)
def test_raising_gateway_still_ends_in_error(raise_on, last_busy, sample_report, sample_audio):
    gateway = RaisingGateway(raise_on, news=Ok(sample_report), speech=Ok(sample_audio))
    orchestrator = Orchestrator(gateway, error_label=LABEL)

    final = asyncio.run(orchestrator.start_cycle())

    assert final is GenerationStatus.ERROR
    assert orchestrator.history[-2:] == [last_busy, GenerationStatus.ERROR]
    assert orchestrator.error.startswith(LABEL)
    assert "boom" in orchestrator.error
    assert orchestrator.report is None
    assert orchestrator.reset() is GenerationStatus.IDLE


def test_unexpected_gateway_result_ends_in_error():
    orchestrator = Orchestrator(FakeGateway(news="not a result"), error_label=LABEL)

    assert asyncio.run(orchestrator.start_cycle()) is GenerationStatus.ERROR
    assert orchestrator.error.startswith(LABEL)


def test_begin_claims_searching_and_refuses_a_second_claim(happy_gateway):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)

    assert orchestrator.begin() is GenerationStatus.SEARCHING
    assert happy_gateway.calls == []
    with pytest.raises(InvalidTransitionError):
        orchestrator.begin()

    assert asyncio.run(orchestrator.run()) is GenerationStatus.COMPLETED


def test_run_requires_begin(happy_gateway):
    orchestrator = Orchestrator(happy_gateway, error_label=LABEL)
    with pytest.raises(InvalidTransitionError):
        asyncio.run(orchestrator.run())
    assert happy_gateway.calls == []


def test_audio_result_base64():
    assert AudioResult(data=b"hola").b64 == "aG9sYQ=="
