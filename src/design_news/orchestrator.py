"""Single-flow orchestration of a news cycle.

Sequence: search news -> synthesize narration -> publish. Status moves
IDLE -> SEARCHING -> GENERATING_AUDIO -> COMPLETED, or to ERROR from either
in-flight state. The report and audio are only published once the whole cycle
succeeds; a failure discards whatever the cycle fetched.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional, Protocol

from pydantic import BaseModel

from .gateway import Err, GatewayResult, Ok, RemoteServiceError, remote_error
from .models import AudioResult, GenerationStatus, NewsReport

logger = logging.getLogger(__name__)

BUSY_STATUSES = frozenset(
    {
        GenerationStatus.SEARCHING,
        GenerationStatus.SUMMARIZING,
        GenerationStatus.GENERATING_AUDIO,
    }
)


class NewsGateway(Protocol):
    async def fetch_news(self) -> GatewayResult[NewsReport]: ...

    async def synthesize_speech(self, text: str) -> GatewayResult[AudioResult]: ...


class InvalidTransitionError(RuntimeError):
    """Raised when a user action is not allowed from the current status."""


class OrchestratorState(BaseModel):
    """What the presentation layer may read at any moment."""

    status: GenerationStatus
    report: Optional[NewsReport] = None
    audio_available: bool = False
    audio_mime_type: Optional[str] = None
    error: Optional[str] = None


class Orchestrator:
    def __init__(self, gateway: NewsGateway, *, error_label: str):
        self.gateway = gateway
        self.error_label = error_label
        self.status = GenerationStatus.IDLE
        self.history: List[GenerationStatus] = [GenerationStatus.IDLE]
        self._report: Optional[NewsReport] = None
        self._audio: Optional[AudioResult] = None
        self.error: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.status in BUSY_STATUSES

    @property
    def report(self) -> Optional[NewsReport]:
        return self._report if self.status is GenerationStatus.COMPLETED else None

    @property
    def audio(self) -> Optional[AudioResult]:
        return self._audio if self.status is GenerationStatus.COMPLETED else None

    def _transition(self, status: GenerationStatus) -> None:
        logger.info("Status %s -> %s", self.status.value, status.value)
        self.status = status
        self.history.append(status)

    def _clear(self) -> None:
        self._report = None
        self._audio = None
        self.error = None

    def _fail(self, result: Err) -> None:
        logger.warning("Cycle failed: %s", result.error)
        self._clear()
        self.error = f"{self.error_label}{result.error}"
        self._transition(GenerationStatus.ERROR)

    async def _call(
        self, step: str, method: Callable[..., Awaitable[GatewayResult]], *args: Any
    ) -> GatewayResult:
        # A gateway that raises instead of returning Err still ends the cycle in ERROR.
        try:
            result = await method(*args)
        except Exception as exc:
            logger.exception("%s raised unexpectedly", step)
            return Err(remote_error(step, exc))
        if not isinstance(result, (Ok, Err)):
            return Err(RemoteServiceError(f"{step} returned {result!r}"))
        return result

    def begin(self) -> GenerationStatus:
        """
        Claim the orchestrator for a new cycle: drop the previous data and move
        to SEARCHING without touching the gateway.

        Refused while another cycle is in flight, so a caller that schedules
        ``run`` for later can check and claim in one synchronous step.
        """
        if self.busy:
            raise InvalidTransitionError(
                f"A cycle is already in flight (status is {self.status.value})."
            )
        self._clear()
        self.history = [self.status]
        self._transition(GenerationStatus.SEARCHING)
        return self.status

    def begin_retry(self) -> GenerationStatus:
        if self.status is not GenerationStatus.ERROR:
            raise InvalidTransitionError(
                f"Retry is only allowed after an error (status is {self.status.value})."
            )
        logger.info("Retrying cycle after error: %s", self.error)
        return self.begin()

    async def run(self) -> GenerationStatus:
        """Drive a cycle claimed by ``begin`` through search and narration."""
        if self.status is not GenerationStatus.SEARCHING:
            raise InvalidTransitionError(
                f"Call begin() before run() (status is {self.status.value})."
            )

        match await self._call("News search", self.gateway.fetch_news):
            case Err() as failure:
                self._fail(failure)
                return self.status
            case Ok(value=report):
                pending_report = report

        self._transition(GenerationStatus.GENERATING_AUDIO)
        match await self._call(
            "Speech synthesis", self.gateway.synthesize_speech, pending_report.full_text
        ):
            case Err() as failure:
                self._fail(failure)
                return self.status
            case Ok(value=audio):
                pending_audio = audio

        self._report = pending_report
        self._audio = pending_audio
        self._transition(GenerationStatus.COMPLETED)
        return self.status

    async def start_cycle(self) -> GenerationStatus:
        """Run one full cycle and return the final status."""
        self.begin()
        return await self.run()

    async def retry(self) -> GenerationStatus:
        """Restart the whole cycle after a failure; nothing is resumed."""
        self.begin_retry()
        return await self.run()

    def reset(self) -> GenerationStatus:
        """Return to IDLE, dropping the previous report, audio and error."""
        if self.busy:
            raise InvalidTransitionError(
                f"Cannot reset while a cycle is in flight (status is {self.status.value})."
            )
        if self.status is GenerationStatus.IDLE:
            return self.status
        self._clear()
        self._transition(GenerationStatus.IDLE)
        self.history = [GenerationStatus.IDLE]
        return self.status

    def snapshot(self) -> OrchestratorState:
        audio = self.audio
        return OrchestratorState(
            status=self.status,
            report=self.report,
            audio_available=audio is not None,
            audio_mime_type=audio.mime_type if audio else None,
            error=self.error,
        )
