"""FastAPI service exposing the news cycle to a browser front end."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .audio import audio_filename, to_playable
from .config import Settings, get_settings
from .docx_builder import render_docx
from .gateway import Gateway
from .models import GenerationStatus, NewsReport
from .orchestrator import InvalidTransitionError, Orchestrator
from .pdf_builder import render_pdf, report_filename

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

app = FastAPI(title="Design News Hub")


def _add_cors(app: FastAPI) -> None:
    """Allow a browser front end served elsewhere to call the API."""
    allow_all = os.getenv("CORS_ALLOW_ALL", "true").lower() == "true"
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    allow_credentials = (
        os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    )
    if allow_all or not origins:
        origins = ["*"]
    if origins == ["*"] and allow_credentials:
        # Starlette/FastAPI disallow wildcard origins when credentials are enabled.
        allow_credentials = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


_add_cors(app)


@lru_cache(maxsize=1)
def get_orchestrator() -> Orchestrator:
    """Process-wide orchestrator; tests replace it through dependency_overrides."""
    settings = get_settings()
    try:
        gateway = Gateway.from_settings(settings)
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return Orchestrator(gateway, error_label=settings.error_label)


def _state_body(orchestrator: Orchestrator) -> Dict:
    return orchestrator.snapshot().model_dump(mode="json", by_alias=True)


def _completed_report(orchestrator: Orchestrator) -> NewsReport:
    report = orchestrator.report
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No report available (status is {orchestrator.status.value}).",
        )
    return report


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/status")
def read_status(orchestrator: Orchestrator = Depends(get_orchestrator)) -> JSONResponse:
    return JSONResponse(content=_state_body(orchestrator))


@app.post("/cycle/start", status_code=status.HTTP_202_ACCEPTED)
async def start_cycle(
    background_tasks: BackgroundTasks,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Kick off search -> narration in the background; poll /status for progress."""
    if orchestrator.status is not GenerationStatus.IDLE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A cycle can only start from IDLE (status is {orchestrator.status.value}).",
        )
    # Check and claim run on the event loop with no await between them, so a
    # second request always sees SEARCHING.
    orchestrator.begin()
    background_tasks.add_task(orchestrator.run)
    return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={"status": "accepted"})


@app.post("/cycle/retry", status_code=status.HTTP_202_ACCEPTED)
async def retry_cycle(
    background_tasks: BackgroundTasks,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    try:
        orchestrator.begin_retry()
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    background_tasks.add_task(orchestrator.run)
    return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={"status": "accepted"})


@app.post("/cycle/reset")
def reset_cycle(orchestrator: Orchestrator = Depends(get_orchestrator)) -> JSONResponse:
    try:
        orchestrator.reset()
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return JSONResponse(content=_state_body(orchestrator))


@app.get("/report")
def read_report(orchestrator: Orchestrator = Depends(get_orchestrator)) -> JSONResponse:
    report = _completed_report(orchestrator)
    return JSONResponse(content=report.model_dump(mode="json", by_alias=True))


@app.get("/report/pdf")
def download_pdf(orchestrator: Orchestrator = Depends(get_orchestrator)) -> Response:
    report = _completed_report(orchestrator)
    return _attachment(render_pdf(report), "application/pdf", report_filename(report, "pdf"))


@app.get("/report/docx")
def download_docx(orchestrator: Orchestrator = Depends(get_orchestrator)) -> Response:
    report = _completed_report(orchestrator)
    return _attachment(render_docx(report), DOCX_MIME, report_filename(report, "docx"))


@app.get("/report/audio")
def download_audio(
    orchestrator: Orchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
) -> Response:
    report = _completed_report(orchestrator)
    audio = orchestrator.audio
    if audio is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No audio available.")
    playable = to_playable(
        audio, sample_rate=settings.tts_sample_rate, channels=settings.tts_channels
    )
    return _attachment(
        playable.data, playable.mime_type, audio_filename(report, playable.extension)
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "design_news.server:app",
        host=os.getenv("DESIGN_NEWS_HOST", "0.0.0.0"),
        port=int(os.getenv("DESIGN_NEWS_PORT", "8000")),
        reload=os.getenv("DESIGN_NEWS_RELOAD", "false").lower() == "true",
    )
