"""Command-line entry points for the design news hub."""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print as rprint

from .audio import audio_filename, to_playable
from .config import get_settings
from .docx_builder import build_docx
from .gateway import Gateway
from .models import GenerationStatus, NewsReport
from .orchestrator import Orchestrator
from .pdf_builder import build_pdf, report_filename

app = typer.Typer(
    help="Search today's design and art news with Gemini, then export a report and narration."
)

FORMATS = {"pdf", "docx"}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _check_format(fmt: str) -> str:
    normalized = fmt.lower()
    if normalized not in FORMATS:
        raise typer.BadParameter("format must be 'pdf' or 'docx'.")
    return normalized


def _load_report(path: Path) -> NewsReport:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read report JSON from {path}: {exc}") from exc
    try:
        return NewsReport.model_validate(data)
    except ValidationError as exc:
        raise typer.BadParameter(f"{path} is not a news report: {exc}") from exc


def _write_document(report: NewsReport, out_path: Path, fmt: str) -> Path:
    if fmt == "docx":
        return build_docx(report, out_path)
    return build_pdf(report, out_path)


def write_report_json(report: NewsReport, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(report.model_dump(by_alias=True), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return out_path


@app.command("run")
def run_command(
    outdir: Optional[Path] = typer.Option(
        None,
        "--outdir",
        "-o",
        help="Directory for the report document and narration (defaults to DESIGN_NEWS_OUTPUT_DIR).",
    ),
    output_format: str = typer.Option(
        "pdf",
        "--format",
        "-f",
        help="Report document format: pdf or docx.",
        case_sensitive=False,
    ),
    save_json: bool = typer.Option(
        False,
        "--json",
        help="Also write the structured report as JSON (reusable with `export`).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """
    Run one full cycle: news search -> speech synthesis -> files on disk.
    """
    _configure_logging(verbose)
    fmt = _check_format(output_format)
    settings = get_settings()
    target_dir = outdir or Path(settings.output_dir)

    try:
        gateway = Gateway.from_settings(settings)
    except RuntimeError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    orchestrator = Orchestrator(gateway, error_label=settings.error_label)
    rprint("[cyan]Searching today's design news...[/cyan]")
    final_status = asyncio.run(orchestrator.start_cycle())

    if final_status is not GenerationStatus.COMPLETED:
        rprint(f"[red]{orchestrator.error}[/red]")
        raise typer.Exit(code=1)

    report = orchestrator.report
    audio = orchestrator.audio
    rprint(f"[green]Report ready for {report.date} with {len(report.items)} items.[/green]")

    doc_path = _write_document(report, target_dir / report_filename(report, fmt), fmt)
    rprint(f"[cyan]Wrote report to {doc_path}[/cyan]")

    playable = to_playable(
        audio, sample_rate=settings.tts_sample_rate, channels=settings.tts_channels
    )
    audio_path = target_dir / audio_filename(report, playable.extension)
    audio_path.write_bytes(playable.data)
    rprint(f"[cyan]Wrote narration to {audio_path}[/cyan]")

    if save_json:
        json_path = write_report_json(report, target_dir / report_filename(report, "json"))
        rprint(f"[cyan]Wrote report JSON to {json_path}[/cyan]")


@app.command("export")
def export_command(
    report_path: Path = typer.Argument(..., help="Report JSON written by `run --json`."),
    output_format: str = typer.Option(
        "pdf",
        "--format",
        "-f",
        help="Document format: pdf or docx.",
        case_sensitive=False,
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Output file; defaults to a dated name next to the JSON file.",
    ),
):
    """
    Render a previously saved report as a printable document.
    """
    fmt = _check_format(output_format)
    report = _load_report(report_path)
    out_path = out or report_path.parent / report_filename(report, fmt)
    _write_document(report, out_path, fmt)
    rprint(f"[green]Wrote {fmt.upper()} to {out_path}[/green]")


@app.command("serve")
def serve_command(
    host: str = typer.Option(os.getenv("DESIGN_NEWS_HOST", "0.0.0.0"), help="Bind address."),
    port: int = typer.Option(int(os.getenv("DESIGN_NEWS_PORT", "8000")), help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
):
    """
    Serve the HTTP API for the browser front end.
    """
    import uvicorn

    uvicorn.run("design_news.server:app", host=host, port=port, reload=reload)


def main():
    app()


if __name__ == "__main__":
    main()
