"""PDF rendering for the daily design news report."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .models import NewsReport, report_file_stamp

REPORT_TITLE = "Reporte Diario: Diseño & Artes"
FOOTER_TEXT = "Generado por Gemini Design News Hub"

# Core PDF fonts only cover Latin-1.
_PUNCTUATION = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u2013": "-",
        "\u2014": "-",
        "\u2026": "...",
        "\u00a0": " ",
    }
)

INDIGO = (67, 56, 202)
SLATE = (100, 116, 139)
MUTED = (148, 163, 184)


def sanitize_text(text: str) -> str:
    """Map text onto Latin-1, replacing what the core fonts cannot draw."""
    return text.translate(_PUNCTUATION).encode("latin-1", "replace").decode("latin-1")


def report_filename(report: Optional[NewsReport], suffix: str) -> str:
    return f"Reporte_Diseno_{report_file_stamp(report)}.{suffix}"


class ReportPDF(FPDF):
    def footer(self) -> None:
        self.set_y(-15)
        self.set_font("Helvetica", size=8)
        self.set_text_color(*MUTED)
        self.cell(0, 10, sanitize_text(FOOTER_TEXT), align="C")


def build_document(report: NewsReport) -> ReportPDF:
    """Lay out the report: heading, date, then one block per item."""
    pdf = ReportPDF(format="A4")
    pdf.set_title(sanitize_text(f"Reporte de Diseño - {report.date}"))
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    pdf.set_font("Helvetica", style="B", size=20)
    pdf.set_text_color(30, 41, 59)
    pdf.multi_cell(0, 10, sanitize_text(REPORT_TITLE), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(99, 102, 241)
    pdf.set_line_width(0.6)
    pdf.line(pdf.l_margin, pdf.get_y() + 1, pdf.w - pdf.r_margin, pdf.get_y() + 1)
    pdf.ln(4)

    pdf.set_font("Helvetica", size=11)
    pdf.set_text_color(0, 0, 0)
    pdf.multi_cell(0, 7, sanitize_text(f"Fecha: {report.date}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    for item in report.items:
        pdf.set_font("Helvetica", style="B", size=13)
        pdf.set_text_color(*INDIGO)
        pdf.multi_cell(0, 7, sanitize_text(item.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        pdf.set_font("Helvetica", style="I", size=10)
        pdf.set_text_color(*SLATE)
        pdf.multi_cell(
            0,
            6,
            sanitize_text(f"{item.source} ({item.category})"),
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )

        pdf.ln(2)
        pdf.set_font("Helvetica", size=11)
        pdf.set_text_color(0, 0, 0)
        pdf.multi_cell(0, 6, sanitize_text(item.summary), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        if item.url:
            pdf.set_font("Helvetica", style="U", size=9)
            pdf.set_text_color(*INDIGO)
            pdf.multi_cell(
                0,
                5,
                sanitize_text(item.url),
                link=item.url,
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )
        pdf.ln(6)

    return pdf


def render_pdf(report: NewsReport) -> bytes:
    """Return the report as PDF bytes."""
    return bytes(build_document(report).output())


def build_pdf(report: NewsReport, output_path: Path) -> Path:
    """Render the report PDF to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(render_pdf(report))
    return output_path
