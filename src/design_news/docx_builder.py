"""DOCX generation for the daily design news report."""

from __future__ import annotations

import io
from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from .models import NewsItem, NewsReport
from .pdf_builder import FOOTER_TEXT, REPORT_TITLE

INDIGO = RGBColor(0x43, 0x38, 0xCA)
SLATE = RGBColor(0x64, 0x74, 0x8B)


def _set_title_styles(doc: Document) -> None:
    """
    Apply minimal styling without embedding custom themes.
    Uses Calibri for the title so East Asian fallbacks do not kick in.
    """
    title_style = doc.styles["Title"]
    title_font = title_style.font
    title_font.name = "Calibri"
    title_font.size = Pt(20)

    rpr = title_style.element.get_or_add_rPr()
    rpr.get_or_add_rFonts().set(qn("w:eastAsia"), "Calibri")


def _add_item(doc: Document, item: NewsItem) -> None:
    heading = doc.add_heading(item.title, level=2)
    for run in heading.runs:
        run.font.color.rgb = INDIGO

    meta = doc.add_paragraph()
    meta_run = meta.add_run(f"{item.source} ({item.category})")
    meta_run.italic = True
    meta_run.font.color.rgb = SLATE

    doc.add_paragraph(item.summary)

    if item.url:
        link = doc.add_paragraph()
        link_run = link.add_run(item.url)
        link_run.underline = True
        link_run.font.size = Pt(9)


def build_report_document(report: NewsReport) -> Document:
    doc = Document()
    _set_title_styles(doc)

    title = doc.add_heading(REPORT_TITLE, 0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    doc.add_paragraph(f"Fecha: {report.date}")

    for item in report.items:
        _add_item(doc, item)

    footer = doc.sections[0].footer.paragraphs[0]
    footer.text = FOOTER_TEXT
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
    return doc


def render_docx(report: NewsReport) -> bytes:
    buffer = io.BytesIO()
    build_report_document(report).save(buffer)
    return buffer.getvalue()


def build_docx(report: NewsReport, output_path: Path) -> Path:
    """Render the report DOCX to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    build_report_document(report).save(output_path)
    return output_path
