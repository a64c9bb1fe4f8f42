"""Data models for the design news cycle."""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NewsItem(BaseModel):
    """One news story returned by the search call."""

    model_config = ConfigDict(frozen=True)

    title: str
    source: str
    url: str
    summary: str
    category: str


class NewsReport(BaseModel):
    """Structured daily report: dated items plus a narration-ready text."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str
    items: List[NewsItem]
    full_text: str = Field(
        ..., alias="fullText", description="Narrative unifying every item, read aloud."
    )


def report_file_stamp(report: Optional[NewsReport]) -> str:
    """Report date reduced to characters that are safe in a file name."""
    day = report.date if report and report.date else "Today"
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in day)


class GenerationStatus(str, Enum):
    IDLE = "IDLE"
    SEARCHING = "SEARCHING"
    # Declared for a separate summarization step; no transition enters it yet.
    SUMMARIZING = "SUMMARIZING"
    GENERATING_AUDIO = "GENERATING_AUDIO"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class AudioResult:
    """Audio payload exactly as returned by the speech service."""

    data: bytes
    mime_type: str = "audio/wav"

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")
