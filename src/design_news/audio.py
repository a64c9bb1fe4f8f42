"""Container framing for narration audio.

The speech model answers with raw 16-bit little-endian PCM (MIME type like
``audio/L16;codec=pcm;rate=24000``), which browsers and players will not open
as-is. ``to_playable`` adds a WAV header to such payloads and leaves
already-containerized audio untouched.
"""

from __future__ import annotations

import io
import wave
from dataclasses import dataclass
from typing import Dict, Optional

from .models import AudioResult, NewsReport, report_file_stamp

RAW_PCM_TYPES = {"audio/l16", "audio/pcm", "audio/raw"}
PCM_SAMPLE_WIDTH = 2

_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/ogg": "ogg",
    "audio/flac": "flac",
}


@dataclass(frozen=True)
class PlayableAudio:
    data: bytes
    mime_type: str
    extension: str


def parse_mime(mime_type: str) -> tuple[str, Dict[str, str]]:
    """Split ``audio/L16;codec=pcm;rate=24000`` into the base type and its parameters."""
    pieces = [piece.strip() for piece in (mime_type or "").split(";") if piece.strip()]
    if not pieces:
        return "", {}
    params: Dict[str, str] = {}
    for piece in pieces[1:]:
        key, sep, value = piece.partition("=")
        if sep:
            params[key.strip().lower()] = value.strip()
    return pieces[0].lower(), params


def pcm_to_wav(
    pcm: bytes,
    *,
    sample_rate: int,
    channels: int = 1,
    sample_width: int = PCM_SAMPLE_WIDTH,
) -> bytes:
    """Wrap raw PCM frames in a RIFF/WAVE container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


def to_playable(
    audio: AudioResult,
    *,
    sample_rate: int = 24000,
    channels: int = 1,
) -> PlayableAudio:
    """
    Return audio that a player can open.

    Raw PCM gets a WAV header, using the ``rate``/``channels`` MIME parameters
    when present and the given defaults otherwise.
    """
    base, params = parse_mime(audio.mime_type)
    if base in RAW_PCM_TYPES:
        rate = _int_param(params, "rate", sample_rate)
        chans = _int_param(params, "channels", channels)
        data = pcm_to_wav(audio.data, sample_rate=rate, channels=chans)
        return PlayableAudio(data=data, mime_type="audio/wav", extension="wav")
    return PlayableAudio(
        data=audio.data,
        mime_type=base or "audio/wav",
        extension=_EXTENSIONS.get(base, "wav"),
    )


def _int_param(params: Dict[str, str], key: str, default: int) -> int:
    raw: Optional[str] = params.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def audio_filename(report: Optional[NewsReport], extension: str = "wav") -> str:
    return f"Gemini_Design_News_{report_file_stamp(report)}.{extension}"
