"""Configuration helpers for the design news hub."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

    gemini_api_key: str | None = Field(None, alias="GEMINI_API_KEY")
    news_model: str = Field(
        "gemini-3-flash-preview",
        description="Model used for the search-grounded, schema-constrained news query.",
    )
    tts_model: str = Field(
        "gemini-2.5-flash-preview-tts",
        description="Text-to-speech model used to narrate the report.",
    )
    voice_name: str = Field("Kore", description="Prebuilt voice preset for narration.")
    tts_sample_rate: int = Field(
        24000,
        description="Sample rate assumed for raw PCM audio when the MIME type omits it.",
    )
    tts_channels: int = Field(1, description="Channel count of the raw PCM narration.")
    error_label: str = Field(
        "Error al procesar las noticias: ",
        description="Prefix for the user-facing message when a cycle fails.",
    )
    output_dir: str = Field(
        "output",
        alias="DESIGN_NEWS_OUTPUT_DIR",
        description="Default directory for CLI exports.",
    )


def get_settings() -> Settings:
    """Return a settings instance built from the current environment."""
    return Settings()
