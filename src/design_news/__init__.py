"""Daily design and art news digest built on Gemini search and speech synthesis."""

__all__ = ["config", "models", "gateway", "orchestrator"]
