"""Helpers to load the news report JSON schema, validate payloads and hand it to Gemini."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from google.genai import types
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

_TYPE_MAPPING = {
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
    "array": types.Type.ARRAY,
    "object": types.Type.OBJECT,
}


def default_schema_path() -> Path:
    """Return the path to the bundled news report schema file."""
    return Path(__file__).resolve().parent / "templates" / "news_report_schema.json"


@lru_cache(maxsize=1)
def load_schema(path: Optional[Path | str] = None) -> Dict[str, Any]:
    """Load and cache the news report schema as a dictionary."""
    schema_path = Path(path) if path else default_schema_path()
    return json.loads(schema_path.read_text(encoding="utf-8"))


def format_errors(errors: Iterable[ValidationError]) -> str:
    """Turn jsonschema errors into a concise human-readable string."""
    parts = []
    for err in errors:
        location = ".".join(str(piece) for piece in err.absolute_path) or "<root>"
        parts.append(f"{location}: {err.message}")
    return "; ".join(parts)


def validate_report_payload(
    payload: Any, schema: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Validate a decoded search response against the news report schema.

    Raises ValueError with a readable message if validation fails.
    """
    schema_dict = schema or load_schema()
    validator = Draft202012Validator(schema_dict)
    errors = sorted(
        validator.iter_errors(payload),
        key=lambda err: [str(piece) for piece in err.absolute_path],
    )
    if errors:
        raise ValueError(f"Schema validation failed: {format_errors(errors)}")
    return payload


def to_gemini_schema(json_schema: Dict[str, Any]) -> types.Schema:
    """
    Convert a JSON Schema dictionary into the SDK's types.Schema.

    Only the keywords the response schema uses are carried over: type,
    description, enum, properties, required and items.
    """
    params: Dict[str, Any] = {}
    if "type" in json_schema:
        params["type"] = _TYPE_MAPPING.get(json_schema["type"], types.Type.STRING)
    if "description" in json_schema:
        params["description"] = json_schema["description"]
    if "enum" in json_schema:
        params["enum"] = json_schema["enum"]
    if "properties" in json_schema:
        params["properties"] = {
            name: to_gemini_schema(sub) for name, sub in json_schema["properties"].items()
        }
        # Gemini otherwise orders keys alphabetically in generated JSON.
        params["property_ordering"] = list(json_schema["properties"].keys())
    if "required" in json_schema:
        params["required"] = list(json_schema["required"])
    if "items" in json_schema:
        params["items"] = to_gemini_schema(json_schema["items"])
    return types.Schema(**params)


def response_schema() -> types.Schema:
    """Return the bundled news report schema in the SDK's format."""
    return to_gemini_schema(load_schema())
