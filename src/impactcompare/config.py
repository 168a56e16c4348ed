"""Config loaders — environment settings and YAML comparison context files."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from impactcompare.schemas.config import Settings
from impactcompare.schemas.context import ComparisonContext

_ENV_PREFIX = "IMPACTCOMPARE_"


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build ``Settings`` from the environment (after loading ``.env``).

    Raises ``pydantic.ValidationError`` on malformed values, e.g. a
    non-numeric timeout.
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    raw: dict[str, str] = {}
    api_key = environ.get(f"{_ENV_PREFIX}API_KEY") or environ.get("OPENAI_API_KEY")
    if api_key:
        raw["api_key"] = api_key
    for field in ("base_url", "vision_model", "reasoning_model",
                  "request_timeout", "json_mode", "history_path"):
        value = environ.get(_ENV_PREFIX + field.upper())
        if value:
            raw[field] = value

    return Settings(**raw)


def load_context(path: str | Path) -> ComparisonContext:
    """Load and validate a comparison context file.

    Keys may be snake_case (``user_segment``) or camelCase (``userSegment``).
    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Context file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Context file must be a YAML mapping, got {type(raw).__name__}")

    # Multi-line answers are often written as YAML lists; fold them into text.
    for key, value in raw.items():
        if isinstance(value, list):
            raw[key] = ", ".join(str(item) for item in value if item)

    return ComparisonContext(**raw)
