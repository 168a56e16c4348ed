"""Runtime settings schema — backend credentials, models and deadlines."""

from pathlib import Path

from pydantic import BaseModel, field_validator

from impactcompare.errors import ConfigurationError


class Settings(BaseModel):
    """Process-wide configuration, read once at startup.

    ``api_key`` may be empty so that ``validate``/``history`` commands and
    dry runs work without credentials; call ``require_api_key()`` before
    talking to a real backend.
    """

    model_config = {"frozen": True}

    api_key: str = ""
    base_url: str = ""  # empty = api.openai.com
    vision_model: str = "gpt-4o"
    reasoning_model: str = "gpt-4o"
    request_timeout: float = 60.0  # seconds, applied to every backend call
    json_mode: bool = True
    history_path: Path = Path.home() / ".impactcompare" / "comparisons.json"

    @field_validator("request_timeout")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "No backend API key configured. Set IMPACTCOMPARE_API_KEY "
                "(or OPENAI_API_KEY)."
            )
        return self.api_key
