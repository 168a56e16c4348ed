"""Base agent ABC — defines the pattern every pipeline agent follows."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Protocol

from pydantic import BaseModel

from impactcompare.shared.llm_client import TokensCallback

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """What agents need from a backend client (``LLMClient`` or ``DryRunClient``)."""

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str: ...

    async def vision_completion(
        self,
        *,
        content: list[dict[str, Any]],
        system: str = "",
        json_mode: bool | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str: ...


class BaseAgent(ABC):
    """Abstract base class for the model-backed pipeline steps.

    Subclasses implement:
    - ``name`` — human-readable agent name
    - ``get_system_prompt()`` — returns the system prompt string
    - ``parse_output(raw_text)`` — parses the model's text into a Pydantic model

    Model output is untrusted.  ``try_parse`` turns every parse failure into
    ``None`` so subclasses can substitute their documented default instead
    of failing the pipeline.
    """

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for progress display and logs."""

    @abstractmethod
    def get_system_prompt(self) -> str:
        """Return the system prompt for this agent."""

    @abstractmethod
    def parse_output(self, raw_text: str) -> BaseModel:
        """Parse the model's final text response into a Pydantic model."""

    def try_parse(self, raw_text: str) -> BaseModel | None:
        """``parse_output`` that logs and returns ``None`` on any parse failure."""
        logger.debug("Agent %s raw output:\n%s", self.name, raw_text[:500])
        try:
            return self.parse_output(raw_text)
        except (ValueError, json.JSONDecodeError, KeyError, TypeError) as err:
            # pydantic.ValidationError is a ValueError subclass
            logger.warning("Agent %s output could not be parsed: %s", self.name, err)
            return None


def extract_json(text: str) -> dict[str, Any]:
    """Return the first well-formed JSON object in text that may contain prose or fences.

    Objects are tried in the order they appear, so a fenced block only wins
    when nothing earlier in the text parses.
    """
    text = (text or "").strip()

    # 1. Try direct parse (clean JSON response)
    if text.startswith("{"):
        try:
            obj = json.loads(text)
            if isinstance(obj, dict):
                return obj
        except json.JSONDecodeError:
            pass

    # 2. Try every "{" in turn until one starts a well-formed object
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(text, idx=start)
            if isinstance(obj, dict):
                return obj
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )
