"""Async wrapper around an OpenAI-compatible chat-completions backend.

Both the vision backend and the reasoning backend go through the same
client.  Calls are never retried: a failed call maps onto one of the
``impactcompare.errors`` upstream errors and ends the invocation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from impactcompare.errors import (
    QuotaExhaustedError,
    RateLimitedError,
    UpstreamError,
    UpstreamTimeoutError,
)
from impactcompare.schemas.config import Settings

logger = logging.getLogger(__name__)

MAX_TOKENS = 4_096

TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


def _is_quota_error(exc: APIStatusError) -> bool:
    """True when a 429/402 means "out of credits" rather than "slow down"."""
    if exc.status_code == 402:
        return True
    code = getattr(exc, "code", None)
    if code == "insufficient_quota":
        return True
    msg = str(exc).lower()
    return "insufficient_quota" in msg or "credits" in msg


def _translate_error(exc: Exception, backend: str) -> UpstreamError:
    """Map an OpenAI SDK exception onto the pipeline's error taxonomy."""
    if isinstance(exc, APITimeoutError):
        return UpstreamTimeoutError("request timed out", backend=backend)
    if isinstance(exc, APIConnectionError):
        return UpstreamError(f"connection failed: {exc}", backend=backend)
    if isinstance(exc, (RateLimitError, APIStatusError)):
        status = exc.status_code
        if _is_quota_error(exc):
            return QuotaExhaustedError(
                "AI credits exhausted", backend=backend, backend_status=status,
            )
        if status == 429:
            return RateLimitedError(
                "rate limit exceeded", backend=backend, backend_status=status,
            )
        return UpstreamError(
            f"analysis failed: {exc.message}", backend=backend, backend_status=status,
        )
    return UpstreamError(str(exc), backend=backend)


class LLMClient:
    """Thin async wrapper around the OpenAI SDK.

    Provides two methods:
    - ``simple_completion`` — system + user text, returns the reply text.
    - ``vision_completion`` — multipart user content (text + image), returns
      the reply text.

    Every call is bounded by ``settings.request_timeout``.  SDK-level
    retries are switched off so a failure surfaces immediately.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client = AsyncOpenAI(
            api_key=settings.require_api_key(),
            base_url=settings.base_url or None,
            max_retries=0,
            timeout=settings.request_timeout,
        )

    async def _create(self, backend: str, **kwargs: Any) -> Any:
        """Call chat.completions.create under the per-call deadline."""
        try:
            return await asyncio.wait_for(
                self._client.chat.completions.create(**kwargs),
                timeout=self._settings.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "%s backend did not answer within %.0fs",
                backend, self._settings.request_timeout,
            )
            raise UpstreamTimeoutError(
                f"no response within {self._settings.request_timeout:.0f}s",
                backend=backend,
            ) from exc
        except APIError as exc:
            logger.error("%s backend call failed: %s", backend, exc)
            raise _translate_error(exc, backend) from exc

    @staticmethod
    def _text_of(response: Any, on_tokens: TokensCallback | None) -> str:
        usage = getattr(response, "usage", None)
        if usage:
            prompt_tokens = getattr(usage, "prompt_tokens", 0)
            completion_tokens = getattr(usage, "completion_tokens", 0)
            logger.debug("Token usage: %d in / %d out", prompt_tokens, completion_tokens)
            if on_tokens:
                on_tokens(prompt_tokens, completion_tokens)
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        return choices[0].message.content or ""

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response with a system instruction and user text."""
        kwargs: dict[str, Any] = {
            "model": self._settings.reasoning_model,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
        }
        if self._settings.json_mode if json_mode is None else json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._create("reasoning", **kwargs)
        return self._text_of(response, on_tokens)

    async def vision_completion(
        self,
        *,
        content: list[dict[str, Any]],
        system: str = "",
        json_mode: bool | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response with multipart content (text + images).

        ``content`` is a list of OpenAI content parts, e.g.:
            [{"type": "text", "text": "..."}, {"type": "image_url", "image_url": {...}}]
        """
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": content})

        kwargs: dict[str, Any] = {
            "model": self._settings.vision_model,
            "max_tokens": MAX_TOKENS,
            "messages": messages,
        }
        if self._settings.json_mode if json_mode is None else json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._create("vision", **kwargs)
        return self._text_of(response, on_tokens)


# ======================================================================
# Dry-run mock client, zero API calls
# ======================================================================

_DRY_RUN_FEATURES = json.dumps({
    "components": ["Hero banner", "Primary button", "Navigation bar", "Feature cards"],
    "hierarchy": ["Headline", "Primary button", "Feature cards", "Footer links"],
    "ctaCount": 1,
    "textBlocks": 4,
    "tapTargets": 8,
    "flowSteps": 2,
    "dominantColors": ["white", "navy", "orange"],
    "clutterScore": 0.3,
    "readabilityScore": 0.8,
    "primaryCTAAboveFold": True,
    "visualHierarchyStrong": True,
})

_DRY_RUN_REASONING = (
    "Dry run: no reasoning model was called, so the heuristic fallback "
    "analysis is used."
)


class DryRunClient:
    """Drop-in replacement for LLMClient that makes zero API calls.

    Every vision call returns the same canned feature record and the
    reasoning call returns prose, so a dry run exercises the full pipeline
    including the fallback synthesizer.
    """

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        logger.info("[dry-run] reasoning call skipped (%d chars prompt)", len(user_message))
        return _DRY_RUN_REASONING

    async def vision_completion(
        self,
        *,
        content: list[dict[str, Any]],
        system: str = "",
        json_mode: bool | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        logger.info("[dry-run] vision call skipped")
        return _DRY_RUN_FEATURES
