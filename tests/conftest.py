"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from impactcompare.schemas.config import Settings
from impactcompare.schemas.features import VisionFeatures
from impactcompare.shared.llm_client import LLMClient

# Scenario 1: focused, clean single-CTA screen
STRONG_FEATURES = {
    "components": ["Hero", "Primary button", "Nav bar"],
    "hierarchy": ["Headline", "Primary button"],
    "ctaCount": 1,
    "textBlocks": 3,
    "tapTargets": 5,
    "flowSteps": 1,
    "dominantColors": ["white", "blue"],
    "clutterScore": 0.2,
    "readabilityScore": 0.8,
    "primaryCTAAboveFold": True,
    "visualHierarchyStrong": True,
}

# Scenario 2: busy, multi-CTA screen with a long flow
WEAK_FEATURES = {
    "components": ["Banner", "Carousel", "Form", "Sidebar"],
    "hierarchy": ["Carousel", "Sidebar", "Form"],
    "ctaCount": 3,
    "textBlocks": 8,
    "tapTargets": 12,
    "flowSteps": 5,
    "dominantColors": ["red", "yellow", "green"],
    "clutterScore": 0.8,
    "readabilityScore": 0.3,
    "primaryCTAAboveFold": False,
    "visualHierarchyStrong": False,
}

VALID_ANALYSIS = {
    "summaryA": "A focused single-CTA layout.",
    "summaryB": "A dense layout with competing actions.",
    "differences": ["A has one CTA, B has three", "B has a longer flow"],
    "projectedMetrics": {
        "ctrA": "65%",
        "ctrB": "39%",
        "conversionA": "70%",
        "conversionB": "25%",
        "dropoffA": "19%",
        "dropoffB": "35%",
        "completionA": "81%",
        "completionB": "64%",
        "timeToActA": "18s",
        "timeToActB": "31s",
        "confidence": "High",
    },
    "rationale": "Variant A removes friction.\n\nVariant B splits attention.",
    "risks": ["B's carousel hides the CTA", "A may under-inform new users", "Both need testing"],
    "recommendation": "A wins - clearer primary action",
}


def make_text_response(text: str) -> SimpleNamespace:
    """Build a fake OpenAI chat completion carrying ``text``."""
    message = SimpleNamespace(content=text, tool_calls=None)
    choice = SimpleNamespace(message=message)
    return SimpleNamespace(choices=[choice], usage=None)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        api_key="test-key",
        request_timeout=5,
        history_path=tmp_path / "history.json",
    )


@pytest.fixture
def mock_llm_client(settings: Settings) -> LLMClient:
    """Return an LLMClient with a mocked OpenAI SDK underneath."""
    client = LLMClient(settings)
    client._client = AsyncMock()
    return client


@pytest.fixture
def strong_features() -> VisionFeatures:
    return VisionFeatures.model_validate(STRONG_FEATURES)


@pytest.fixture
def weak_features() -> VisionFeatures:
    return VisionFeatures.model_validate(WEAK_FEATURES)


@pytest.fixture
def valid_analysis_json() -> str:
    return json.dumps(VALID_ANALYSIS)
