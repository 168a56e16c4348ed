"""Tests for the OrchestratorAgent — end-to-end pipeline with a scripted backend."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from impactcompare.agents.orchestrator.agent import OrchestratorAgent
from impactcompare.errors import QuotaExhaustedError, RateLimitedError
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.pipeline import DISCLAIMER, AnalysisRequest
from impactcompare.scoring.aggregate import build_metrics_table

from tests.conftest import STRONG_FEATURES, VALID_ANALYSIS, WEAK_FEATURES


class ScriptedClient:
    """Answers vision calls per image URL and the reasoning call with a fixed reply."""

    def __init__(self, vision: dict[str, Any], reasoning: str = "") -> None:
        self.vision = vision
        self.reasoning = reasoning
        self.vision_calls: list[str] = []
        self.reasoning_calls = 0

    async def vision_completion(self, *, content, system="", json_mode=None, on_tokens=None) -> str:
        url = content[1]["image_url"]["url"]
        self.vision_calls.append(url)
        reply = self.vision[url]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return await reply()
        return reply

    async def simple_completion(self, *, system, user_message, json_mode=None, on_tokens=None) -> str:
        self.reasoning_calls += 1
        return self.reasoning


A = "https://x/a.png"
B = "https://x/b.png"


class TestPipeline:
    @pytest.mark.asyncio
    async def test_full_run(self) -> None:
        client = ScriptedClient(
            {A: json.dumps(STRONG_FEATURES), B: json.dumps(WEAK_FEATURES)},
            reasoning=json.dumps(VALID_ANALYSIS),
        )
        context = ComparisonContext(
            user_segment="Shoppers", assumptions="Skimming", pain_points="Abandonment",
        )
        result = await OrchestratorAgent(client).analyze(A, B, context)

        assert result.scores_a.predicted_ctr == 65
        assert result.scores_b.predicted_ctr == 39
        assert result.analysis.projected_metrics.confidence == "High"
        assert result.disclaimer == DISCLAIMER
        assert sorted(client.vision_calls) == [A, B]
        assert client.reasoning_calls == 1

    @pytest.mark.asyncio
    async def test_unparseable_vision_and_reasoning_degrade(self) -> None:
        # Both extractions fail to parse; reasoning is prose
        client = ScriptedClient({A: "no idea", B: "cannot tell"}, reasoning="Looks fine.")
        result = await OrchestratorAgent(client).analyze(A, B)

        assert result.features_a.components == ["Unable to extract"]
        assert result.features_b.components == ["Unable to extract"]
        assert result.analysis.projected_metrics.confidence == "Medium"
        assert result.analysis.recommendation.startswith("Tie")
        assert [r.winner for r in build_metrics_table(result.analysis)] == ["Tie"] * 5

    @pytest.mark.asyncio
    async def test_identical_variants_tie(self) -> None:
        client = ScriptedClient(
            {A: json.dumps(STRONG_FEATURES), B: json.dumps(STRONG_FEATURES)},
            reasoning="unstructured",
        )
        result = await OrchestratorAgent(client).analyze(A, B)
        assert result.scores_a == result.scores_b
        assert result.analysis.recommendation.startswith("Tie")

    @pytest.mark.asyncio
    async def test_run_accepts_request(self) -> None:
        client = ScriptedClient(
            {A: json.dumps(STRONG_FEATURES), B: json.dumps(WEAK_FEATURES)},
            reasoning="prose",
        )
        request = AnalysisRequest.model_validate({
            "imageA": A, "imageB": B, "context": {"primaryMetric": "CTR"},
        })
        result = await OrchestratorAgent(client).run(request)
        assert "click-through rate" in result.analysis.recommendation

    @pytest.mark.asyncio
    async def test_fallback_reproducible_across_runs(self) -> None:
        client = ScriptedClient(
            {A: json.dumps(STRONG_FEATURES), B: json.dumps(WEAK_FEATURES)},
            reasoning="prose",
        )
        orchestrator = OrchestratorAgent(client, selector_seed=3)
        first = await orchestrator.analyze(A, B)
        second = await orchestrator.analyze(A, B)
        assert first == second

    @pytest.mark.asyncio
    async def test_stage_callbacks(self) -> None:
        client = ScriptedClient(
            {A: json.dumps(STRONG_FEATURES), B: json.dumps(WEAK_FEATURES)},
            reasoning="prose",
        )
        stages: list[str] = []
        await OrchestratorAgent(client).analyze(
            A, B, on_stage=lambda stage, status: stages.append(stage),
        )
        assert set(stages) == {"Variant A", "Variant B", "Reasoning"}
        assert stages[-1] == "Reasoning"


class TestFailFast:
    @pytest.mark.asyncio
    async def test_one_extraction_error_fails_whole_run(self) -> None:
        cancelled = asyncio.Event()

        async def slow() -> str:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return json.dumps(WEAK_FEATURES)

        client = ScriptedClient(
            {A: RateLimitedError("rate limit exceeded", backend="vision"), B: slow},
            reasoning=json.dumps(VALID_ANALYSIS),
        )
        with pytest.raises(RateLimitedError) as info:
            await asyncio.wait_for(OrchestratorAgent(client).analyze(A, B), timeout=2)

        assert info.value.variant == "A"
        assert cancelled.is_set()
        assert client.reasoning_calls == 0

    @pytest.mark.asyncio
    async def test_quota_error_on_b_propagates(self) -> None:
        client = ScriptedClient(
            {A: json.dumps(STRONG_FEATURES), B: QuotaExhaustedError("out of credits", backend="vision")},
        )
        with pytest.raises(QuotaExhaustedError) as info:
            await OrchestratorAgent(client).analyze(A, B)
        assert info.value.variant == "B"
