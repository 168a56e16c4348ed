"""Orchestrator — coordinates one variant comparison end to end."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from impactcompare.agents.base import CompletionClient
from impactcompare.agents.feature_extraction.agent import FeatureExtractionAgent
from impactcompare.agents.reasoning.agent import ReasoningAgent
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.features import VisionFeatures
from impactcompare.schemas.pipeline import AnalysisRequest, AnalysisResult
from impactcompare.scoring.fallback import TemplateSelector
from impactcompare.scoring.heuristics import score_features

logger = logging.getLogger(__name__)

StageCallback = Callable[[str, str], None]
"""Called with (stage_name, status) as the pipeline advances."""


class OrchestratorAgent:
    """Runs the variant analysis pipeline.

    Pipeline flow:
        extract A + extract B (concurrent) → score A, score B
        → comparative reasoning (or heuristic fallback) → AnalysisResult

    Instances hold no per-request state, so one orchestrator can serve
    concurrent invocations.
    """

    def __init__(
        self,
        client: CompletionClient,
        *,
        selector_seed: int = 0,
    ) -> None:
        self.client = client
        self.selector_seed = selector_seed
        self.extractor = FeatureExtractionAgent(client)

    async def run(
        self,
        request: AnalysisRequest,
        *,
        on_stage: StageCallback | None = None,
    ) -> AnalysisResult:
        return await self.analyze(
            request.image_a, request.image_b, request.context, on_stage=on_stage,
        )

    async def analyze(
        self,
        image_a: str,
        image_b: str,
        context: ComparisonContext | None = None,
        *,
        on_stage: StageCallback | None = None,
    ) -> AnalysisResult:
        def stage(name: str) -> Callable[[str], None] | None:
            if on_stage is None:
                return None
            return lambda status: on_stage(name, status)

        logger.info("Starting vision analysis for both variants")
        features_a, features_b = await self._extract_both(
            image_a, image_b, progress_a=stage("Variant A"), progress_b=stage("Variant B"),
        )

        logger.info("Vision analysis complete, applying heuristics")
        scores_a = score_features(features_a)
        scores_b = score_features(features_b)

        logger.info("Heuristics applied, starting reasoning analysis")
        # A fresh selector per invocation keeps fallback narratives reproducible.
        reasoner = ReasoningAgent(
            self.client, selector=TemplateSelector(self.selector_seed),
        )
        analysis = await reasoner.run_reasoning(
            features_a, features_b, scores_a, scores_b, context,
            on_progress=stage("Reasoning"),
        )

        logger.info("Analysis complete")
        return AnalysisResult(
            features_a=features_a,
            features_b=features_b,
            scores_a=scores_a,
            scores_b=scores_b,
            analysis=analysis,
        )

    async def _extract_both(
        self,
        image_a: str,
        image_b: str,
        *,
        progress_a: Any | None = None,
        progress_b: Any | None = None,
    ) -> tuple[VisionFeatures, VisionFeatures]:
        """Extract both variants concurrently; the first failure cancels the other."""
        tasks = [
            asyncio.create_task(
                self.extractor.run_extraction(image_a, variant="A", on_progress=progress_a)
            ),
            asyncio.create_task(
                self.extractor.run_extraction(image_b, variant="B", on_progress=progress_b)
            ),
        ]
        try:
            features_a, features_b = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return features_a, features_b
