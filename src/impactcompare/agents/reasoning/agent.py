"""Reasoning agent — compares both variants and projects metrics."""

from __future__ import annotations

import logging
from typing import Any

from impactcompare.agents.base import BaseAgent, CompletionClient, extract_json
from impactcompare.agents.reasoning.prompts import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE
from impactcompare.schemas.analysis import ReasoningAnalysis
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.features import VisionFeatures
from impactcompare.schemas.scores import HeuristicScores
from impactcompare.scoring.aggregate import cap_confidence, derive_confidence
from impactcompare.scoring.fallback import TemplateSelector, synthesize_fallback_analysis

logger = logging.getLogger(__name__)


def _format_scores(scores: HeuristicScores) -> str:
    risks = "; ".join(scores.usability_risks) or "None identified"
    return (
        f"- Predicted CTR: {scores.predicted_ctr}%\n"
        f"- Predicted Conversion: {scores.predicted_conversion}%\n"
        f"- Predicted Drop-off: {scores.predicted_dropoff}%\n"
        f"- Predicted Time-to-Act: {scores.predicted_time_to_act}s\n"
        f"- Predicted Task Completion: {scores.predicted_task_completion}%\n"
        f"- Usability Risks: {risks}"
    )


class ReasoningAgent(BaseAgent):
    """Single-call comparative analysis on top of features + heuristic scores.

    Unparseable output never fails the pipeline: the fallback synthesizer
    produces an analysis of the same shape from the heuristic data.
    """

    def __init__(self, client: CompletionClient, *, selector: TemplateSelector | None = None) -> None:
        super().__init__(client)
        self.selector = selector

    @property
    def name(self) -> str:
        return "Comparative Reasoning"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> ReasoningAnalysis:
        data = extract_json(raw_text)
        return ReasoningAnalysis.model_validate(data)

    def build_prompt(
        self,
        features_a: VisionFeatures,
        features_b: VisionFeatures,
        scores_a: HeuristicScores,
        scores_b: HeuristicScores,
        context: ComparisonContext | None = None,
    ) -> str:
        context = context or ComparisonContext()
        return USER_PROMPT_TEMPLATE.format(
            features_a=features_a.model_dump_json(by_alias=True, indent=2),
            features_b=features_b.model_dump_json(by_alias=True, indent=2),
            scores_a=_format_scores(scores_a),
            scores_b=_format_scores(scores_b),
            user_segment=context.user_segment or "General users",
            product_stage=context.product_stage or "Not specified",
            user_mindset=context.user_mindset or "Not specified",
            primary_metric=context.primary_metric or "Conversion Rate",
            assumptions=context.assumptions or "None provided",
            pain_points=context.pain_points or "None provided",
        )

    async def run_reasoning(
        self,
        features_a: VisionFeatures,
        features_b: VisionFeatures,
        scores_a: HeuristicScores,
        scores_b: HeuristicScores,
        context: ComparisonContext | None = None,
        *,
        on_progress: Any | None = None,
    ) -> ReasoningAnalysis:
        if on_progress:
            on_progress("Comparing variants…")

        prompt = self.build_prompt(features_a, features_b, scores_a, scores_b, context)
        raw = await self.client.simple_completion(
            system=self.get_system_prompt(),
            user_message=prompt,
        )

        analysis = self.try_parse(raw)
        if analysis is None:
            logger.warning(
                "Reasoning output unusable, using heuristic fallback analysis (degraded mode)"
            )
            return synthesize_fallback_analysis(
                features_a, features_b, scores_a, scores_b, context,
                selector=self.selector,
            )
        return self._reconcile_confidence(analysis, context)

    @staticmethod
    def _reconcile_confidence(
        analysis: ReasoningAnalysis, context: ComparisonContext | None,
    ) -> ReasoningAnalysis:
        """Lower the model's confidence to what the supplied context supports."""
        claimed = analysis.projected_metrics.confidence
        ceiling = derive_confidence(context)
        capped = cap_confidence(claimed, ceiling)
        if capped == claimed:
            return analysis
        logger.warning(
            "Model claimed %s confidence but context only supports %s; downgrading",
            claimed, capped,
        )
        metrics = analysis.projected_metrics.model_copy(update={"confidence": capped})
        return analysis.model_copy(update={"projected_metrics": metrics})
