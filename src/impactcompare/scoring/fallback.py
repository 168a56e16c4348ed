"""Fallback synthesizer — heuristic-only analysis when reasoning output is unusable.

Produces the same ``ReasoningAnalysis`` shape as the reasoning model, built
purely from the two score records, the two feature records and the primary
metric.  Deterministic for a given ``TemplateSelector`` seed.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

from impactcompare.schemas.analysis import ProjectedMetrics, ReasoningAnalysis, Winner
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.features import VisionFeatures
from impactcompare.schemas.scores import HeuristicScores
from impactcompare.scoring.aggregate import determine_winner
from impactcompare.scoring.heuristics import percent

FALLBACK_CONFIDENCE = "Medium"


@dataclass(frozen=True)
class DecidingMetric:
    label: str
    score_field: str
    higher_is_better: bool


_CTR = DecidingMetric("click-through rate", "predicted_ctr", True)
_DROPOFF = DecidingMetric("drop-off", "predicted_dropoff", False)
_COMPLETION = DecidingMetric("task completion", "predicted_task_completion", True)
_CONVERSION = DecidingMetric("conversion", "predicted_conversion", True)

# Checked in order; first keyword hit wins.
_METRIC_KEYWORDS: tuple[tuple[tuple[str, ...], DecidingMetric], ...] = (
    (("ctr", "click"), _CTR),
    (("drop",), _DROPOFF),
    (("completion", "task"), _COMPLETION),
)

_RATIONALE_OPENERS = (
    "Based on heuristic analysis, {verdict} when optimising for {metric}.",
    "Scored on the rule-based heuristics alone, {verdict} on {metric}.",
    "Judged only by the heuristic scores, {verdict} for {metric}.",
)

_RATIONALE_FACTORS = (
    "The analysis weighs flow complexity, visual clutter, readability and CTA placement.",
    "Flow length, clutter, readability and the position of the primary CTA drive these scores.",
    "CTA placement, readability, clutter and flow length are the deciding inputs.",
)

_RATIONALE_CAVEAT = (
    "The reasoning model's response could not be used, so this narrative is "
    "synthesised from the heuristic scores only. Treat the projection as "
    "directional and validate it with user testing."
)


class TemplateSelector:
    """Seedable picker over canned phrasings.

    Two selectors built with the same seed return the same sequence of
    choices, which keeps synthesised narratives reproducible in tests.
    """

    def __init__(self, seed: int = 0) -> None:
        self._rng = random.Random(seed)

    def choose(self, templates: Sequence[str]) -> str:
        return templates[self._rng.randrange(len(templates))]


def select_deciding_metric(primary_metric: str) -> DecidingMetric:
    """Map the context's free-text primary metric onto a score field."""
    text = primary_metric.lower()
    for keywords, metric in _METRIC_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return metric
    return _CONVERSION


def _pct(value: int) -> str:
    return f"{value:.1f}%"


def _projected_metrics(scores_a: HeuristicScores, scores_b: HeuristicScores) -> ProjectedMetrics:
    return ProjectedMetrics(
        ctr_a=_pct(scores_a.predicted_ctr),
        ctr_b=_pct(scores_b.predicted_ctr),
        conversion_a=_pct(scores_a.predicted_conversion),
        conversion_b=_pct(scores_b.predicted_conversion),
        dropoff_a=_pct(scores_a.predicted_dropoff),
        dropoff_b=_pct(scores_b.predicted_dropoff),
        completion_a=_pct(scores_a.predicted_task_completion),
        completion_b=_pct(scores_b.predicted_task_completion),
        time_to_act_a=f"{scores_a.predicted_time_to_act}s",
        time_to_act_b=f"{scores_b.predicted_time_to_act}s",
        confidence=FALLBACK_CONFIDENCE,
    )


def _summary(name: str, features: VisionFeatures) -> str:
    components = ", ".join(features.components[:3]) or "no recognised components"
    return (
        f"Variant {name} features {components} with {features.cta_count} "
        f"CTA(s) and a clutter score of {percent(features.clutter_score)}%."
    )


def _signed(delta: int) -> str:
    return f"{delta:+d}"


def _differences(
    features_a: VisionFeatures,
    features_b: VisionFeatures,
    scores_a: HeuristicScores,
    scores_b: HeuristicScores,
) -> list[str]:
    return [
        f"CTA count: A has {features_a.cta_count}, B has {features_b.cta_count}",
        f"Flow steps: A has {features_a.flow_steps}, B has {features_b.flow_steps}",
        f"Clutter: A scores {percent(features_a.clutter_score)}%, "
        f"B scores {percent(features_b.clutter_score)}%",
        f"Readability: A scores {percent(features_a.readability_score)}%, "
        f"B scores {percent(features_b.readability_score)}%",
        f"Projected conversion: A {scores_a.predicted_conversion}% vs "
        f"B {scores_b.predicted_conversion}% "
        f"({_signed(scores_b.predicted_conversion - scores_a.predicted_conversion)} pts for B)",
        f"Projected time-to-action: A {scores_a.predicted_time_to_act}s vs "
        f"B {scores_b.predicted_time_to_act}s "
        f"({_signed(scores_b.predicted_time_to_act - scores_a.predicted_time_to_act)}s for B)",
    ]


def _risks(
    scores_a: HeuristicScores,
    scores_b: HeuristicScores,
    metric: DecidingMetric,
    value_a: int,
    value_b: int,
) -> list[str]:
    risks = [f"Variant A: {r}" for r in scores_a.usability_risks[:2]]
    risks += [f"Variant B: {r}" for r in scores_b.usability_risks[:2]]
    risks.append(
        f"The {metric.label} call rests on a {abs(value_a - value_b)}-point "
        f"heuristic gap (A {value_a} vs B {value_b}); validate with user testing"
    )
    return risks


def synthesize_fallback_analysis(
    features_a: VisionFeatures,
    features_b: VisionFeatures,
    scores_a: HeuristicScores,
    scores_b: HeuristicScores,
    context: ComparisonContext | None = None,
    *,
    selector: TemplateSelector | None = None,
) -> ReasoningAnalysis:
    """Build a complete analysis from heuristic data alone."""
    selector = selector or TemplateSelector()
    context = context or ComparisonContext()
    metric = select_deciding_metric(context.primary_metric)

    value_a = getattr(scores_a, metric.score_field)
    value_b = getattr(scores_b, metric.score_field)
    winner: Winner = determine_winner(
        value_a, value_b, higher_is_better=metric.higher_is_better,
    )

    if winner == "Tie":
        verdict = "neither variant pulls ahead"
        recommendation = f"Tie - both variants score {value_a} on {metric.label} (heuristic scoring)"
    else:
        verdict = f"Variant {winner} shows stronger projected performance"
        recommendation = f"{winner} wins - based on heuristic scoring of {metric.label}"

    rationale = "\n\n".join([
        selector.choose(_RATIONALE_OPENERS).format(verdict=verdict, metric=metric.label)
        + " "
        + selector.choose(_RATIONALE_FACTORS),
        _RATIONALE_CAVEAT,
    ])

    return ReasoningAnalysis(
        summary_a=_summary("A", features_a),
        summary_b=_summary("B", features_b),
        differences=_differences(features_a, features_b, scores_a, scores_b),
        projected_metrics=_projected_metrics(scores_a, scores_b),
        rationale=rationale,
        risks=_risks(scores_a, scores_b, metric, value_a, value_b),
        recommendation=recommendation,
    )
