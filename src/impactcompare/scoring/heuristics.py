"""Heuristic scorer — deterministic rules from UI features to impact scores.

The rules are directional, not a calibrated model.  Every rule only looks
at the one variant being scored, contributions are additive, and the final
values are rounded half-up and clamped.
"""

from __future__ import annotations

import math

from impactcompare.schemas.features import VisionFeatures
from impactcompare.schemas.scores import HeuristicScores

# Baselines before any rule fires
BASE_CTR = 50
BASE_CONVERSION = 50
BASE_DROPOFF = 15
BASE_TIME_TO_ACT = 15  # seconds
BASE_TASK_COMPLETION = 80

PERCENT_RANGE = (0, 100)
TIME_TO_ACT_RANGE = (5, 60)

_EPSILON = 1e-9


def round_half_up(value: float) -> int:
    """Round halves up (``2.5 -> 3``), unlike the built-in ``round``.

    The epsilon absorbs float noise such as ``64.49999999999999``.
    """
    return int(math.floor(value + 0.5 + _EPSILON))


def percent(score: float) -> int:
    """0-1 score as a whole percentage, for risk messages."""
    return round_half_up(score * 100)


def _clamp(value: float, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, round_half_up(value)))


def score_features(features: VisionFeatures) -> HeuristicScores:
    """Apply the rule set to one variant's features."""
    ctr: float = BASE_CTR
    conversion: float = BASE_CONVERSION
    dropoff: float = BASE_DROPOFF
    time_to_act: float = BASE_TIME_TO_ACT
    task_completion: float = BASE_TASK_COMPLETION
    risks: list[str] = []

    # Flow complexity
    if features.flow_steps > 0:
        dropoff += min(features.flow_steps * 4, 25)
        time_to_act += features.flow_steps * 3
        if features.flow_steps > 3:
            risks.append(
                f"High flow complexity ({features.flow_steps} steps) may increase drop-off"
            )

    # Clutter
    if features.clutter_score > 0:
        task_completion -= features.clutter_score * 20
        conversion -= features.clutter_score * 10
        if features.clutter_score > 0.5:
            risks.append(
                f"Visual clutter (score: {percent(features.clutter_score)}%) "
                "may hinder task completion"
            )

    # Readability
    if features.readability_score > 0:
        conversion += (features.readability_score - 0.5) * 20
        if features.readability_score < 0.5:
            risks.append(
                f"Low readability (score: {percent(features.readability_score)}%) "
                "may reduce clarity"
            )

    # CTA count
    if features.cta_count == 1:
        ctr += 5
    elif features.cta_count > 1:
        ctr -= (features.cta_count - 1) * 3
        risks.append(f"Multiple CTAs ({features.cta_count}) may dilute focus")

    # Primary CTA placement
    if features.primary_cta_above_fold:
        ctr += 10
        conversion += 5
    else:
        ctr -= 5
        risks.append("Primary CTA is not prominently positioned above the fold")

    # Visual hierarchy
    if features.visual_hierarchy_strong:
        conversion += 8
        task_completion += 5
    else:
        conversion -= 5
        risks.append("Visual hierarchy could be strengthened for better comprehension")

    # Text density
    if features.text_blocks <= 4:
        conversion += 3
    else:
        conversion -= (features.text_blocks - 4) * 2
        if features.text_blocks > 6:
            risks.append(
                f"High text density ({features.text_blocks} blocks) may reduce engagement"
            )

    # Tap targets
    if features.tap_targets > 10:
        time_to_act += (features.tap_targets - 10) * 0.5

    return HeuristicScores(
        predicted_ctr=_clamp(ctr, PERCENT_RANGE),
        predicted_conversion=_clamp(conversion, PERCENT_RANGE),
        predicted_dropoff=_clamp(dropoff, PERCENT_RANGE),
        predicted_time_to_act=_clamp(time_to_act, TIME_TO_ACT_RANGE),
        predicted_task_completion=_clamp(task_completion, PERCENT_RANGE),
        usability_risks=risks,
    )
