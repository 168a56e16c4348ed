"""Metric aggregator — turns an analysis into the per-metric comparison table."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from impactcompare.schemas.analysis import (
    CONFIDENCE_ORDER,
    Confidence,
    ReasoningAnalysis,
    Winner,
)
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.pipeline import AISummary, ImpactData, MetricProjection

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"(-?\d+(?:\.\d+)?)\s*(%|ms|s|sec|secs|seconds?|m|min|mins|minutes?)?", re.IGNORECASE)


@dataclass(frozen=True)
class TrackedMetric:
    label: str
    field: str            # ProjectedMetrics attribute prefix
    higher_is_better: bool


TRACKED_METRICS: tuple[TrackedMetric, ...] = (
    TrackedMetric("Click-Through Rate (CTR)", "ctr", True),
    TrackedMetric("Conversion Rate", "conversion", True),
    TrackedMetric("Drop-off %", "dropoff", False),
    TrackedMetric("Task Completion", "completion", True),
    TrackedMetric("Avg. Time-to-Action", "time_to_act", False),
)


def derive_confidence(context: ComparisonContext | None) -> Confidence:
    """Confidence supported by how much context the user gave.

    High needs segment, assumptions and pain points; assumptions alone give
    Medium; anything less is Low.
    """
    if context is None:
        return "Low"
    if context.user_segment and context.assumptions and context.pain_points:
        return "High"
    if context.assumptions:
        return "Medium"
    return "Low"


def cap_confidence(confidence: Confidence, ceiling: Confidence) -> Confidence:
    """Return the lower of the two labels."""
    if CONFIDENCE_ORDER[confidence] > CONFIDENCE_ORDER[ceiling]:
        return ceiling
    return confidence


def parse_magnitude(value: str) -> float:
    """Pull the number out of a metric string such as "65.0%", "18s" or "1.5 min".

    Minute values are converted to seconds, milliseconds likewise.
    Raises ``ValueError`` if no number is present.
    """
    match = _NUMBER_RE.search(value or "")
    if not match:
        raise ValueError(f"No numeric value in metric string {value!r}")
    number = float(match.group(1))
    unit = (match.group(2) or "").lower()
    if unit.startswith("m") and unit != "ms":
        number *= 60
    elif unit == "ms":
        number /= 1000
    return number


def determine_winner(a: float, b: float, *, higher_is_better: bool) -> Winner:
    if a == b:
        return "Tie"
    if higher_is_better:
        return "A" if a > b else "B"
    return "A" if a < b else "B"


def build_metrics_table(analysis: ReasoningAnalysis) -> list[MetricProjection]:
    """One ``MetricProjection`` per tracked metric.

    A row whose strings can't be parsed is reported as a ``Tie`` with
    ``Low`` confidence instead of failing the whole table.
    """
    metrics = analysis.projected_metrics
    rows: list[MetricProjection] = []
    for tracked in TRACKED_METRICS:
        value_a = getattr(metrics, f"{tracked.field}_a")
        value_b = getattr(metrics, f"{tracked.field}_b")
        try:
            winner = determine_winner(
                parse_magnitude(value_a),
                parse_magnitude(value_b),
                higher_is_better=tracked.higher_is_better,
            )
            confidence = metrics.confidence
        except ValueError as exc:
            logger.warning("Unparseable %s row, reporting Tie: %s", tracked.label, exc)
            winner = "Tie"
            confidence = "Low"
        rows.append(MetricProjection(
            metric=tracked.label,
            variant_a=value_a,
            variant_b=value_b,
            winner=winner,
            confidence=confidence,
        ))
    return rows


def build_ai_summary(analysis: ReasoningAnalysis) -> AISummary:
    return AISummary(
        summary_a=analysis.summary_a,
        summary_b=analysis.summary_b,
        differences=list(analysis.differences),
    )


def build_impact_data(analysis: ReasoningAnalysis) -> ImpactData:
    """Metrics table plus a markdown rationale with risks and recommendation."""
    confidence = analysis.projected_metrics.confidence
    sections = [analysis.rationale.strip()]
    if analysis.risks:
        risk_lines = "\n".join(f"- {risk}" for risk in analysis.risks)
        sections.append(f"**UX Risks to Consider:**\n{risk_lines}")
    sections.append(f"**Recommendation:** {analysis.recommendation}")
    sections.append(f"**Confidence Level: {confidence}**")

    return ImpactData(
        metrics_table=build_metrics_table(analysis),
        rationale="\n\n".join(s for s in sections if s),
        confidence=confidence,
    )
