"""Tests for the metric aggregator and confidence derivation."""

from __future__ import annotations

import pytest

from impactcompare.schemas.analysis import ProjectedMetrics, ReasoningAnalysis
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.features import VisionFeatures
from impactcompare.scoring.aggregate import (
    build_ai_summary,
    build_impact_data,
    build_metrics_table,
    cap_confidence,
    derive_confidence,
    determine_winner,
    parse_magnitude,
)
from impactcompare.scoring.fallback import synthesize_fallback_analysis
from impactcompare.scoring.heuristics import score_features


def _analysis(**metric_overrides: str) -> ReasoningAnalysis:
    metrics = {
        "ctrA": "65%", "ctrB": "39%",
        "conversionA": "70%", "conversionB": "25%",
        "dropoffA": "19%", "dropoffB": "35%",
        "completionA": "81%", "completionB": "64%",
        "timeToActA": "18s", "timeToActB": "31s",
        "confidence": "Medium",
    }
    metrics.update(metric_overrides)
    return ReasoningAnalysis(
        summary_a="A", summary_b="B",
        projected_metrics=ProjectedMetrics.model_validate(metrics),
        rationale="Because.", risks=["Risk one"], recommendation="A wins",
    )


class TestParseMagnitude:
    @pytest.mark.parametrize("text, expected", [
        ("65%", 65.0),
        ("12.5 %", 12.5),
        ("18s", 18.0),
        ("24 seconds", 24.0),
        ("1.5 min", 90.0),
        ("2m", 120.0),
        ("750ms", 0.75),
        ("~40% (estimated)", 40.0),
    ])
    def test_parses(self, text: str, expected: float) -> None:
        assert parse_magnitude(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "n/a", "unknown%"])
    def test_unparseable_raises(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_magnitude(text)


class TestDetermineWinner:
    def test_higher_wins(self) -> None:
        assert determine_winner(10, 5, higher_is_better=True) == "A"
        assert determine_winner(5, 10, higher_is_better=True) == "B"

    def test_lower_wins(self) -> None:
        assert determine_winner(10, 5, higher_is_better=False) == "B"
        assert determine_winner(5, 10, higher_is_better=False) == "A"

    @pytest.mark.parametrize("higher", [True, False])
    def test_exact_tie(self, higher: bool) -> None:
        assert determine_winner(7.0, 7.0, higher_is_better=higher) == "Tie"


class TestMetricsTable:
    def test_rows_and_polarity(self) -> None:
        rows = build_metrics_table(_analysis())
        assert [r.metric for r in rows] == [
            "Click-Through Rate (CTR)",
            "Conversion Rate",
            "Drop-off %",
            "Task Completion",
            "Avg. Time-to-Action",
        ]
        # A is better everywhere: higher CTR/conversion/completion, lower drop-off/time
        assert [r.winner for r in rows] == ["A"] * 5
        assert all(r.confidence == "Medium" for r in rows)

    def test_lower_wins_for_dropoff_and_time(self) -> None:
        rows = build_metrics_table(_analysis(dropoffA="40%", timeToActA="45s"))
        by_metric = {r.metric: r.winner for r in rows}
        assert by_metric["Drop-off %"] == "B"
        assert by_metric["Avg. Time-to-Action"] == "B"

    def test_equal_magnitudes_with_different_formatting_tie(self) -> None:
        rows = build_metrics_table(_analysis(ctrA="39.0%", ctrB="39%"))
        assert rows[0].winner == "Tie"

    def test_malformed_row_fails_closed(self) -> None:
        rows = build_metrics_table(_analysis(conversionA="about the same"))
        conversion = rows[1]
        assert conversion.winner == "Tie"
        assert conversion.confidence == "Low"
        # Other rows are unaffected
        assert rows[0].winner == "A"
        assert rows[0].confidence == "Medium"

    def test_identical_scores_tie_everywhere(self, strong_features: VisionFeatures) -> None:
        scores = score_features(strong_features)
        analysis = synthesize_fallback_analysis(
            strong_features, strong_features, scores, scores,
        )
        rows = build_metrics_table(analysis)
        assert [r.winner for r in rows] == ["Tie"] * 5


class TestConfidence:
    def test_full_context_is_high(self) -> None:
        ctx = ComparisonContext(
            user_segment="First-time shoppers",
            assumptions="Users skim",
            pain_points="Checkout abandonment",
        )
        assert derive_confidence(ctx) == "High"

    def test_assumptions_only_is_medium(self) -> None:
        assert derive_confidence(ComparisonContext(assumptions="Users skim")) == "Medium"

    def test_selectors_only_is_low(self) -> None:
        ctx = ComparisonContext(product_stage="MVP", primary_metric="CTR")
        assert derive_confidence(ctx) == "Low"

    def test_missing_context_is_low(self) -> None:
        assert derive_confidence(None) == "Low"

    def test_segment_and_pain_points_without_assumptions_is_low(self) -> None:
        ctx = ComparisonContext(user_segment="Admins", pain_points="Too many clicks")
        assert derive_confidence(ctx) == "Low"

    def test_cap(self) -> None:
        assert cap_confidence("High", "Medium") == "Medium"
        assert cap_confidence("Low", "High") == "Low"
        assert cap_confidence("Medium", "Medium") == "Medium"


class TestViews:
    def test_impact_data_rationale_sections(self) -> None:
        impact = build_impact_data(_analysis())
        assert impact.rationale.startswith("Because.")
        assert "**UX Risks to Consider:**\n- Risk one" in impact.rationale
        assert "**Recommendation:** A wins" in impact.rationale
        assert impact.rationale.endswith("**Confidence Level: Medium**")
        assert impact.confidence == "Medium"
        assert len(impact.metrics_table) == 5

    def test_ai_summary(self) -> None:
        summary = build_ai_summary(_analysis())
        assert summary.summary_a == "A"
        assert summary.summary_b == "B"
        assert summary.differences == []
