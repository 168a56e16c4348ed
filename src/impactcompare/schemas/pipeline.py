"""Request/response envelopes and the stored comparison record."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from impactcompare.schemas.analysis import Confidence, ReasoningAnalysis, Winner
from impactcompare.schemas.context import ComparisonContext
from impactcompare.schemas.features import VisionFeatures
from impactcompare.schemas.scores import HeuristicScores

DISCLAIMER = (
    "This projection combines visual analysis + heuristics + LLM reasoning. "
    "Metrics are directional, not absolute."
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisRequest(_CamelModel):
    """Inbound payload: two images (http(s) URL or base64) plus context."""

    image_a: str = Field(alias="imageA", min_length=1)
    image_b: str = Field(alias="imageB", min_length=1)
    context: ComparisonContext | None = None


class AnalysisResult(_CamelModel):
    """Everything one pipeline invocation produced."""

    model_config = ConfigDict(frozen=True)

    features_a: VisionFeatures = Field(alias="featuresA")
    features_b: VisionFeatures = Field(alias="featuresB")
    scores_a: HeuristicScores = Field(alias="scoresA")
    scores_b: HeuristicScores = Field(alias="scoresB")
    analysis: ReasoningAnalysis
    disclaimer: str = DISCLAIMER


class ErrorResponse(BaseModel):
    error: str
    details: str = "Failed to analyze variants"


class MetricProjection(_CamelModel):
    """One row of the comparison table."""

    metric: str
    variant_a: str = Field(alias="variantA")
    variant_b: str = Field(alias="variantB")
    winner: Winner
    confidence: Confidence


class AISummary(_CamelModel):
    summary_a: str = Field(alias="summaryA")
    summary_b: str = Field(alias="summaryB")
    differences: list[str] = []


class ImpactData(_CamelModel):
    """Metrics table plus the composed rationale shown next to it."""

    metrics_table: list[MetricProjection] = Field(alias="metricsTable")
    rationale: str
    confidence: Confidence


class VariantData(_CamelModel):
    id: str
    image_url: str = Field("", alias="imageUrl")
    notes: str = ""


class Comparison(_CamelModel):
    """A finished comparison as kept by ``ComparisonStore``."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    variant_a: VariantData = Field(alias="variantA")
    variant_b: VariantData = Field(alias="variantB")
    context: ComparisonContext = ComparisonContext()
    ai_summary: AISummary | None = Field(None, alias="aiSummary")
    impact: ImpactData | None = None
    result: AnalysisResult | None = None
    created_at: str = Field(
        default_factory=lambda: datetime.now().isoformat(), alias="createdAt",
    )
