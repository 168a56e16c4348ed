"""Pydantic models for the reasoning step's comparative analysis."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Confidence = Literal["High", "Medium", "Low"]
Winner = Literal["A", "B", "Tie"]

CONFIDENCE_ORDER: dict[str, int] = {"Low": 0, "Medium": 1, "High": 2}


def normalize_confidence(v: object) -> str:
    """Map free-form model labels ("high", " MEDIUM ") onto ``Confidence``.

    Anything unrecognised becomes ``Low``.
    """
    label = str(v or "").strip().capitalize()
    return label if label in CONFIDENCE_ORDER else "Low"


class ProjectedMetrics(BaseModel):
    """Per-variant metric strings ("65.0%", "18s") plus a confidence label."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    ctr_a: str = Field(alias="ctrA")
    ctr_b: str = Field(alias="ctrB")
    conversion_a: str = Field(alias="conversionA")
    conversion_b: str = Field(alias="conversionB")
    dropoff_a: str = Field(alias="dropoffA")
    dropoff_b: str = Field(alias="dropoffB")
    completion_a: str = Field(alias="completionA")
    completion_b: str = Field(alias="completionB")
    time_to_act_a: str = Field(alias="timeToActA")
    time_to_act_b: str = Field(alias="timeToActB")
    confidence: Confidence = "Low"

    @field_validator(
        "ctr_a", "ctr_b", "conversion_a", "conversion_b", "dropoff_a",
        "dropoff_b", "completion_a", "completion_b", "time_to_act_a",
        "time_to_act_b",
        mode="before",
    )
    @classmethod
    def coerce_number_to_str(cls, v: object) -> object:
        # Models sometimes emit 65 instead of "65%"
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, v: object) -> str:
        return normalize_confidence(v)


class ReasoningAnalysis(BaseModel):
    """Narrative comparison, from the reasoning model or the fallback.

    Both producers emit this exact shape, so consumers never need to know
    which path was taken.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    summary_a: str = Field(alias="summaryA")
    summary_b: str = Field(alias="summaryB")
    differences: list[str] = []
    projected_metrics: ProjectedMetrics
    rationale: str = ""
    risks: list[str] = []
    recommendation: str

    @field_validator("differences", "risks", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("rationale", mode="before")
    @classmethod
    def join_paragraphs(cls, v: object) -> object:
        # "3-4 paragraphs" is occasionally returned as a list of strings
        if isinstance(v, list):
            return "\n\n".join(str(p) for p in v)
        return "" if v is None else v
