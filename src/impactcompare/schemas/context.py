"""Comparison context — who the variants are for and what success means."""

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ComparisonContext(BaseModel):
    """User-supplied context for a comparison.

    Every field is optional.  ``product_stage`` and ``primary_metric`` are
    the two selectors the comparison wizard always asks for; the free-text
    fields (segment, assumptions, pain points) drive confidence.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    user_segment: str = ""
    product_stage: str = ""     # "MVP", "Growth", "Established", "Mature"
    user_mindset: str = ""      # "Browsing", "Purchasing", "Onboarding", "Task-focused"
    primary_metric: str = ""    # "CTR", "Conversion Rate", "Task Completion", ...
    assumptions: str = ""
    pain_points: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("*")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()
