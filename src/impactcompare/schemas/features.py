"""Pydantic model for the per-variant vision feature record."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class VisionFeatures(BaseModel):
    """UI composition of one variant, as extracted by the vision model.

    Field defaults are the neutral values used when the model output cannot
    be parsed, so a partially filled object degrades the same way.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    components: list[str] = ["Unable to extract"]
    hierarchy: list[str] = ["Unable to analyze"]  # most -> least prominent
    cta_count: int = 1
    text_blocks: int = 3
    tap_targets: int = 5
    flow_steps: int = 2
    dominant_colors: list[str] = ["unknown"]
    clutter_score: float = 0.5       # 0 = minimal, 1 = very cluttered
    readability_score: float = 0.7   # 0 = hard to read, 1 = very readable
    primary_cta_above_fold: bool = Field(True, alias="primaryCTAAboveFold")
    visual_hierarchy_strong: bool = True

    @field_validator("components", "hierarchy", "dominant_colors", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("dominant_colors")
    @classmethod
    def unique_colors(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @field_validator("cta_count", "text_blocks", "tap_targets", "flow_steps")
    @classmethod
    def non_negative(cls, v: int) -> int:
        return max(0, v)

    @field_validator("clutter_score", "readability_score")
    @classmethod
    def unit_interval(cls, v: float) -> float:
        return min(1.0, max(0.0, v))


DEFAULT_FEATURES = VisionFeatures()
"""Record substituted when a vision response has no parseable JSON block."""
