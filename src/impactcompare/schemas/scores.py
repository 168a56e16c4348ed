"""Pydantic model for the heuristic impact scores of one variant."""

from pydantic import BaseModel, ConfigDict, Field


class HeuristicScores(BaseModel):
    """Rule-derived projection for one variant (see ``scoring.heuristics``)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    predicted_ctr: int = Field(alias="predictedCTR", ge=0, le=100)
    predicted_conversion: int = Field(alias="predictedConversion", ge=0, le=100)
    predicted_dropoff: int = Field(alias="predictedDropoff", ge=0, le=100)
    predicted_time_to_act: int = Field(alias="predictedTimeToAct", ge=5, le=60)  # seconds
    predicted_task_completion: int = Field(alias="predictedTaskCompletion", ge=0, le=100)
    usability_risks: list[str] = Field(default=[], alias="usabilityRisks")
