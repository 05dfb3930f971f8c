"""Pydantic models for type-safe data structures."""


from pydantic import BaseModel, ConfigDict, Field


class EstimateRecord(BaseModel):
    """Pi approximation for a single image.

    Attributes:
        identifier: Image identifier (file name for directory corpora).
        estimate: 6 * (pixels inside the unit sphere) / (pixels), in [0, 6].
        error: Absolute difference between estimate and pi.
    """
    model_config = ConfigDict(frozen=True)

    identifier: str
    estimate: float = Field(ge=0.0, le=6.0)
    error: float = Field(ge=0.0)


class SummaryStatistics(BaseModel):
    """Aggregate of the estimates over a full record set.

    Attributes:
        count: Number of records.
        mean: Mean estimate.
        std: Sample standard deviation of the estimates (0.0 for one record).
    """
    model_config = ConfigDict(frozen=True)

    count: int = Field(ge=1)
    mean: float
    std: float = Field(ge=0.0)


class PipelineResult(BaseModel):
    """Output of one pipeline run.

    Attributes:
        ranked: All records ordered by ascending error.
        top: The first top_k records of ranked.
        statistics: Summary statistics over all estimates.
    """
    model_config = ConfigDict(frozen=True)

    ranked: list[EstimateRecord]
    top: list[EstimateRecord]
    statistics: SummaryStatistics
