from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

ModuleBuckets = dict[int, dict[str, int]]


class SlotMetrics(BaseModel):
    total_slots: int = 0
    filled: int = 0
    vacant: int = 0
    doctors_filled: int = 0
    nurses_filled: int = 0
    cert1: int = 0
    cert2: int = 0
    cert3: int = 0
    cert4: int = 0
    module1_passed: int = 0
    module2_passed: int = 0
    module3_passed: int = 0
    module4_passed: int = 0
    modules: ModuleBuckets = Field(default_factory=dict)


class RegionMetrics(SlotMetrics):
    id: int
    name: str


class FunnelStep(BaseModel):
    step: str
    count: int


class ProfessionMetrics(BaseModel):
    total: int = 0
    cert1: int = 0
    module1_passed: int = 0
    module4_passed: int = 0


class ProblemRegion(BaseModel):
    region_id: int
    region_name: str
    total_no_show: int
    total_failed: int
    vacant: int


class ProblemRegions(BaseModel):
    no_show: list[ProblemRegion] = Field(default_factory=list)
    failed: list[ProblemRegion] = Field(default_factory=list)
    vacant: list[ProblemRegion] = Field(default_factory=list)


class StatisticsSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    global_metrics: SlotMetrics = Field(..., alias="global")
    funnel: list[FunnelStep]
    regions: list[RegionMetrics]
    professions: dict[str, ProfessionMetrics]
    problem_regions: ProblemRegions
