from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from .timeutils import format_duration


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    category: str
    subcategory: str
    start_time: float
    duration: Optional[float]

    @computed_field
    def running(self) -> bool:
        return self.duration is None

    @computed_field
    def duration_label(self) -> Optional[str]:
        return format_duration(self.duration) if self.duration is not None else None


class TaskRequest(BaseModel):
    category: str = Field(min_length=1)
    subcategory: str = Field(min_length=1)


class SplitEntryRequest(BaseModel):
    category: str = Field(min_length=1)
    subcategory: str = Field(min_length=1)
    start_time: float = Field(allow_inf_nan=False)
    is_concurrent: bool = False
    end_time: Optional[float] = Field(default=None, allow_inf_nan=False)

    @model_validator(mode="after")
    def _check_end_time(self) -> "SplitEntryRequest":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class SplitRequest(BaseModel):
    entries: List[SplitEntryRequest] = Field(min_length=1)


class CleanupResponse(BaseModel):
    removed: List[int]


class CategoryBudgetSchema(BaseModel):
    time: float = Field(ge=0, allow_inf_nan=False)
    subcategories: Dict[str, float] = Field(default_factory=dict)

    @field_validator("subcategories")
    @classmethod
    def _non_negative(cls, value: Dict[str, float]) -> Dict[str, float]:
        for name, minutes in value.items():
            if not name.strip():
                raise ValueError("Subcategory names must not be empty")
            if not math.isfinite(minutes):
                raise ValueError(f"Subcategory '{name}' needs a finite allocation")
            if minutes < 0:
                raise ValueError(f"Subcategory '{name}' has a negative allocation")
        return value


class BudgetResponse(BaseModel):
    categories: Dict[str, CategoryBudgetSchema]
    unallocated: float
    unallocated_label: str


class ReallocationRequest(BaseModel):
    from_category: Optional[str] = None
    from_subcategory: Optional[str] = None
    to_category: str = Field(min_length=1)
    to_subcategory: Optional[str] = None
    amount: float = Field(allow_inf_nan=False)


class SubcategorySummary(BaseModel):
    subcategory: str
    budgeted: float
    spent: float
    remaining: float
    overage: float


class CategorySummary(BaseModel):
    category: str
    budgeted: float
    slack: float
    spent: float
    remaining: float
    overage: float
    subcategory_overage: float
    subcategories: List[SubcategorySummary]


class SummaryResponse(BaseModel):
    week_start: float
    unallocated: float
    overage: float
    category_overage: Dict[str, float]
    categories: List[CategorySummary]


class AvailableResponse(BaseModel):
    category: str
    subcategory: Optional[str]
    available: float
    available_label: str


class ChartSliceResponse(BaseModel):
    label: str
    category: str
    hours: float


def budget_payload(categories: Dict[str, Any], unallocated: float) -> BudgetResponse:
    return BudgetResponse(
        categories={name: CategoryBudgetSchema(**entry) for name, entry in categories.items()},
        unallocated=unallocated,
        unallocated_label=format_duration(unallocated),
    )


class SpreadRequest(BaseModel):
    minutes: float = Field(ge=0, allow_inf_nan=False)
    days: List[int] = Field(min_length=1)


class DailyPlanRequest(BaseModel):
    spreads: List[SpreadRequest] = Field(min_length=1)


class DayFreeTimeResponse(BaseModel):
    day: int
    name: str
    planned: float
    free: float
    label: str


class DailyPlanResponse(BaseModel):
    days: List[DayFreeTimeResponse]
    overbooked: List[str]
