from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class LimitsModel(BaseModel):
    client_top_n: int = Field(50, ge=1, le=50)
    month_window: int = 6


class DashboardFiltersModel(BaseModel):
    year: Optional[Union[int, str]] = None
    quarter: Optional[Union[int, str]] = None
    month: Optional[Union[int, str]] = None
    status: Optional[str] = None
    agent: Optional[str] = None
    industry: Optional[str] = None
    limits: LimitsModel = Field(default_factory=LimitsModel)


class MetaOptionsResponse(BaseModel):
    years: List[str]
    default_year: Optional[str] = None
    agents: List[str]
    statuses: List[str]
    industries: List[str]
