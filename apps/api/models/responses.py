from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: str = Field(alias="Index")


class VersionResponse(BaseModel):
    version: str
    matched: bool


class HealthDependency(BaseModel):
    name: str
    status: str
    latency_ms: int
    details: Optional[str] = None


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: List[HealthDependency]
