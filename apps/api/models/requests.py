from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from core.sync.models import Timestamp


class SweepRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    setting: Dict[str, Any] = Field(default_factory=dict, alias="Setting")
    query: Dict[str, Any] = Field(default_factory=dict, alias="Query")
    timestamp: Timestamp = Field(alias="Timestamp")

    def envelope(self, resource: str) -> Dict[str, Any]:
        return {"Setting": self.setting, "Resource": resource, "Query": self.query, "Timestamp": self.timestamp}


class PushRequest(SweepRequest):
    input: List[Dict[str, Any]] = Field(default_factory=list, alias="Input")

    def envelope(self, resource: str) -> Dict[str, Any]:
        return {**super().envelope(resource), "Input": self.input}
