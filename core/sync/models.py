from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import InvalidRecordError, StoreError
from core.sync.states import ResourceState

Timestamp = Union[int, float, datetime, str]

INDEX_FIELD = "Index"
CHECKSUM_FIELD = "Checksum"
TIMESTAMP_FIELD = "Timestamp"
DELETED_FIELD = "Deleted"
FIXED_FIELDS = (INDEX_FIELD, CHECKSUM_FIELD, TIMESTAMP_FIELD, DELETED_FIELD)


def _split_document(document: Mapping[str, Any]) -> Dict[str, Any]:
    fixed = {key: document[key] for key in FIXED_FIELDS if key in document}
    fixed["extra"] = {key: value for key, value in document.items() if key not in FIXED_FIELDS}
    return fixed


class ResourceRecord(BaseModel):
    """One observed external entity.

    The fields the reconciler reasons about are typed; anything else the
    caller sends is kept verbatim in ``extra`` and written back flat.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    index: str = Field(alias=INDEX_FIELD, min_length=1)
    checksum: Optional[str] = Field(default=None, alias=CHECKSUM_FIELD)
    timestamp: Optional[Timestamp] = Field(default=None, alias=TIMESTAMP_FIELD)
    deleted: Optional[ResourceState] = Field(default=None, alias=DELETED_FIELD)
    extra: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ResourceRecord":
        try:
            return cls.model_validate(_split_document(document))
        except ValidationError as exc:
            raise InvalidRecordError(f"invalid resource record: {exc}", cause=exc) from exc

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {INDEX_FIELD: self.index}
        if self.checksum is not None:
            document[CHECKSUM_FIELD] = self.checksum
        if self.timestamp is not None:
            document[TIMESTAMP_FIELD] = self.timestamp
        if self.deleted is not None:
            document[DELETED_FIELD] = int(self.deleted)
        document.update(self.extra)
        return document

    def stamped(self, timestamp: Timestamp) -> "ResourceRecord":
        return self.model_copy(update={"timestamp": timestamp})


def _coerce_records(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return [_split_document(item) if isinstance(item, Mapping) else item for item in value]


class Params(BaseModel):
    """Request envelope for reconcile (``Input`` set) and sweep (``Input`` empty)."""

    model_config = ConfigDict(populate_by_name=True)

    setting: Dict[str, Any] = Field(default_factory=dict, alias="Setting")
    resource: str = Field(alias="Resource", min_length=1)
    query: Dict[str, Any] = Field(default_factory=dict, alias="Query")
    timestamp: Timestamp = Field(alias="Timestamp")
    input: List[ResourceRecord] = Field(default_factory=list, alias="Input")

    @field_validator("input", mode="before")
    @classmethod
    def split_extension_fields(cls, value: Any) -> Any:
        return _coerce_records(value)

    @field_validator("input")
    @classmethod
    def require_checksum(cls, value: List[ResourceRecord]) -> List[ResourceRecord]:
        for record in value:
            if record.checksum is None:
                raise ValueError(f"resource {record.index!r} has no Checksum")
        return value

    @classmethod
    def parse(cls, payload: Mapping[str, Any]) -> "Params":
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise InvalidRecordError(f"invalid request envelope: {exc}", cause=exc) from exc


class SyncJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: Optional[str] = Field(default=None, alias="Index")
    status: Optional[str] = Field(default=None, alias="Status")
    type: Optional[str] = Field(default=None, alias="Type")
    resource: Optional[str] = Field(default=None, alias="Resource")
    value: Any = Field(default=None, alias="Value")
    start_at: Optional[Timestamp] = Field(default=None, alias="StartAt")
    end_at: Optional[Timestamp] = Field(default=None, alias="EndAt")

    @field_validator("index")
    @classmethod
    def blank_index_is_missing(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def to_document(self, index: str) -> Dict[str, Any]:
        return {
            "Index": index,
            "Status": self.status,
            "Type": self.type,
            "Resource": self.resource,
            "Value": self.value,
            "StartAt": self.start_at,
            "EndAt": self.end_at,
        }


class JobParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    setting: Dict[str, Any] = Field(default_factory=dict, alias="Setting")
    resource: str = Field(alias="Resource", min_length=1)
    sync_job: SyncJob = Field(alias="SyncJob")


class Reply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: int = Field(default=200, alias="Status")
    error: Optional[str] = Field(default=None, alias="Error")

    @classmethod
    def failure(cls, exc: StoreError) -> "Reply":
        return cls(status=exc.status_code, error=str(exc))


@dataclass
class PassOutcome:
    status: int = 200
    inserted: int = 0
    updated: int = 0
    touched: int = 0
    deleted: int = 0
