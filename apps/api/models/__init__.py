from .requests import PushRequest, SweepRequest
from .responses import HealthDependency, HealthStatus, JobResponse, VersionResponse

__all__ = [
    "PushRequest",
    "SweepRequest",
    "HealthDependency",
    "HealthStatus",
    "JobResponse",
    "VersionResponse",
]
