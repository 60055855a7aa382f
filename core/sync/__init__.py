from .jobs import JobTracker
from .models import JobParams, Params, PassOutcome, Reply, ResourceRecord, SyncJob
from .reconciler import Reconciler, SyncAction
from .states import JobState, ResourceEvent, ResourceState, next_resource_state, transition_job
from .sweeper import Sweeper

__all__ = [
    "JobTracker",
    "JobParams",
    "Params",
    "PassOutcome",
    "Reply",
    "ResourceRecord",
    "SyncJob",
    "Reconciler",
    "SyncAction",
    "JobState",
    "ResourceEvent",
    "ResourceState",
    "next_resource_state",
    "transition_job",
    "Sweeper",
]
