"""Explicit lifecycle states for resource records and sync jobs.

Stored documents keep the wire representation (`Deleted` as 0/1, `Status` as
a string); these enums give the reconciliation code a closed set of states and
a single place where transitions are decided.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, FrozenSet, Optional

from core.exceptions import InvalidTransitionError


class ResourceState(IntEnum):
    ACTIVE = 0
    DELETED = 1


class ResourceEvent(str, Enum):
    SIGHTED = "sighted"
    MISSED = "missed"


def next_resource_state(current: Optional[ResourceState], event: ResourceEvent) -> ResourceState:
    """Observing a resource always revives it; missing it from a pass retires it."""
    if event is ResourceEvent.SIGHTED:
        return ResourceState.ACTIVE
    return ResourceState.DELETED


class JobState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    ENDED = "ended"


JOB_TRANSITIONS: Dict[Optional[JobState], FrozenSet[JobState]] = {
    None: frozenset({JobState.CREATED, JobState.RUNNING, JobState.ENDED}),
    JobState.CREATED: frozenset({JobState.RUNNING, JobState.ENDED}),
    JobState.RUNNING: frozenset({JobState.RUNNING, JobState.ENDED}),
    JobState.ENDED: frozenset({JobState.ENDED}),
}


def transition_job(current: Optional[str], target: Optional[str]) -> JobState:
    """Validate a job status change; `current=None` means no record exists yet."""
    try:
        current_state = None if current is None else JobState(str(current).lower())
        target_state = JobState(str(target).lower())
    except ValueError:
        raise InvalidTransitionError(str(current), str(target)) from None
    if target_state not in JOB_TRANSITIONS[current_state]:
        raise InvalidTransitionError(str(current), str(target))
    return target_state
