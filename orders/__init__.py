"""
Orders domain package.

Public API:
- Domain models: Job, JobKind, JobState, LatLon
"""
from .models import Job, JobKind, JobState, LatLon, TERMINAL_STATES, WORKER_BOUND_STATES

__all__ = ["Job",
           "JobKind",
             "JobState",
               "LatLon",
               "TERMINAL_STATES",
               "WORKER_BOUND_STATES",
               ]
